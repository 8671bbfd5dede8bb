"""
Navigation component for AgriVerse.

Role-based sidebar: farmers, buyers and godown administrators each see only
links inside their own area, so navigation never points at a page the role
router would bounce.
"""

from typing import Dict, List, Optional, Tuple

from backend.identity_access.domain import BUYER, FARMER, GODOWN_ADMIN, Identity

from .base import Component

NavItem = Tuple[str, str, str]  # (href, label, icon)

NAV_CONFIG: Dict[str, List[NavItem]] = {
    FARMER: [
        ("/dashboard", "Dashboard", "🏠"),
        ("/storage", "Storage", "🏬"),
        ("/marketplace", "Marketplace", "🛒"),
        ("/marketplace/tools", "Tools", "🛠"),
        ("/marketplace/trucks", "Trucks", "🚚"),
        ("/marketplace/waste", "Waste", "♻"),
        ("/dashboard/cooperatives", "Cooperatives", "🤝"),
        ("/dashboard/warechain", "Warechain", "📦"),
        ("/dashboard/farmgpt", "FarmGPT", "💬"),
        ("/settings", "Settings", "⚙"),
    ],
    BUYER: [
        ("/buyer", "Home", "🏠"),
        ("/buyer/cart", "Cart", "🧺"),
        ("/marketplace", "Marketplace", "🛒"),
        ("/marketplace/tools", "Tools", "🛠"),
        ("/marketplace/trucks", "Trucks", "🚚"),
        ("/marketplace/waste", "Waste", "♻"),
        ("/profile", "Profile", "👤"),
    ],
    GODOWN_ADMIN: [
        ("/admin", "Overview", "🏠"),
        ("/requests", "Requests", "📥"),
        ("/godowns", "Godowns", "🏬"),
        ("/market", "Listings", "🏷"),
    ],
}

PUBLIC_ITEMS: List[NavItem] = [
    ("/login", "Sign in", "🔑"),
    ("/signup", "Create account", "📝"),
]

ROLE_LABELS = {
    FARMER: "Farmer",
    BUYER: "Buyer",
    GODOWN_ADMIN: "Godown admin",
}


class Navigation(Component):
    """Sidebar with role-aware links and a CSRF-protected logout form."""

    def __init__(self, user: Optional[Identity] = None, current_path: str = "/", csrf_token: str = ""):
        self.user = user
        self.current_path = current_path or "/"
        self.csrf_token = csrf_token

    def items(self) -> List[NavItem]:
        if not self.user:
            return PUBLIC_ITEMS
        return NAV_CONFIG.get(self.user.role, [])

    def render(self) -> str:
        return f"""
    <button class="sidebar-toggle" data-action="sidebar-toggle" aria-label="Toggle navigation">
        <span class="sidebar-toggle-icon">☰</span>
    </button>
    {self.render_aside()}
    <div class="sidebar-overlay" data-action="sidebar-close"></div>"""

    def render_aside(self, oob: bool = False) -> str:
        """Render only the <aside>; `oob=True` marks it for an HTMX out-of-band swap."""
        items = self.items()
        active = self._active_href(items)
        links = [self._create_nav_link(href, text, icon, is_active=(href == active)) for href, text, icon in items]
        footer = ""
        if self.user:
            links.append(self._render_logout())
            footer = f"""
            <div class="sidebar-footer">
                <div class="user-name">{self.escape(self.user.full_name)}</div>
                <div class="user-role">{self.escape(ROLE_LABELS.get(self.user.role, "User"))}</div>
            </div>"""
        oob_attr = ' hx-swap-oob="true"' if oob else ""
        return f"""
    <aside class="sidebar" id="sidebar" aria-label="Sidebar"{oob_attr}>
        <nav class="sidebar-nav" role="navigation" aria-label="Main navigation">
            <div class="sidebar-header">
                <span class="sidebar-logo" aria-hidden="true">🌾</span>
                <span class="sidebar-title">AgriVerse</span>
            </div>
            <div class="sidebar-items">
                {''.join(links)}
            </div>{footer}
        </nav>
    </aside>"""

    def _active_href(self, items: List[NavItem]) -> Optional[str]:
        """Best prefix match, so /marketplace/tools does not also light up /marketplace."""
        path = self.current_path
        best: Optional[str] = None
        for href, _text, _icon in items:
            if path == href:
                return href
            if path.startswith(href + "/") and (best is None or len(href) > len(best)):
                best = href
        return best

    def _create_nav_link(self, href: str, text: str, icon: str = "", *, is_active: bool = False) -> str:
        icon_html = f'<span class="nav-icon" aria-hidden="true">{icon}</span>' if icon else ""
        attrs = self.attributes(
            href=href,
            hx_get=href,
            hx_target="#main-content",
            hx_push_url="true",
            class_=self.classes("sidebar-link", active=is_active),
            aria_current="page" if is_active else None,
        )
        return f'<a {attrs}>{icon_html}<span class="nav-text">{self.escape(text)}</span></a>'

    def _render_logout(self) -> str:
        # POST with CSRF token; a GET logout link could be triggered cross-site.
        return f"""
        <form method="post" action="/logout" class="sidebar-logout-form">
            {self.csrf_input(self.csrf_token)}
            <button type="submit" class="sidebar-link sidebar-logout">
                <span class="nav-icon" aria-hidden="true">🚪</span><span class="nav-text">Sign out</span>
            </button>
        </form>"""
