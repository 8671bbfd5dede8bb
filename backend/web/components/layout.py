"""
Layout component for AgriVerse.

Wraps page content into the full HTML document: head, sidebar navigation,
toast stack and main column.
"""

from typing import List, Optional

from backend.identity_access.domain import Identity

from .base import Component
from .flash import FlashMessage, ToastStack
from .navigation import Navigation


class Layout(Component):
    """Main layout component that assembles the complete page."""

    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Identity] = None,
        show_nav: bool = True,
        current_path: str = "/",
        csrf_token: str = "",
        flashes: Optional[List[FlashMessage]] = None,
        lang: str = "en",
    ):
        """
        Args:
            title: Page title (escaped)
            content: Main content HTML (pre-rendered components)
            user: Signed-in identity, if any
            show_nav: Whether to render the sidebar
            current_path: Current URL path for active link highlighting
            csrf_token: Token for the logout form in the sidebar
            flashes: One-shot toasts popped for this render
        """
        self.title = title
        self.content = content
        self.user = user
        self.show_nav = show_nav
        self.current_path = current_path
        self.csrf_token = csrf_token
        self.flashes = flashes or []
        self.lang = lang

    def _navigation(self) -> Navigation:
        return Navigation(self.user, self.current_path, csrf_token=self.csrf_token)

    def render(self) -> str:
        nav_html = self._navigation().render() if self.show_nav else ""
        return f"""<!DOCTYPE html>
<html lang="{self.escape(self.lang)}">
<head>
    {self._render_head()}
</head>
<body>
    <a href="#main-content" class="skip-link">Skip to main content</a>
    {nav_html}
    <main id="main-content" class="main-content" role="main">
        {self._render_main_inner()}
    </main>
</body>
</html>"""

    def render_fragment(self) -> str:
        """HTMX fragment: the inner <main> markup plus an out-of-band sidebar.

        The JS sidebar toggle expects exactly one `#sidebar` element, so the
        fragment never nests a second one inside <main>.
        """
        main_inner = self._render_main_inner()
        if not self.show_nav:
            return main_inner
        return f"{main_inner}{self._navigation().render_aside(oob=True)}"

    def _render_head(self) -> str:
        return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="AgriVerse - marketplace for farmers, buyers and godowns">
    <title>{self.escape(self.title)} - AgriVerse</title>
    <link rel="stylesheet" href="/static/css/agriverse.css?v=1">
    <script src="/static/js/agriverse.js?v=1" defer></script>
    """

    def _render_main_inner(self) -> str:
        return f"""
        {ToastStack(self.flashes).render()}
        <h1 class="page-title">{self.escape(self.title)}</h1>
        {self.content}
        <footer class="content-footer" role="contentinfo">
            <p class="text-muted">AgriVerse</p>
        </footer>
        """
