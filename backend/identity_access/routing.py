"""
Role-scoped session routing.

Why:
    One table-driven policy decides where a visitor may be. Roles, homes and
    allowed prefixes are configuration data; the decision algorithm does not
    change when the table grows.

Behavior:
    - Unresolved (session still loading): never redirect.
    - Entry locations (login/signup) are reachable in every state.
    - Anonymous elsewhere: redirect to the login entry.
    - Authenticated: stay if the path starts with an allowed prefix of the
      role, otherwise go to the role's home. Redirect targets are always
      allowed locations, so a second evaluation at the target is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from backend.identity_access.domain import BUYER, FARMER, GODOWN_ADMIN, Identity

LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
ENTRY_PATHS: Tuple[str, ...] = (LOGIN_PATH, SIGNUP_PATH)


@dataclass(frozen=True)
class RoleArea:
    home: str
    prefixes: Tuple[str, ...]

    def allows(self, location: str) -> bool:
        return any(location.startswith(prefix) for prefix in self.prefixes)


DEFAULT_ROLE_AREAS: Mapping[str, RoleArea] = {
    FARMER: RoleArea(home="/dashboard", prefixes=("/dashboard", "/storage", "/marketplace", "/settings")),
    BUYER: RoleArea(home="/buyer", prefixes=("/buyer", "/marketplace", "/profile")),
    GODOWN_ADMIN: RoleArea(home="/admin", prefixes=("/admin", "/requests", "/godowns", "/market")),
}


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot of the session the router evaluates."""

    identity: Optional[Identity] = None
    is_loading: bool = False

    @property
    def state(self) -> str:
        if self.is_loading:
            return "unresolved"
        if self.identity is None:
            return "anonymous"
        return "authenticated"


@dataclass(frozen=True)
class RoleRouter:
    areas: Mapping[str, RoleArea] = field(default_factory=lambda: dict(DEFAULT_ROLE_AREAS))
    login_path: str = LOGIN_PATH
    entry_paths: Tuple[str, ...] = ENTRY_PATHS

    def is_entry(self, location: str) -> bool:
        return location in self.entry_paths

    def home_for(self, role: str) -> Optional[str]:
        area = self.areas.get(role)
        return area.home if area else None

    def allows(self, role: str, location: str) -> bool:
        area = self.areas.get(role)
        return bool(area and area.allows(location))

    def decide(self, session: SessionView, location: str) -> Optional[str]:
        """Return the redirect target for `location`, or None to stay."""
        if session.is_loading:
            return None
        path = location or "/"
        if self.is_entry(path):
            return None
        if session.identity is None:
            return self.login_path
        area = self.areas.get(session.identity.role)
        if area is None:
            # Unknown roles have no area; treat them like an anonymous visitor.
            return self.login_path
        if area.allows(path):
            return None
        return area.home


ROUTER = RoleRouter()


def decide_redirect(identity: Optional[Identity], location: str, *, is_loading: bool = False) -> Optional[str]:
    """Module-level shortcut using the default policy table."""
    return ROUTER.decide(SessionView(identity=identity, is_loading=is_loading), location)


__all__ = [
    "LOGIN_PATH",
    "SIGNUP_PATH",
    "ENTRY_PATHS",
    "RoleArea",
    "DEFAULT_ROLE_AREAS",
    "SessionView",
    "RoleRouter",
    "ROUTER",
    "decide_redirect",
]
