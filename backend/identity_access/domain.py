"""
Identity domain constants and the Identity value object.

Why:
- Centralize allowed roles to avoid drift between router, services and UI.
- Keep the identity shape identical wherever it is stored (session records,
  request state, templates).
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Mapping, Optional

FARMER = "farmer"
BUYER = "buyer"
GODOWN_ADMIN = "godown_admin"

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({FARMER, BUYER, GODOWN_ADMIN})

LANGUAGES = frozenset({"ur", "en"})


@dataclass(frozen=True)
class Identity:
    """Authenticated user as issued by the credential verifier.

    Only profile edits produce a new Identity (via `with_profile`); the
    password hash never leaves the verifier.
    """

    id: str
    full_name: str
    email: str
    role: str
    language_preference: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Identity":
        return cls(
            id=str(row.get("id") or ""),
            full_name=str(row.get("full_name") or ""),
            email=str(row.get("email") or ""),
            role=str(row.get("role") or ""),
            language_preference=row.get("language_preference") or None,
            phone=row.get("phone") or None,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def with_profile(self, **changes: Any) -> "Identity":
        allowed = {k: v for k, v in changes.items() if k in {"full_name", "email", "language_preference", "phone"}}
        return replace(self, **allowed)


__all__ = ["ALLOWED_ROLES", "FARMER", "BUYER", "GODOWN_ADMIN", "LANGUAGES", "Identity"]
