"""
Explicit per-request session object.

Why:
    Route handlers and the role router need the same view of "who is this":
    an Identity or nothing, plus whether the lookup has finished. The object
    is created unresolved for each request, restored once by the auth
    middleware and then read everywhere else.

Lifecycle:
    restore()  -> look up the cookie's session id; is_loading becomes False.
    set(id)    -> create a server-side record; the caller issues the cookie.
    clear()    -> delete the record; the caller expires the cookie.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from backend.identity_access.domain import Identity
from backend.identity_access.routing import SessionView

logger = logging.getLogger("agriverse.session")

SESSION_COOKIE = "agriverse_session"


@dataclass
class Session:
    store: Any = field(repr=False)
    session_id: Optional[str] = None
    identity: Optional[Identity] = None
    is_loading: bool = True

    def restore(self) -> Optional[Identity]:
        self.identity = None
        if self.session_id:
            try:
                rec = self.store.get(self.session_id)
            except Exception as exc:
                # Treat backend failures as "no session"; the visitor logs in again.
                logger.warning("session lookup failed: %s", exc.__class__.__name__)
                rec = None
            if rec is not None:
                self.identity = rec.identity
            else:
                self.session_id = None
        self.is_loading = False
        return self.identity

    def set(self, identity: Identity, *, ttl_seconds: int = 3600) -> str:
        if self.session_id:
            # Rotate: never reuse a pre-login session id.
            self.store.delete(self.session_id)
        rec = self.store.create(identity=identity, ttl_seconds=ttl_seconds)
        self.session_id = rec.session_id
        self.identity = identity
        self.is_loading = False
        return rec.session_id

    def refresh(self, identity: Identity) -> None:
        """Replace the stored identity after a profile edit."""
        if self.session_id:
            self.store.update_identity(self.session_id, identity)
        self.identity = identity

    def clear(self) -> None:
        if self.session_id:
            try:
                self.store.delete(self.session_id)
            except Exception as exc:
                logger.warning("session delete failed: %s", exc.__class__.__name__)
        self.session_id = None
        self.identity = None
        self.is_loading = False

    def view(self) -> SessionView:
        return SessionView(identity=self.identity, is_loading=self.is_loading)


__all__ = ["SESSION_COOKIE", "Session"]
