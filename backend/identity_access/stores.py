"""
In-memory SessionStore for development and tests.

Why: Sessions stay server-side. The cookie carries only an opaque session id;
the Identity it resolves to never reaches the client. For production use the
Postgres-backed store in `stores_db.py` (`SESSIONS_BACKEND=db`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import secrets
import time

from backend.identity_access.domain import Identity


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    identity: Identity
    expires_at: Optional[int] = None


class SessionStore:
    def __init__(self) -> None:
        self._data: Dict[str, SessionRecord] = {}

    def create(self, *, identity: Identity, ttl_seconds: int = 3600) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(session_id=sid, identity=identity, expires_at=_now() + ttl_seconds)
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        return rec

    def update_identity(self, session_id: str, identity: Identity) -> None:
        rec = self._data.get(session_id)
        if rec:
            rec.identity = identity

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)
