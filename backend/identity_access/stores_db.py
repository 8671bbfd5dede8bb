"""
Database-backed SessionStore (Postgres/Supabase).

Why: In-memory sessions do not survive restarts and do not scale across
instances. This store keeps the same opaque-cookie contract but persists the
Identity snapshot in Postgres.

Security:
- Use a service role connection string; the `app_sessions` table must not be
  reachable for anon clients.
- Only the generated `session_id` is ever sent to the browser.

Enabled via `SESSIONS_BACKEND=db`. Tests use the in-memory store or a fake
psycopg module.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import os
import re
import time

try:
    import psycopg
    from psycopg import sql
    from psycopg.types.json import Json
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional dependency in dev
    psycopg = None  # type: ignore
    sql = None  # type: ignore
    Json = None  # type: ignore
    HAVE_PSYCOPG = False

from backend.identity_access.domain import Identity

_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}(?:\.[A-Za-z_][A-Za-z0-9_]{0,62})?$")


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    identity: Identity
    expires_at: Optional[int] = None


class DBSessionStore:
    """Postgres-backed session store.

    Parameters
    ----------
    dsn:
        Psycopg3 connection string. Falls back to `DATABASE_URL`.
    table:
        Table name, optionally schema-qualified. Defaults to `public.app_sessions`.
    """

    def __init__(self, dsn: str | None = None, table: str = "public.app_sessions") -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBSessionStore")
        self._dsn = dsn or os.getenv("DATABASE_URL", "")
        if not self._dsn:
            raise RuntimeError("No database DSN provided for DBSessionStore")
        if not _TABLE_RE.match(table or ""):
            raise ValueError("Invalid table name")
        self._table = table

    def _identifier(self):
        if "." in self._table:
            schema, name = self._table.split(".", 1)
        else:
            schema, name = "public", self._table
        return sql.Identifier(schema, name)

    def create(self, *, identity: Identity, ttl_seconds: int = 3600) -> SessionRecord:
        expires_at = _now() + ttl_seconds
        stmt = sql.SQL(
            "insert into {} (session_id, user_id, identity, expires_at) "
            "values (gen_random_uuid()::text, %s, %s, to_timestamp(%s)) returning session_id"
        ).format(self._identifier())
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt, (identity.id, Json(identity.to_dict()), expires_at))
                row = cur.fetchone()
        sid = str(row[0]) if row else ""
        return SessionRecord(session_id=sid, identity=identity, expires_at=expires_at)

    def get(self, session_id: str) -> Optional[SessionRecord]:
        stmt = sql.SQL(
            "select session_id, identity, extract(epoch from expires_at)::bigint "
            "from {} where session_id = %s and expires_at > now()"
        ).format(self._identifier())
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt, (session_id,))
                row = cur.fetchone()
        if not row:
            return None
        payload = row[1] if isinstance(row[1], dict) else {}
        return SessionRecord(
            session_id=str(row[0]),
            identity=Identity.from_row(payload),
            expires_at=int(row[2]) if row[2] is not None else None,
        )

    def update_identity(self, session_id: str, identity: Identity) -> None:
        stmt = sql.SQL("update {} set identity = %s where session_id = %s").format(self._identifier())
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt, (Json(identity.to_dict()), session_id))

    def delete(self, session_id: str) -> None:
        stmt = sql.SQL("delete from {} where session_id = %s").format(self._identifier())
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt, (session_id,))
