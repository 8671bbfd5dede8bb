"""
Supabase-backed record store.

Uses the PostgREST query builder of a supabase client
(`client.table(name).select("*").eq(...).execute()`). The client is duck-typed
so tests can pass a fake exposing the same chain.

Security:
- Initialize the client with the service role key; row-level ownership is
  enforced by the services (owner filters on every write).
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from backend.marketplace.errors import RemoteError

logger = logging.getLogger("agriverse.records")


def _message(exc: Exception) -> str:
    # postgrest APIError keeps the server text in `.message`; others use str().
    msg = getattr(exc, "message", None)
    return str(msg or exc or exc.__class__.__name__)


class SupabaseRecordStore:
    """RecordStore implementation over a supabase client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def _run(self, table: str, op: str, query: Any) -> List[Dict[str, Any]]:
        try:
            res = query.execute()
        except Exception as exc:
            logger.warning("record store %s on %s failed: %s", op, table, exc.__class__.__name__)
            raise RemoteError(_message(exc)) from exc
        data = getattr(res, "data", None)
        if data is None and isinstance(res, dict):
            data = res.get("data")
        return list(data or [])

    def select(
        self,
        table: str,
        *,
        where: Optional[Mapping[str, Any]] = None,
        in_: Optional[Mapping[str, Sequence[Any]]] = None,
        neq: Optional[Mapping[str, Any]] = None,
        search: Optional[Tuple[str, str]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        q = self._client.table(table).select("*")
        for col, value in (where or {}).items():
            q = q.eq(col, value)
        for col, values in (in_ or {}).items():
            q = q.in_(col, list(values))
        for col, value in (neq or {}).items():
            q = q.neq(col, value)
        if search:
            col, needle = search
            q = q.ilike(col, f"%{needle}%")
        if order_by:
            q = q.order(order_by, desc=desc)
        if limit is not None:
            q = q.limit(int(limit))
        return self._run(table, "select", q)

    def insert(self, table: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        rows = self._run(table, "insert", self._client.table(table).insert(dict(payload)))
        if not rows:
            raise RemoteError(f"insert into {table} returned no row")
        return rows[0]

    def update(self, table: str, where: Mapping[str, Any], changes: Mapping[str, Any]) -> List[Dict[str, Any]]:
        q = self._client.table(table).update(dict(changes))
        for col, value in where.items():
            q = q.eq(col, value)
        return self._run(table, "update", q)

    def delete(self, table: str, where: Mapping[str, Any]) -> int:
        q = self._client.table(table).delete()
        for col, value in where.items():
            q = q.eq(col, value)
        return len(self._run(table, "delete", q))


def build_from_env() -> Optional[SupabaseRecordStore]:
    """Create a store from SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY, or None when unset."""
    url = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not url or not key:
        return None
    from supabase import create_client  # type: ignore

    return SupabaseRecordStore(create_client(url, key))


__all__ = ["SupabaseRecordStore", "build_from_env"]
