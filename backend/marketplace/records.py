"""
Record store port and the in-memory implementation.

Every listing/booking operation is expressed as `select/insert/update/delete`
on a named collection with equality filters. Implementations:

- InMemoryRecordStore: dev and tests, enforces the unique keys the hosted
  database enforces.
- SupabaseRecordStore (`records_supabase.py`): PostgREST via supabase-py.

Failures surface as `RemoteError` carrying the store's message verbatim.
"""
from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple
from uuid import uuid4

from backend.marketplace.errors import RemoteError

# Primary key column per collection.
KEY_COLUMNS: Dict[str, str] = {
    "users": "id",
    "godowns": "godown_id",
    "storage_requests": "request_id",
    "marketplace_items": "item_id",
    "sales_orders": "order_id",
    "cooperatives": "coop_id",
    "cooperative_members": "member_id",
    "tools": "tool_id",
    "tool_bookings": "booking_id",
    "trucks": "truck_id",
    "truck_bookings": "booking_id",
    "wastes": "waste_id",
    "waste_sales": "sale_id",
    "storage_items": "item_id",
}

UNIQUE_KEYS: Dict[str, Tuple[Tuple[str, ...], ...]] = {
    "users": (("email",),),
    "cooperatives": (("name",),),
    "cooperative_members": (("coop_id", "farmer_id"),),
}


def key_column(table: str) -> str:
    return KEY_COLUMNS.get(table, "id")


class RecordStore(Protocol):
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
    ) -> List[Dict[str, Any]]: ...

    def insert(self, table: str, payload: Mapping[str, Any]) -> Dict[str, Any]: ...

    def update(self, table: str, where: Mapping[str, Any], changes: Mapping[str, Any]) -> List[Dict[str, Any]]: ...

    def delete(self, table: str, where: Mapping[str, Any]) -> int: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _matches(
    row: Mapping[str, Any],
    where: Optional[Mapping[str, Any]],
    in_: Optional[Mapping[str, Sequence[Any]]],
    neq: Optional[Mapping[str, Any]],
    search: Optional[Tuple[str, str]],
) -> bool:
    for col, value in (where or {}).items():
        if row.get(col) != value:
            return False
    for col, values in (in_ or {}).items():
        if row.get(col) not in set(values):
            return False
    for col, value in (neq or {}).items():
        if row.get(col) == value:
            return False
    if search:
        col, needle = search
        if needle.lower() not in str(row.get(col) or "").lower():
            return False
    return True


def _sort_key(value: Any) -> Tuple[int, Any]:
    # None sorts last on ascending order, as Postgres does by default.
    return (1, "") if value is None else (0, value)


class InMemoryRecordStore:
    """Dict-of-lists store with generated ids and `created_at` stamps."""

    def __init__(self, seed: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None) -> None:
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        for table, rows in (seed or {}).items():
            for row in rows:
                self.insert(table, row)

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        return self._tables.setdefault(table, [])

    def _check_unique(self, table: str, candidate: Mapping[str, Any], *, skip: Optional[Dict[str, Any]] = None) -> None:
        for cols in UNIQUE_KEYS.get(table, ()):
            probe = tuple(candidate.get(c) for c in cols)
            if any(v is None for v in probe):
                continue
            for row in self._rows(table):
                if row is skip:
                    continue
                if tuple(row.get(c) for c in cols) == probe:
                    raise RemoteError(
                        f'duplicate key value violates unique constraint "{table}_{"_".join(cols)}_key"'
                    )

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
        with self._lock:
            rows = [copy.deepcopy(r) for r in self._rows(table) if _matches(r, where, in_, neq, search)]
        if order_by:
            rows.sort(key=lambda r: _sort_key(r.get(order_by)), reverse=desc)
        if limit is not None:
            rows = rows[: max(0, int(limit))]
        return rows

    def insert(self, table: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        row = dict(payload)
        row.setdefault(key_column(table), str(uuid4()))
        row.setdefault("created_at", _now_iso())
        with self._lock:
            self._check_unique(table, row)
            self._rows(table).append(row)
            return copy.deepcopy(row)

    def update(self, table: str, where: Mapping[str, Any], changes: Mapping[str, Any]) -> List[Dict[str, Any]]:
        updated: List[Dict[str, Any]] = []
        with self._lock:
            for row in self._rows(table):
                if not _matches(row, where, None, None, None):
                    continue
                self._check_unique(table, {**row, **changes}, skip=row)
                row.update(changes)
                updated.append(copy.deepcopy(row))
        return updated

    def delete(self, table: str, where: Mapping[str, Any]) -> int:
        with self._lock:
            rows = self._rows(table)
            keep = [r for r in rows if not _matches(r, where, None, None, None)]
            removed = len(rows) - len(keep)
            self._tables[table] = keep
        return removed


__all__ = ["KEY_COLUMNS", "UNIQUE_KEYS", "key_column", "RecordStore", "InMemoryRecordStore"]
