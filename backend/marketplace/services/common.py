"""Helpers shared by the listing/booking services."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from backend.marketplace.errors import ValidationError
from backend.marketplace.records import RecordStore, key_column


def required_text(data: Mapping[str, Any], field: str, *, max_len: int = 200) -> str:
    value = str(data.get(field) or "").strip()
    if not value:
        raise ValidationError(f"missing_{field}")
    if len(value) > max_len:
        raise ValidationError(f"invalid_{field}")
    return value


def optional_text(data: Mapping[str, Any], field: str, *, max_len: int = 2000) -> Optional[str]:
    value = str(data.get(field) or "").strip()
    if not value:
        return None
    if len(value) > max_len:
        raise ValidationError(f"invalid_{field}")
    return value


def optional_coordinate(data: Mapping[str, Any], field: str, *, limit: float) -> Optional[float]:
    raw = data.get(field)
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid_{field}")
    if not -limit <= value <= limit:
        raise ValidationError(f"invalid_{field}")
    return value


def location(data: Mapping[str, Any]) -> dict:
    """Map-picker fields (`location_lat`/`location_long`) as stored columns."""
    return {
        "location_lat": optional_coordinate(data, "location_lat", limit=90.0),
        "location_long": optional_coordinate(data, "location_long", limit=180.0),
    }


def fetch_one(records: RecordStore, table: str, record_id: str) -> dict:
    """Return the row with the given primary key or raise LookupError."""
    if not record_id:
        raise LookupError(f"{table}_not_found")
    rows = records.select(table, where={key_column(table): record_id}, limit=1)
    if not rows:
        raise LookupError(f"{table}_not_found")
    return rows[0]


def fetch_owned(records: RecordStore, table: str, record_id: str, owner_column: str, owner_id: str) -> dict:
    """Like `fetch_one`, but raise PermissionError unless `owner_id` owns the row."""
    row = fetch_one(records, table, record_id)
    if str(row.get(owner_column)) != str(owner_id):
        raise PermissionError(f"not_owner:{table}")
    return row
