"""Price and duration arithmetic shared by the services."""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from backend.marketplace.errors import ValidationError


def parse_date(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value or "").strip()
    if not raw:
        raise ValidationError(f"missing_{field}")
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationError(f"invalid_{field}")


def days_between(start: Any, end: Any) -> int:
    """Whole days from start to end, rounded up. End must be after start."""
    s = parse_date(start, "start_date")
    e = parse_date(end, "end_date")
    seconds = (datetime.combine(e, datetime.min.time()) - datetime.combine(s, datetime.min.time())).total_seconds()
    if seconds <= 0:
        raise ValidationError("end_before_start")
    return math.ceil(seconds / 86400)


def storage_fee(start: Any, end: Any, fee_per_day: float) -> float:
    return days_between(start, end) * float(fee_per_day)


def rental_cost(start: Any, end: Any, rate_per_day: float) -> float:
    """Tool rent; a booking on a single date counts as one day."""
    s = parse_date(start, "start_date")
    e = parse_date(end or start, "end_date")
    if e < s:
        raise ValidationError("end_before_start")
    days = max(1, (e - s).days)
    return days * float(rate_per_day)


def truck_cost(estimated_km: float, cost_per_km: float) -> float:
    return float(estimated_km) * float(cost_per_km)


def line_total(row: Mapping[str, Any]) -> float:
    return float(row.get("price_per_kg") or 0) * float(row.get("quantity_kg") or 0)


def sum_lines(rows: Iterable[Mapping[str, Any]]) -> float:
    return sum(line_total(r) for r in rows)


def positive_number(value: Any, field: str, *, allow_zero: bool = False) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid_{field}")
    if not math.isfinite(number) or number < 0 or (number == 0 and not allow_zero):
        raise ValidationError(f"invalid_{field}")
    return number
