"""
Price arithmetic and the compensating two-step write helper.
"""
from __future__ import annotations

from datetime import date

import pytest

from backend.marketplace.compensation import run_compensated
from backend.marketplace.errors import RemoteError, ValidationError
from backend.marketplace.pricing import (
    days_between,
    positive_number,
    rental_cost,
    storage_fee,
    sum_lines,
    truck_cost,
)


def test_storage_fee_counts_whole_days():
    assert days_between("2024-03-01", "2024-03-11") == 10
    assert storage_fee("2024-03-01", "2024-03-11", 50) == 500.0
    assert storage_fee(date(2024, 3, 1), date(2024, 3, 2), 12.5) == 12.5


@pytest.mark.parametrize(
    "start,end,code",
    [
        ("2024-03-10", "2024-03-10", "end_before_start"),
        ("2024-03-10", "2024-03-01", "end_before_start"),
        ("", "2024-03-01", "missing_start_date"),
        ("2024-03-01", "soon", "invalid_end_date"),
    ],
)
def test_storage_fee_rejects_bad_ranges(start, end, code):
    with pytest.raises(ValidationError) as excinfo:
        storage_fee(start, end, 10)
    assert excinfo.value.message == code


def test_rental_cost_same_day_is_one_day():
    assert rental_cost("2024-05-01", "2024-05-01", 800) == 800.0
    assert rental_cost("2024-05-01", None, 800) == 800.0
    assert rental_cost("2024-05-01", "2024-05-04", 800) == 2400.0
    with pytest.raises(ValidationError):
        rental_cost("2024-05-04", "2024-05-01", 800)


def test_truck_cost_and_line_sums():
    assert truck_cost(120, 55.5) == 6660.0
    lines = [{"quantity_kg": 10, "price_per_kg": 200}, {"quantity_kg": 2.5, "price_per_kg": 40}]
    assert sum_lines(lines) == 2100.0


def test_positive_number():
    assert positive_number("12.5", "price") == 12.5
    assert positive_number("0", "price", allow_zero=True) == 0.0
    for bad in ("0", "-1", "abc", None, "nan", "inf", "-inf", "1e999"):
        with pytest.raises(ValidationError):
            positive_number(bad, "price")


def test_run_compensated_returns_second_result():
    assert run_compensated(lambda: 1, lambda first: first + 1, lambda first: None, operation="t") == 2


def test_run_compensated_undoes_and_reraises_with_original_message():
    undone = []

    def second(_):
        raise RemoteError("violates check constraint")

    with pytest.raises(RemoteError) as excinfo:
        run_compensated(lambda: "row-1", second, undone.append, operation="t")
    assert excinfo.value.message == "violates check constraint"
    assert undone == ["row-1"]


def test_run_compensated_keeps_original_error_when_undo_fails():
    def second(_):
        raise ValueError("second failed")

    def undo(_):
        raise RuntimeError("undo failed too")

    with pytest.raises(RemoteError) as excinfo:
        run_compensated(lambda: None, second, undo, operation="t")
    assert excinfo.value.message == "second failed"


def test_run_compensated_first_failure_propagates_untouched():
    def first():
        raise RemoteError("insert failed")

    undone = []
    with pytest.raises(RemoteError):
        run_compensated(first, lambda _: None, undone.append, operation="t")
    assert undone == []
