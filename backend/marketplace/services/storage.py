"""Storage services: farmer storage requests and the godown admin's decisions.

Why:
    A farmer asks a godown to store produce; the godown's administrator
    approves (which lists the produce on the marketplace) or rejects. Both
    sides live here so the request status machine has one owner:

        pending -> approved | rejected ; approved -> sold (on checkout)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping

from backend.marketplace.compensation import run_compensated
from backend.marketplace.errors import ValidationError
from backend.marketplace.pricing import positive_number, storage_fee
from backend.marketplace.records import RecordStore
from backend.marketplace.services.common import fetch_one, fetch_owned, optional_text, required_text

logger = logging.getLogger("agriverse.storage")

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
SOLD = "sold"


@dataclass
class StorageService:
    records: RecordStore

    # --- Farmer side ---------------------------------------------------------

    def list_godowns(self) -> List[dict]:
        return self.records.select("godowns", order_by="name")

    def list_requests_for_farmer(self, farmer_id: str) -> List[dict]:
        return self.records.select(
            "storage_requests", where={"farmer_id": farmer_id}, order_by="created_at", desc=True
        )

    def create_request(self, farmer_id: str, form: Mapping[str, Any]) -> dict:
        godown_id = required_text(form, "godown_id")
        product = required_text(form, "product_name")
        quantity = positive_number(form.get("quantity_kg"), "quantity_kg")
        price = positive_number(form.get("price_per_kg"), "price_per_kg")
        start, end = form.get("start_date"), form.get("end_date")
        godown = fetch_one(self.records, "godowns", godown_id)
        fee = storage_fee(start, end, float(godown.get("storage_fee_per_day") or 0))
        row = {
            "farmer_id": farmer_id,
            "godown_id": godown_id,
            "product_name": product,
            "quantity_kg": quantity,
            "price_per_kg": price,
            "start_date": str(start)[:10],
            "end_date": str(end)[:10],
            "temperature_required": optional_text(form, "temperature_required", max_len=50),
            "humidity_required": optional_text(form, "humidity_required", max_len=50),
            "total_storage_fee": fee,
            "status": PENDING,
            "is_sold": False,
            "buyer_id": None,
        }
        created = self.records.insert("storage_requests", row)
        logger.info("storage request created godown=%s", godown_id)
        return created

    # --- Godown admin side ---------------------------------------------------

    def list_admin_godowns(self, admin_id: str) -> List[dict]:
        return self.records.select("godowns", where={"admin_id": admin_id}, order_by="name")

    def _admin_godown_ids(self, admin_id: str) -> List[str]:
        return [g["godown_id"] for g in self.list_admin_godowns(admin_id)]

    def list_requests_for_admin(self, admin_id: str) -> List[dict]:
        ids = self._admin_godown_ids(admin_id)
        if not ids:
            return []
        return self.records.select(
            "storage_requests", in_={"godown_id": ids}, order_by="created_at", desc=True
        )

    def list_market_items_for_admin(self, admin_id: str) -> List[dict]:
        ids = self._admin_godown_ids(admin_id)
        if not ids:
            return []
        return self.records.select(
            "marketplace_items", in_={"godown_id": ids}, order_by="created_at", desc=True
        )

    def _pending_request_for_admin(self, admin_id: str, request_id: str) -> dict:
        request = fetch_one(self.records, "storage_requests", request_id)
        # Only the administrator of the request's godown may decide it.
        fetch_owned(self.records, "godowns", str(request.get("godown_id") or ""), "admin_id", admin_id)
        if request.get("status") != PENDING:
            raise ValidationError("request_not_pending")
        return request

    def approve(self, admin_id: str, request_id: str) -> dict:
        """Approve and list the produce; a failing listing reverts the approval."""
        request = self._pending_request_for_admin(admin_id, request_id)
        where = {"request_id": request_id}

        def _list_item(_: Any) -> dict:
            return self.records.insert(
                "marketplace_items",
                {
                    "godown_id": request["godown_id"],
                    "farmer_id": request["farmer_id"],
                    "request_id": request_id,
                    "product_name": request["product_name"],
                    "quantity_kg": request["quantity_kg"],
                    "price_per_kg": request["price_per_kg"],
                    "status": "available",
                    "buyer_id": None,
                },
            )

        item = run_compensated(
            lambda: self.records.update("storage_requests", where, {"status": APPROVED}),
            _list_item,
            lambda _: self.records.update("storage_requests", where, {"status": PENDING}),
            operation="approve_request",
        )
        logger.info("storage request approved")
        return item

    def reject(self, admin_id: str, request_id: str) -> None:
        self._pending_request_for_admin(admin_id, request_id)
        self.records.update("storage_requests", {"request_id": request_id}, {"status": REJECTED})
        logger.info("storage request rejected")

    def update_godown(self, admin_id: str, godown_id: str, form: Mapping[str, Any]) -> dict:
        godown = fetch_owned(self.records, "godowns", godown_id, "admin_id", admin_id)
        total = positive_number(form.get("total_capacity_kg", godown.get("total_capacity_kg")), "total_capacity_kg")
        available = positive_number(
            form.get("available_capacity_kg", godown.get("available_capacity_kg")),
            "available_capacity_kg",
            allow_zero=True,
        )
        if available > total:
            raise ValidationError("available_exceeds_total")
        changes = {
            "total_capacity_kg": total,
            "available_capacity_kg": available,
            "storage_fee_per_day": positive_number(
                form.get("storage_fee_per_day", godown.get("storage_fee_per_day")), "storage_fee_per_day"
            ),
            "temperature_control": bool(form.get("temperature_control")),
            "humidity_control": bool(form.get("humidity_control")),
        }
        rows = self.records.update("godowns", {"godown_id": godown_id}, changes)
        return rows[0] if rows else {**godown, **changes}


__all__ = ["StorageService", "PENDING", "APPROVED", "REJECTED", "SOLD"]
