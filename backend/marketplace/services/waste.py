"""Farm waste listings, reuse recommendations and purchases."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from backend.marketplace.compensation import run_compensated
from backend.marketplace.errors import ValidationError
from backend.marketplace.pricing import positive_number
from backend.marketplace.records import RecordStore
from backend.marketplace.services.common import fetch_one, fetch_owned, location, optional_text

logger = logging.getLogger("agriverse.waste")

WASTE_TYPES: Dict[str, str] = {
    "dung": "Dung",
    "crop": "Crop waste",
    "spoiled": "Spoiled produce",
}

RECOMMENDATIONS: Dict[str, Tuple[str, ...]] = {
    "dung": ("Compost it into manure", "Feed a biogas plant", "Use on vegetable plots"),
    "crop": ("Turn it into compost", "Use as animal fodder", "Spread as mulch in orchards"),
    "spoiled": ("Send to a compost plant", "Sell as animal feed", "Convert to biogas"),
}


def recommendations_for(waste_type: str) -> List[str]:
    if waste_type not in RECOMMENDATIONS:
        raise ValidationError("invalid_waste_type")
    return list(RECOMMENDATIONS[waste_type])


def _waste_type(form: Mapping[str, Any]) -> str:
    value = str(form.get("waste_type") or "").strip()
    if value not in WASTE_TYPES:
        raise ValidationError("invalid_waste_type")
    return value


@dataclass
class WasteService:
    records: RecordStore

    def list_available(self) -> List[dict]:
        return self.records.select("wastes", where={"is_sold": False}, order_by="created_at", desc=True)

    def list_own(self, farmer_id: str) -> List[dict]:
        return self.records.select("wastes", where={"farmer_id": farmer_id}, order_by="created_at", desc=True)

    def list_purchases(self, buyer_id: str) -> List[dict]:
        return self.records.select("waste_sales", where={"buyer_id": buyer_id}, order_by="created_at", desc=True)

    def _fields(self, form: Mapping[str, Any]) -> dict:
        return {
            "waste_type": _waste_type(form),
            "quantity_kg": positive_number(form.get("quantity_kg"), "quantity_kg"),
            "price": positive_number(form.get("price"), "price", allow_zero=True),
            "description": optional_text(form, "description"),
            "suggested_use": optional_text(form, "suggested_use", max_len=200),
            **location(form),
        }

    def add(self, farmer_id: str, form: Mapping[str, Any]) -> dict:
        return self.records.insert("wastes", {"farmer_id": farmer_id, "is_sold": False, **self._fields(form)})

    def update(self, farmer_id: str, waste_id: str, form: Mapping[str, Any]) -> dict:
        waste = fetch_owned(self.records, "wastes", waste_id, "farmer_id", farmer_id)
        if waste.get("is_sold"):
            raise ValidationError("waste_already_sold")
        changes = self._fields(form)
        rows = self.records.update("wastes", {"waste_id": waste_id}, changes)
        return rows[0] if rows else {**waste, **changes}

    def delete(self, farmer_id: str, waste_id: str) -> None:
        fetch_owned(self.records, "wastes", waste_id, "farmer_id", farmer_id)
        self.records.delete("wastes", {"waste_id": waste_id})

    def buy(self, buyer_id: str, waste_id: str) -> dict:
        waste = fetch_one(self.records, "wastes", waste_id)
        if str(waste.get("farmer_id")) == str(buyer_id):
            raise PermissionError("own_waste")
        if waste.get("is_sold"):
            raise ValidationError("waste_already_sold")
        sale = {
            "waste_id": waste_id,
            "buyer_id": buyer_id,
            "seller_id": waste.get("farmer_id"),
            "total_price": float(waste.get("price") or 0),
        }

        def _mark_sold(row: dict) -> dict:
            self.records.update("wastes", {"waste_id": waste_id}, {"is_sold": True})
            return row

        created = run_compensated(
            lambda: self.records.insert("waste_sales", sale),
            _mark_sold,
            lambda row: self.records.delete("waste_sales", {"sale_id": row["sale_id"]}),
            operation="buy_waste",
        )
        logger.info("waste sold")
        return created


__all__ = ["WasteService", "WASTE_TYPES", "RECOMMENDATIONS", "recommendations_for"]
