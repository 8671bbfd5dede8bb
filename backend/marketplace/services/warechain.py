"""Warechain: a farmer's own warehouse inventory and direct sales between farmers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping

from backend.marketplace.pricing import line_total, positive_number, sum_lines
from backend.marketplace.records import RecordStore
from backend.marketplace.services.common import fetch_one, fetch_owned, optional_text, required_text


@dataclass
class InventorySummary:
    item_count: int
    total_quantity_kg: float
    total_value: float


@dataclass
class WarechainService:
    records: RecordStore

    def list_items(self, farmer_id: str) -> List[dict]:
        return self.records.select("storage_items", where={"farmer_id": farmer_id}, order_by="created_at", desc=True)

    def list_offers(self, farmer_id: str) -> List[dict]:
        """Inventory of other farmers that can be ordered."""
        return self.records.select("storage_items", neq={"farmer_id": farmer_id}, order_by="created_at", desc=True)

    def summary(self, farmer_id: str) -> InventorySummary:
        items = self.list_items(farmer_id)
        return InventorySummary(
            item_count=len(items),
            total_quantity_kg=sum(float(i.get("quantity_kg") or 0) for i in items),
            total_value=sum_lines(items),
        )

    def add_item(self, farmer_id: str, form: Mapping[str, Any]) -> dict:
        row = {
            "farmer_id": farmer_id,
            "product_name": required_text(form, "product_name"),
            "quantity_kg": positive_number(form.get("quantity_kg"), "quantity_kg"),
            "price_per_kg": positive_number(form.get("price_per_kg"), "price_per_kg"),
            "godown_name": optional_text(form, "godown_name", max_len=120),
            "city": optional_text(form, "city", max_len=120),
        }
        return self.records.insert("storage_items", row)

    def delete_item(self, farmer_id: str, item_id: str) -> None:
        fetch_owned(self.records, "storage_items", item_id, "farmer_id", farmer_id)
        self.records.delete("storage_items", {"item_id": item_id})

    def order_item(self, buyer_id: str, item_id: str) -> dict:
        item = fetch_one(self.records, "storage_items", item_id)
        if str(item.get("farmer_id")) == str(buyer_id):
            raise PermissionError("own_item")
        return self.records.insert(
            "sales_orders",
            {
                "buyer_id": buyer_id,
                "farmer_id": item.get("farmer_id"),
                "item_id": item_id,
                "product_name": item.get("product_name"),
                "quantity_kg": item.get("quantity_kg"),
                "price_per_kg": item.get("price_per_kg"),
                "total_price": line_total(item),
                "payment_status": "pending",
            },
        )

    def orders_placed(self, farmer_id: str) -> List[dict]:
        return self.records.select("sales_orders", where={"buyer_id": farmer_id}, order_by="created_at", desc=True)

    def sales_received(self, farmer_id: str) -> List[dict]:
        return self.records.select("sales_orders", where={"farmer_id": farmer_id}, order_by="created_at", desc=True)
