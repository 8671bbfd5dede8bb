"""Marketplace browsing, session cart and checkout."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from backend.marketplace.compensation import run_compensated
from backend.marketplace.errors import ValidationError
from backend.marketplace.pricing import line_total, positive_number
from backend.marketplace.records import RecordStore
from backend.marketplace.services.common import fetch_one

logger = logging.getLogger("agriverse.market")

AVAILABLE = "available"
SOLD = "sold"


@dataclass
class CartLine:
    item_id: str
    product_name: str
    quantity_kg: float
    price_per_kg: float

    @property
    def total(self) -> float:
        return line_total({"quantity_kg": self.quantity_kg, "price_per_kg": self.price_per_kg})


@dataclass
class Cart:
    """Quantities per marketplace item; lives as long as the browser session."""

    quantities: Dict[str, float] = field(default_factory=dict)

    def add(self, item_id: str, quantity_kg: float) -> None:
        self.quantities[item_id] = quantity_kg

    def remove(self, item_id: str) -> None:
        self.quantities.pop(item_id, None)

    def clear(self) -> None:
        self.quantities.clear()

    def __len__(self) -> int:
        return len(self.quantities)


class CartStore:
    """Carts keyed by session id."""

    def __init__(self) -> None:
        self._carts: Dict[str, Cart] = {}

    def get(self, session_id: Optional[str]) -> Cart:
        if not session_id:
            return Cart()
        return self._carts.setdefault(session_id, Cart())

    def drop(self, session_id: Optional[str]) -> None:
        if session_id:
            self._carts.pop(session_id, None)


@dataclass
class MarketService:
    records: RecordStore

    def list_available(self, search: Optional[str] = None) -> List[dict]:
        term = (search or "").strip()
        return self.records.select(
            "marketplace_items",
            where={"status": AVAILABLE},
            search=("product_name", term) if term else None,
            order_by="created_at",
            desc=True,
        )

    def list_purchases(self, buyer_id: str) -> List[dict]:
        return self.records.select("sales_orders", where={"buyer_id": buyer_id}, order_by="created_at", desc=True)

    def add_to_cart(self, cart: Cart, buyer_id: str, item_id: str, quantity: Any = None) -> CartLine:
        item = fetch_one(self.records, "marketplace_items", item_id)
        if item.get("status") != AVAILABLE:
            raise ValidationError("item_not_available")
        if str(item.get("farmer_id")) == str(buyer_id):
            raise PermissionError("own_item")
        stock = float(item.get("quantity_kg") or 0)
        wanted = stock if quantity in (None, "") else positive_number(quantity, "quantity_kg")
        if wanted > stock:
            raise ValidationError("quantity_exceeds_stock")
        cart.add(item_id, wanted)
        return CartLine(item_id, str(item.get("product_name") or ""), wanted, float(item.get("price_per_kg") or 0))

    def cart_lines(self, cart: Cart) -> List[CartLine]:
        """Current lines; items that are gone or sold drop out of the cart."""
        if not cart.quantities:
            return []
        rows = {
            r["item_id"]: r
            for r in self.records.select("marketplace_items", in_={"item_id": list(cart.quantities)})
        }
        lines: List[CartLine] = []
        for item_id, qty in list(cart.quantities.items()):
            row = rows.get(item_id)
            if not row or row.get("status") != AVAILABLE:
                cart.remove(item_id)
                continue
            lines.append(CartLine(item_id, str(row.get("product_name") or ""), qty, float(row.get("price_per_kg") or 0)))
        return lines

    def cart_total(self, cart: Cart) -> float:
        return sum(line.total for line in self.cart_lines(cart))

    def _buy_line(self, buyer_id: str, line: CartLine) -> dict:
        item = fetch_one(self.records, "marketplace_items", line.item_id)
        if item.get("status") != AVAILABLE:
            raise ValidationError("item_not_available")
        stock = float(item.get("quantity_kg") or 0)
        if line.quantity_kg > stock:
            raise ValidationError("quantity_exceeds_stock")
        remaining = stock - line.quantity_kg
        where = {"item_id": line.item_id}
        if remaining > 0:
            changes: Dict[str, Any] = {"quantity_kg": remaining}
        else:
            changes = {"status": SOLD, "buyer_id": buyer_id}
        order = {
            "buyer_id": buyer_id,
            "farmer_id": item.get("farmer_id"),
            "item_id": line.item_id,
            "product_name": item.get("product_name"),
            "quantity_kg": line.quantity_kg,
            "price_per_kg": float(item.get("price_per_kg") or 0),
            "total_price": line_total({"quantity_kg": line.quantity_kg, "price_per_kg": item.get("price_per_kg")}),
            "payment_status": "pending",
        }

        def _settle_item(row: dict) -> dict:
            self.records.update("marketplace_items", where, changes)
            return row

        created = run_compensated(
            lambda: self.records.insert("sales_orders", order),
            _settle_item,
            lambda row: self.records.delete("sales_orders", {"order_id": row["order_id"]}),
            operation="checkout_line",
        )
        if remaining <= 0 and item.get("request_id"):
            self.records.update(
                "storage_requests",
                {"request_id": item["request_id"]},
                {"status": SOLD, "is_sold": True, "buyer_id": buyer_id},
            )
        return created

    def checkout(self, cart: Cart, buyer_id: str) -> List[dict]:
        """Buy every line; purchased lines leave the cart, a failure stops the run."""
        lines = self.cart_lines(cart)
        if not lines:
            raise ValidationError("cart_empty")
        orders: List[dict] = []
        for line in lines:
            orders.append(self._buy_line(buyer_id, line))
            cart.remove(line.item_id)
        logger.info("checkout completed lines=%s", len(orders))
        return orders


__all__ = ["Cart", "CartLine", "CartStore", "MarketService", "AVAILABLE", "SOLD"]
