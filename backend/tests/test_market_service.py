"""
Marketplace browsing, session cart and checkout.

Checkout invariants: an order per cart line, stock decreases or the item is
marked sold, the originating storage request follows, and a failed stock
update removes the order again.
"""
from __future__ import annotations

import pytest

from backend.identity_access.domain import BUYER, FARMER
from backend.marketplace.errors import RemoteError, ValidationError
from backend.marketplace.records import InMemoryRecordStore
from backend.marketplace.services.market import Cart, CartStore, MarketService
from utils.fakes import FlakyRecords, seed_item, seed_user


def _setup(records=None):
    records = records or InMemoryRecordStore()
    farmer = seed_user(records, FARMER)
    buyer = seed_user(records, BUYER)
    return records, MarketService(records), farmer, buyer


def test_list_available_filters_status_and_search():
    records, svc, farmer, _ = _setup()
    seed_item(records, farmer.id, product_name="Basmati rice")
    seed_item(records, farmer.id, product_name="Red onions")
    seed_item(records, farmer.id, product_name="Sold rice", status="sold")

    assert {i["product_name"] for i in svc.list_available()} == {"Basmati rice", "Red onions"}
    assert [i["product_name"] for i in svc.list_available("RICE")] == ["Basmati rice"]
    assert len(svc.list_available("   ")) == 2


def test_add_to_cart_defaults_to_full_stock():
    records, svc, farmer, buyer = _setup()
    item = seed_item(records, farmer.id)
    cart = Cart()
    line = svc.add_to_cart(cart, buyer.id, item["item_id"])
    assert line.quantity_kg == 100.0
    assert line.total == 20000.0
    assert len(cart) == 1


def test_add_to_cart_rules():
    records, svc, farmer, buyer = _setup()
    item = seed_item(records, farmer.id)
    sold = seed_item(records, farmer.id, status="sold")
    cart = Cart()

    with pytest.raises(ValidationError) as excinfo:
        svc.add_to_cart(cart, buyer.id, item["item_id"], "150")
    assert excinfo.value.message == "quantity_exceeds_stock"
    with pytest.raises(ValidationError):
        svc.add_to_cart(cart, buyer.id, sold["item_id"])
    with pytest.raises(PermissionError):
        svc.add_to_cart(cart, farmer.id, item["item_id"])
    with pytest.raises(LookupError):
        svc.add_to_cart(cart, buyer.id, "nope")
    assert len(cart) == 0


def test_cart_lines_drop_items_that_are_gone():
    records, svc, farmer, buyer = _setup()
    a = seed_item(records, farmer.id, product_name="Maize")
    b = seed_item(records, farmer.id, product_name="Cotton")
    cart = Cart()
    svc.add_to_cart(cart, buyer.id, a["item_id"], "10")
    svc.add_to_cart(cart, buyer.id, b["item_id"], "5")
    records.update("marketplace_items", {"item_id": b["item_id"]}, {"status": "sold"})

    lines = svc.cart_lines(cart)
    assert [line.product_name for line in lines] == ["Maize"]
    assert b["item_id"] not in cart.quantities
    assert svc.cart_total(cart) == 2000.0


def test_checkout_partial_quantity_reduces_stock():
    records, svc, farmer, buyer = _setup()
    item = seed_item(records, farmer.id)
    cart = Cart()
    svc.add_to_cart(cart, buyer.id, item["item_id"], "40")

    orders = svc.checkout(cart, buyer.id)

    assert len(orders) == 1
    assert orders[0]["total_price"] == 8000.0
    assert orders[0]["farmer_id"] == farmer.id
    left = records.select("marketplace_items", where={"item_id": item["item_id"]})[0]
    assert left["quantity_kg"] == 60.0
    assert left["status"] == "available"
    assert len(cart) == 0
    assert svc.list_purchases(buyer.id)[0]["order_id"] == orders[0]["order_id"]


def test_checkout_full_quantity_marks_item_and_request_sold():
    records, svc, farmer, buyer = _setup()
    req = records.insert("storage_requests", {"farmer_id": farmer.id, "status": "approved", "is_sold": False})
    item = seed_item(records, farmer.id, request_id=req["request_id"])
    cart = Cart()
    svc.add_to_cart(cart, buyer.id, item["item_id"])

    svc.checkout(cart, buyer.id)

    sold = records.select("marketplace_items", where={"item_id": item["item_id"]})[0]
    assert sold["status"] == "sold" and sold["buyer_id"] == buyer.id
    request = records.select("storage_requests", where={"request_id": req["request_id"]})[0]
    assert request["status"] == "sold"
    assert request["is_sold"] is True
    assert request["buyer_id"] == buyer.id


def test_checkout_empty_cart():
    _, svc, _, buyer = _setup()
    with pytest.raises(ValidationError) as excinfo:
        svc.checkout(Cart(), buyer.id)
    assert excinfo.value.message == "cart_empty"


def test_failed_stock_update_removes_order_and_keeps_cart():
    records = FlakyRecords(fail_op="update", fail_table="marketplace_items", message="stock update failed")
    records, svc, farmer, buyer = _setup(records)
    item = seed_item(records, farmer.id)
    cart = Cart()
    svc.add_to_cart(cart, buyer.id, item["item_id"], "10")
    records.armed = True

    with pytest.raises(RemoteError) as excinfo:
        svc.checkout(cart, buyer.id)

    assert excinfo.value.message == "stock update failed"
    assert records.select("sales_orders") == []
    assert records.select("marketplace_items")[0]["quantity_kg"] == 100.0
    assert item["item_id"] in cart.quantities


def test_cart_store_is_per_session():
    carts = CartStore()
    carts.get("s1").add("i1", 3)
    assert len(carts.get("s1")) == 1
    assert len(carts.get("s2")) == 0
    assert len(carts.get(None)) == 0
    carts.drop("s1")
    assert len(carts.get("s1")) == 0
