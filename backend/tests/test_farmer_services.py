"""
Waste listings, cooperatives, warechain inventory and profile edits.
"""
from __future__ import annotations

import pytest

from backend.identity_access.domain import BUYER, FARMER
from backend.marketplace.errors import AuthError, RemoteError, ValidationError
from backend.marketplace.records import InMemoryRecordStore
from backend.marketplace.services.cooperatives import CooperativeService
from backend.marketplace.services.profile import ProfileService
from backend.marketplace.services.warechain import WarechainService
from backend.marketplace.services.waste import RECOMMENDATIONS, WasteService, recommendations_for
from utils.fakes import FlakyRecords, seed_user

WASTE = {"waste_type": "dung", "quantity_kg": "300", "price": "1500", "description": "Fresh cow dung"}


# --- Waste ----------------------------------------------------------------------

def test_recommendations_cover_every_type():
    for waste_type in ("dung", "crop", "spoiled"):
        tips = recommendations_for(waste_type)
        assert tips and tips == list(RECOMMENDATIONS[waste_type])
    with pytest.raises(ValidationError) as excinfo:
        recommendations_for("plastic")
    assert excinfo.value.message == "invalid_waste_type"


def test_waste_list_update_buy():
    records = InMemoryRecordStore()
    farmer, buyer = seed_user(records, FARMER), seed_user(records, BUYER)
    svc = WasteService(records)
    waste = svc.add(farmer.id, WASTE)
    assert waste["is_sold"] is False

    updated = svc.update(farmer.id, waste["waste_id"], {**WASTE, "price": "0"})
    assert updated["price"] == 0.0

    sale = svc.buy(buyer.id, waste["waste_id"])
    assert sale["seller_id"] == farmer.id
    assert svc.list_available() == []
    assert svc.list_purchases(buyer.id)[0]["sale_id"] == sale["sale_id"]

    with pytest.raises(ValidationError) as excinfo:
        svc.buy(buyer.id, waste["waste_id"])
    assert excinfo.value.message == "waste_already_sold"
    with pytest.raises(ValidationError):
        svc.update(farmer.id, waste["waste_id"], WASTE)


def test_waste_ownership_rules():
    records = InMemoryRecordStore()
    farmer, buyer = seed_user(records, FARMER), seed_user(records, BUYER)
    svc = WasteService(records)
    waste = svc.add(farmer.id, WASTE)
    with pytest.raises(PermissionError):
        svc.buy(farmer.id, waste["waste_id"])
    with pytest.raises(PermissionError):
        svc.delete(buyer.id, waste["waste_id"])
    with pytest.raises(ValidationError):
        svc.add(farmer.id, {**WASTE, "waste_type": "plastic"})


def test_failed_waste_flag_removes_sale():
    records = FlakyRecords(fail_op="update", fail_table="wastes")
    farmer, buyer = seed_user(records, FARMER), seed_user(records, BUYER)
    svc = WasteService(records)
    waste = svc.add(farmer.id, WASTE)
    records.armed = True
    with pytest.raises(RemoteError):
        svc.buy(buyer.id, waste["waste_id"])
    assert records.select("waste_sales") == []
    assert svc.list_available()[0]["waste_id"] == waste["waste_id"]


# --- Cooperatives ---------------------------------------------------------------

def test_create_cooperative_joins_creator():
    records = InMemoryRecordStore()
    farmer = seed_user(records, FARMER)
    svc = CooperativeService(records)
    coop = svc.create(farmer.id, {"name": "Sahiwal Growers", "region": "Punjab"})
    assert coop["coop_id"] in svc.memberships(farmer.id)
    assert svc.member_count(coop["coop_id"]) == 1

    with pytest.raises(AuthError) as excinfo:
        svc.create(farmer.id, {"name": "Sahiwal Growers"})
    assert excinfo.value.message == "name_taken"


def test_join_and_leave():
    records = InMemoryRecordStore()
    founder = seed_user(records, FARMER)
    other = seed_user(records, FARMER, email="second@example.com")
    svc = CooperativeService(records)
    coop = svc.create(founder.id, {"name": "Thar Co-op"})

    svc.join(other.id, coop["coop_id"])
    assert svc.member_count(coop["coop_id"]) == 2
    with pytest.raises(AuthError) as excinfo:
        svc.join(other.id, coop["coop_id"])
    assert excinfo.value.message == "already_member"

    assert svc.leave(other.id, coop["coop_id"]) is True
    assert svc.leave(other.id, coop["coop_id"]) is False
    with pytest.raises(LookupError):
        svc.join(other.id, "missing")


def test_failed_membership_insert_removes_cooperative():
    records = FlakyRecords(fail_op="insert", fail_table="cooperative_members")
    farmer = seed_user(records, FARMER)
    records.armed = True
    with pytest.raises(RemoteError):
        CooperativeService(records).create(farmer.id, {"name": "Ghost Co-op"})
    assert records.select("cooperatives") == []


# --- Warechain ------------------------------------------------------------------

def test_warechain_inventory_summary_and_orders():
    records = InMemoryRecordStore()
    seller = seed_user(records, FARMER)
    orderer = seed_user(records, FARMER, email="orderer@example.com")
    svc = WarechainService(records)
    svc.add_item(seller.id, {"product_name": "Potatoes", "quantity_kg": "200", "price_per_kg": "40"})
    item = svc.add_item(seller.id, {"product_name": "Garlic", "quantity_kg": "50", "price_per_kg": "300"})

    summary = svc.summary(seller.id)
    assert summary.item_count == 2
    assert summary.total_quantity_kg == 250.0
    assert summary.total_value == 200 * 40 + 50 * 300

    assert {o["item_id"] for o in svc.list_offers(orderer.id)} >= {item["item_id"]}
    assert svc.list_offers(seller.id) == []

    order = svc.order_item(orderer.id, item["item_id"])
    assert order["total_price"] == 15000.0
    assert svc.orders_placed(orderer.id)[0]["order_id"] == order["order_id"]
    assert svc.sales_received(seller.id)[0]["order_id"] == order["order_id"]

    with pytest.raises(PermissionError):
        svc.order_item(seller.id, item["item_id"])
    with pytest.raises(PermissionError):
        svc.delete_item(orderer.id, item["item_id"])
    svc.delete_item(seller.id, item["item_id"])
    assert svc.summary(seller.id).item_count == 1


# --- Profile --------------------------------------------------------------------

def test_profile_update_returns_refreshed_identity():
    records = InMemoryRecordStore()
    buyer = seed_user(records, BUYER)
    updated = ProfileService(records).update(
        buyer, {"full_name": "Sana Malik", "email": "SANA@example.com", "language_preference": "ur", "phone": ""}
    )
    assert updated.full_name == "Sana Malik"
    assert updated.email == "sana@example.com"
    assert updated.language_preference == "ur"
    assert updated.phone is None
    assert updated.role == BUYER


def test_profile_update_rejects_taken_email_and_bad_language():
    records = InMemoryRecordStore()
    buyer = seed_user(records, BUYER)
    seed_user(records, FARMER)
    svc = ProfileService(records)
    with pytest.raises(AuthError) as excinfo:
        svc.update(buyer, {"full_name": "X", "email": "farmer@example.com"})
    assert excinfo.value.message == "email_taken"
    with pytest.raises(ValidationError):
        svc.update(buyer, {"full_name": "X", "email": "buyer@example.com", "language_preference": "de"})
