"""
JSON API contract.

Requirements:
- Every response is private: `Cache-Control: private, no-store`
- Wrong role -> 403 {"error": "forbidden"}
- Cross-origin writes -> 403 {"error": "forbidden", "detail": "csrf_violation"}
- Service errors use {"error": code} with the mapped status
- Body validation is FastAPI's 422
"""

import pytest

from backend.identity_access.domain import BUYER, FARMER, GODOWN_ADMIN
from backend.web import wiring
from utils.fakes import seed_godown, seed_item, seed_user
from utils.web import make_client, sign_in

pytestmark = pytest.mark.anyio("asyncio")

CROSS_SITE = {"Origin": "https://evil.example"}


def _request_body(godown_id: str) -> dict:
    return {
        "godown_id": godown_id,
        "product_name": " Wheat ",
        "quantity_kg": 500,
        "price_per_kg": 110,
        "start_date": "2024-04-01",
        "end_date": "2024-04-11",
    }


def _assert_private(r):
    assert r.headers.get("Cache-Control") == "private, no-store"


@pytest.mark.anyio
async def test_me_returns_identity_without_password():
    who = seed_user(wiring.services().records, FARMER, full_name="Ali Khan")
    async with make_client() as client:
        sign_in(client, who)
        r = await client.get("/api/me")
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == who.id
    assert body["role"] == FARMER
    assert body["full_name"] == "Ali Khan"
    assert "password_hash" not in body
    _assert_private(r)


@pytest.mark.anyio
async def test_storage_request_create_and_list():
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    godown = seed_godown(records, "admin-1")
    async with make_client() as client:
        sign_in(client, farmer)
        godowns = await client.get("/api/godowns")
        assert [g["name"] for g in godowns.json()] == ["Lahore Cold Store"]

        r = await client.post("/api/storage/requests", json=_request_body(godown["godown_id"]))
        assert r.status_code == 201
        created = r.json()
        assert created["product_name"] == "Wheat"
        assert created["status"] == "pending"
        assert created["total_storage_fee"] == 500.0
        _assert_private(r)

        listing = await client.get("/api/storage/requests")
    assert [row["request_id"] for row in listing.json()] == [created["request_id"]]


@pytest.mark.anyio
async def test_storage_request_body_validation_is_422():
    farmer = seed_user(wiring.services().records, FARMER)
    async with make_client() as client:
        sign_in(client, farmer)
        r = await client.post("/api/storage/requests", json={"godown_id": "g", "quantity_kg": -1})
    assert r.status_code == 422


@pytest.mark.anyio
@pytest.mark.parametrize("field", ["quantity_kg", "price_per_kg"])
async def test_storage_request_rejects_infinite_numbers(field):
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    godown = seed_godown(records, "admin-1")
    async with make_client() as client:
        sign_in(client, farmer)
        r = await client.post("/api/storage/requests", json={**_request_body(godown["godown_id"]), field: "inf"})
        listing = await client.get("/api/storage/requests")
    assert r.status_code == 422
    assert listing.status_code == 200
    assert listing.json() == []


@pytest.mark.anyio
async def test_storage_request_service_error_uses_envelope():
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    godown = seed_godown(records, "admin-1")
    body = {**_request_body(godown["godown_id"]), "end_date": "2024-03-01"}
    async with make_client() as client:
        sign_in(client, farmer)
        bad_dates = await client.post("/api/storage/requests", json=body)
        missing = await client.post("/api/storage/requests", json=_request_body("no-such-godown"))
    assert bad_dates.status_code == 400
    assert bad_dates.json() == {"error": "end_before_start"}
    assert missing.status_code == 404
    assert missing.json() == {"error": "not_found"}


@pytest.mark.anyio
async def test_storage_request_wrong_role_is_forbidden():
    records = wiring.services().records
    buyer = seed_user(records, BUYER)
    godown = seed_godown(records, "admin-1")
    async with make_client() as client:
        sign_in(client, buyer)
        r = await client.post("/api/storage/requests", json=_request_body(godown["godown_id"]))
        listing = await client.get("/api/storage/requests")
    assert r.status_code == 403
    assert r.json() == {"error": "forbidden"}
    assert listing.status_code == 403
    assert records.select("storage_requests") == []


@pytest.mark.anyio
async def test_cross_origin_write_is_rejected():
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    godown = seed_godown(records, "admin-1")
    async with make_client() as client:
        sign_in(client, farmer)
        r = await client.post("/api/storage/requests", json=_request_body(godown["godown_id"]), headers=CROSS_SITE)
        same = await client.post(
            "/api/storage/requests", json=_request_body(godown["godown_id"]), headers={"Origin": "https://test"}
        )
    assert r.status_code == 403
    assert r.json() == {"error": "forbidden", "detail": "csrf_violation"}
    assert same.status_code == 201
    assert len(records.select("storage_requests")) == 1


@pytest.mark.anyio
async def test_admin_approve_and_reject():
    records = wiring.services().records
    admin = seed_user(records, GODOWN_ADMIN)
    farmer = seed_user(records, FARMER)
    godown = seed_godown(records, admin.id)
    storage = wiring.services().storage
    first = storage.create_request(farmer.id, _request_body(godown["godown_id"]))
    second = storage.create_request(farmer.id, _request_body(godown["godown_id"]))
    async with make_client() as client:
        sign_in(client, admin)
        listing = await client.get("/api/storage/requests")
        assert len(listing.json()) == 2

        approved = await client.post(f"/api/requests/{first['request_id']}/approve")
        again = await client.post(f"/api/requests/{first['request_id']}/approve")
        rejected = await client.post(f"/api/requests/{second['request_id']}/reject")
    assert approved.status_code == 200
    assert approved.json()["status"] == "available"
    assert again.status_code == 400
    assert again.json() == {"error": "request_not_pending"}
    assert rejected.json() == {"request_id": second["request_id"], "status": "rejected"}


@pytest.mark.anyio
async def test_farmer_cannot_approve():
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    async with make_client() as client:
        sign_in(client, farmer)
        r = await client.post("/api/requests/whatever/approve")
    assert r.status_code == 403
    assert r.json() == {"error": "forbidden"}


@pytest.mark.anyio
async def test_other_admin_approve_is_forbidden():
    records = wiring.services().records
    owner = seed_user(records, GODOWN_ADMIN)
    stranger = seed_user(records, GODOWN_ADMIN, email="stranger@example.com")
    farmer = seed_user(records, FARMER)
    godown = seed_godown(records, owner.id)
    req = wiring.services().storage.create_request(farmer.id, _request_body(godown["godown_id"]))
    async with make_client() as client:
        sign_in(client, stranger)
        r = await client.post(f"/api/requests/{req['request_id']}/approve")
    assert r.status_code == 403
    assert r.json() == {"error": "forbidden"}


@pytest.mark.anyio
async def test_cart_endpoints_and_checkout():
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    buyer = seed_user(records, BUYER)
    item = seed_item(records, farmer.id)
    async with make_client() as client:
        sign_in(client, buyer)
        items = await client.get("/api/marketplace/items", params={"q": "basmati"})
        assert [i["item_id"] for i in items.json()] == [item["item_id"]]

        added = await client.post("/api/cart", json={"item_id": item["item_id"], "quantity_kg": 10})
        assert added.status_code == 200
        assert added.json()["total"] == 2000.0

        too_much = await client.post("/api/cart", json={"item_id": item["item_id"], "quantity_kg": 1000})
        assert too_much.status_code == 400
        assert too_much.json() == {"error": "quantity_exceeds_stock"}

        cart = await client.get("/api/cart")
        assert [line["item_id"] for line in cart.json()["items"]] == [item["item_id"]]

        done = await client.post("/api/cart/checkout")
        assert done.status_code == 201
        assert done.json()["orders"][0]["total_price"] == 2000.0

        empty = await client.post("/api/cart/checkout")
    assert empty.status_code == 400
    assert empty.json() == {"error": "cart_empty"}


@pytest.mark.anyio
async def test_cart_remove():
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    buyer = seed_user(records, BUYER)
    item = seed_item(records, farmer.id)
    async with make_client() as client:
        sign_in(client, buyer)
        await client.post("/api/cart", json={"item_id": item["item_id"]})
        r = await client.delete(f"/api/cart/{item['item_id']}")
    assert r.json() == {"items": [], "total": 0}


@pytest.mark.anyio
async def test_cart_is_buyer_only():
    farmer = seed_user(wiring.services().records, FARMER)
    async with make_client() as client:
        sign_in(client, farmer)
        r = await client.get("/api/cart")
    assert r.status_code == 403
    assert r.json() == {"error": "forbidden"}


@pytest.mark.anyio
async def test_unknown_item_is_404():
    buyer = seed_user(wiring.services().records, BUYER)
    async with make_client() as client:
        sign_in(client, buyer)
        r = await client.post("/api/cart", json={"item_id": "missing"})
    assert r.status_code == 404
    assert r.json() == {"error": "not_found"}


@pytest.mark.anyio
async def test_waste_recommendations():
    buyer = seed_user(wiring.services().records, BUYER)
    async with make_client() as client:
        sign_in(client, buyer)
        ok = await client.get("/api/waste/recommendations", params={"type": "spoiled"})
        bad = await client.get("/api/waste/recommendations", params={"type": "plastic"})
    assert ok.status_code == 200
    assert ok.json()["recommendations"][0] == "Send to a compost plant"
    _assert_private(ok)
    assert bad.status_code == 400
    assert bad.json() == {"error": "invalid_waste_type"}
