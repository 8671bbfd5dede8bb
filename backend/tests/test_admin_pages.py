"""
Godown administrator pages.

Requirements:
- /requests lists only requests for the admin's own godowns
- approve lists the produce on the marketplace; reject does not
- decided requests cannot be decided again
- another admin cannot decide a request (toast, no state change)
- /godowns updates capacity and fee of owned godowns only
"""

import pytest

from backend.identity_access.domain import FARMER, GODOWN_ADMIN
from backend.web import wiring
from utils.fakes import seed_godown, seed_user
from utils.web import csrf_for, make_client, sign_in

pytestmark = pytest.mark.anyio("asyncio")

REQUEST = {
    "product_name": "Potatoes",
    "quantity_kg": "1000",
    "price_per_kg": "45",
    "start_date": "2024-05-01",
    "end_date": "2024-05-21",
}


async def _post(client, sid: str, path: str, data: dict | None = None):
    payload = {"csrf_token": csrf_for(sid), **(data or {})}
    return await client.post(path, data=payload, follow_redirects=False)


def _setup():
    records = wiring.services().records
    admin = seed_user(records, GODOWN_ADMIN, full_name="Bilal")
    farmer = seed_user(records, FARMER)
    godown = seed_godown(records, admin.id)
    request = wiring.services().storage.create_request(farmer.id, {**REQUEST, "godown_id": godown["godown_id"]})
    return records, admin, farmer, godown, request


@pytest.mark.anyio
async def test_admin_home_counts_requests():
    _, admin, _, _, _ = _setup()
    async with make_client() as client:
        sign_in(client, admin)
        r = await client.get("/admin")
    assert r.status_code == 200
    assert "Pending requests" in r.text
    assert 'href="/requests"' in r.text


@pytest.mark.anyio
async def test_requests_page_lists_pending_with_actions():
    _, admin, _, _, request = _setup()
    async with make_client() as client:
        sign_in(client, admin)
        r = await client.get("/requests")
    assert "Potatoes" in r.text
    assert "Lahore Cold Store" in r.text
    assert "Rs 1,000.00" in r.text
    assert f'action="/requests/{request["request_id"]}/approve"' in r.text


@pytest.mark.anyio
async def test_approve_lists_item_on_marketplace():
    records, admin, farmer, _, request = _setup()
    async with make_client() as client:
        sid = sign_in(client, admin)
        r = await _post(client, sid, f"/requests/{request['request_id']}/approve")
        assert r.status_code == 303
        assert r.headers.get("location") == "/requests"
        page = await client.get("/requests")
        assert "Request approved and listed on the marketplace." in page.text
        listings = await client.get("/market")

    assert records.select("storage_requests")[0]["status"] == "approved"
    items = records.select("marketplace_items")
    assert len(items) == 1
    assert items[0]["farmer_id"] == farmer.id
    assert items[0]["request_id"] == request["request_id"]
    assert "Potatoes" in listings.text


@pytest.mark.anyio
async def test_reject_then_second_decision_is_refused():
    records, admin, _, _, request = _setup()
    async with make_client() as client:
        sid = sign_in(client, admin)
        await _post(client, sid, f"/requests/{request['request_id']}/reject")
        assert records.select("storage_requests")[0]["status"] == "rejected"
        await _post(client, sid, f"/requests/{request['request_id']}/approve")
        page = await client.get("/requests")
    assert "This request has already been decided." in page.text
    assert records.select("marketplace_items") == []


@pytest.mark.anyio
async def test_other_admin_cannot_decide_request():
    records, _, _, _, request = _setup()
    stranger = seed_user(records, GODOWN_ADMIN, email="other-admin@example.com")
    async with make_client() as client:
        sid = sign_in(client, stranger)
        listing = await client.get("/requests")
        assert "Potatoes" not in listing.text
        await _post(client, sid, f"/requests/{request['request_id']}/approve")
        page = await client.get("/requests")
    assert "You are not allowed to do that." in page.text
    assert records.select("storage_requests")[0]["status"] == "pending"


@pytest.mark.anyio
async def test_godown_update_and_validation():
    records, admin, _, godown, _ = _setup()
    path = f"/godowns/{godown['godown_id']}"
    async with make_client() as client:
        sid = sign_in(client, admin)
        page = await client.get("/godowns")
        assert f'action="{path}"' in page.text

        await _post(
            client, sid, path,
            {"total_capacity_kg": "12000", "available_capacity_kg": "9000", "storage_fee_per_day": "60",
             "temperature_control": "on"},
        )
        page = await client.get("/godowns")
        assert "Godown updated." in page.text

        await _post(
            client, sid, path,
            {"total_capacity_kg": "100", "available_capacity_kg": "500", "storage_fee_per_day": "60"},
        )
    row = records.select("godowns")[0]
    assert row["total_capacity_kg"] == 12000.0
    assert row["storage_fee_per_day"] == 60.0
    assert row["temperature_control"] is True
    assert row["humidity_control"] is False


@pytest.mark.anyio
async def test_admin_can_browse_marketplace_but_not_list_tools():
    records, admin, _, _, _ = _setup()
    async with make_client() as client:
        sid = sign_in(client, admin)
        browse = await client.get("/marketplace/tools", follow_redirects=False)
        assert browse.status_code == 200
        assert 'action="/marketplace/tools"' not in browse.text
        r = await _post(
            client, sid, "/marketplace/tools",
            {"tool_name": "Harrow", "tool_type": "tillage", "rent_price_per_day": "500"},
        )
        assert r.status_code == 303
        page = await client.get("/marketplace/tools")
    assert "You are not allowed to do that." in page.text
    assert records.select("tools") == []
