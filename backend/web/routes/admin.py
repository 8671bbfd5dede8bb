"""
Godown administrator pages: overview, storage requests, godowns and listings.

Only the administrator of a request's godown may approve or reject it; the
storage service enforces that, these handlers only translate the outcome
into toasts.
"""

from __future__ import annotations

from collections import Counter

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from backend.marketplace.services.storage import PENDING
from backend.web import wiring
from backend.web.components.base import Component
from backend.web.components.cards import CardGrid, DataTable, ListingCard, MetaItem
from backend.web.components.forms import GodownForm, PostButton
from backend.web.ssr import checked_form, csrf_error, csrf_token, current_user, layout_response, perform

admin_router = APIRouter(tags=["Godown admin"])


@admin_router.get("/admin", response_class=HTMLResponse)
async def admin_home(request: Request):
    user = current_user(request)
    svc = wiring.services().storage
    godowns = svc.list_admin_godowns(user.id)
    statuses = Counter(str(r.get("status")) for r in svc.list_requests_for_admin(user.id))
    listings = svc.list_market_items_for_admin(user.id)
    overview = ListingCard(
        "Overview",
        meta_items=[
            MetaItem("Godowns", str(len(godowns))),
            MetaItem("Pending requests", str(statuses.get(PENDING, 0))),
            MetaItem("Approved", str(statuses.get("approved", 0))),
            MetaItem("Rejected", str(statuses.get("rejected", 0))),
            MetaItem("Marketplace listings", str(len(listings))),
        ],
        actions_html='<a class="btn btn-primary" href="/requests">Review requests</a>',
    )
    return layout_response(request, "Godown admin", overview.render())


@admin_router.get("/requests", response_class=HTMLResponse)
async def requests_page(request: Request):
    user = current_user(request)
    token = csrf_token(request)
    svc = wiring.services().storage
    names = {g.get("godown_id"): g.get("name") for g in svc.list_admin_godowns(user.id)}
    rows = svc.list_requests_for_admin(user.id)
    actions = []
    for r in rows:
        if r.get("status") == PENDING:
            request_id = r.get("request_id")
            actions.append(
                PostButton(f"/requests/{request_id}/approve", "Approve", token, variant="primary").render()
                + PostButton(f"/requests/{request_id}/reject", "Reject", token, variant="danger",
                             confirm="Reject this request?").render()
            )
        else:
            actions.append("")
    table = DataTable(
        ["Product", "Godown", "Quantity", "Price/kg", "From", "Until", "Fee", "Status"],
        [
            [
                str(r.get("product_name") or ""),
                str(names.get(r.get("godown_id")) or "-"),
                Component.kg(r.get("quantity_kg")),
                Component.amount(r.get("price_per_kg")),
                str(r.get("start_date") or ""),
                str(r.get("end_date") or ""),
                Component.amount(r.get("total_storage_fee")),
                str(r.get("status") or ""),
            ]
            for r in rows
        ],
        actions=actions,
        empty_text="No storage requests for your godowns.",
    )
    return layout_response(request, "Storage requests", table.render())


@admin_router.post("/requests/{request_id}/approve")
async def request_approve(request: Request, request_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().storage.approve(user.id, request_id),
        success="Request approved and listed on the marketplace.",
        back="/requests",
    )


@admin_router.post("/requests/{request_id}/reject")
async def request_reject(request: Request, request_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().storage.reject(user.id, request_id),
        success="Request rejected.",
        back="/requests",
    )


@admin_router.get("/godowns", response_class=HTMLResponse)
async def godowns_page(request: Request):
    user = current_user(request)
    token = csrf_token(request)
    cards = [
        ListingCard(
            str(g.get("name") or ""),
            meta_items=[
                MetaItem("City", str(g.get("city") or "-")),
                MetaItem("Address", str(g.get("address") or "-")),
                MetaItem("Phone", str(g.get("phone") or "-")),
            ],
            body_html=GodownForm(token, values=g, action=f"/godowns/{g.get('godown_id')}").render(),
        )
        for g in wiring.services().storage.list_admin_godowns(user.id)
    ]
    return layout_response(request, "My godowns", CardGrid(cards, empty_text="You have no godowns yet.").render())


@admin_router.post("/godowns/{godown_id}")
async def godown_update(request: Request, godown_id: str):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().storage.update_godown(user.id, godown_id, data),
        success="Godown updated.",
        back="/godowns",
    )


@admin_router.get("/market", response_class=HTMLResponse)
async def market_page(request: Request):
    user = current_user(request)
    items = wiring.services().storage.list_market_items_for_admin(user.id)
    table = DataTable(
        ["Product", "Quantity", "Price/kg", "Status"],
        [
            [
                str(i.get("product_name") or ""),
                Component.kg(i.get("quantity_kg")),
                Component.amount(i.get("price_per_kg")),
                str(i.get("status") or ""),
            ]
            for i in items
        ],
        empty_text="Nothing from your godowns is listed yet.",
    )
    return layout_response(request, "Marketplace listings", table.render())


__all__ = ["admin_router"]
