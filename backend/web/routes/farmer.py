"""
Farmer pages: dashboard, storage requests, cooperatives, warechain and FarmGPT.

All paths live below the farmer's prefixes, so the role router has already
turned away every other role before a handler runs. Form posts follow PRG:
the handler calls one service, pushes a toast and redirects back.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from backend.marketplace.errors import AgriVerseError
from backend.web import wiring
from backend.web.components.base import Component
from backend.web.components.cards import CardGrid, DataTable, ListingCard, MetaItem
from backend.web.components.forms import (
    CooperativeForm,
    PostButton,
    StorageRequestForm,
    SubmitButton,
    TextAreaField,
    WarechainItemForm,
)
from backend.web.ssr import (
    checked_form,
    csrf_error,
    csrf_token,
    current_user,
    describe,
    flash,
    layout_response,
    perform,
    redirect,
)

farmer_router = APIRouter(tags=["Farmer"])
logger = logging.getLogger("agriverse.web.farmer")


def _section(title: str, body: str) -> str:
    return f'<section class="page-section"><h2>{Component.escape(title)}</h2>{body}</section>'


# --- Dashboard ------------------------------------------------------------------

@farmer_router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request):
    user = current_user(request)
    svc = wiring.services()
    requests = svc.storage.list_requests_for_farmer(user.id)
    summary = svc.warechain.summary(user.id)
    memberships = svc.cooperatives.memberships(user.id)
    pending = sum(1 for r in requests if r.get("status") == "pending")
    tiles = [
        ListingCard(
            "Storage",
            meta_items=[MetaItem("Requests", str(len(requests))), MetaItem("Pending", str(pending))],
            actions_html='<a class="btn btn-secondary" href="/storage">Open storage</a>',
        ),
        ListingCard(
            "Warechain inventory",
            meta_items=[
                MetaItem("Items", str(summary.item_count)),
                MetaItem("Quantity", Component.kg(summary.total_quantity_kg)),
                MetaItem("Value", Component.amount(summary.total_value)),
            ],
            actions_html='<a class="btn btn-secondary" href="/dashboard/warechain">Open warechain</a>',
        ),
        ListingCard(
            "Cooperatives",
            meta_items=[MetaItem("Member of", str(len(memberships)))],
            actions_html='<a class="btn btn-secondary" href="/dashboard/cooperatives">Open cooperatives</a>',
        ),
        ListingCard(
            "FarmGPT",
            body_html='<p class="text-muted">Ask crop, soil and weather questions in Urdu or English.</p>',
            actions_html='<a class="btn btn-secondary" href="/dashboard/farmgpt">Ask FarmGPT</a>',
        ),
    ]
    content = f'<p class="lead">Salaam, {Component.escape(user.full_name)}.</p>{CardGrid(tiles).render()}'
    return layout_response(request, "Dashboard", content)


# --- Storage --------------------------------------------------------------------

@farmer_router.get("/storage", response_class=HTMLResponse)
async def storage_page(request: Request):
    user = current_user(request)
    svc = wiring.services()
    godowns = svc.storage.list_godowns()
    names = {g.get("godown_id"): g.get("name") for g in godowns}
    cards = [
        ListingCard(
            str(g.get("name") or ""),
            badge="available" if float(g.get("available_capacity_kg") or 0) > 0 else "full",
            meta_items=[
                MetaItem("City", str(g.get("city") or "-")),
                MetaItem("Free capacity", Component.kg(g.get("available_capacity_kg"))),
                MetaItem("Fee per day", Component.amount(g.get("storage_fee_per_day"))),
                MetaItem("Temperature control", "yes" if g.get("temperature_control") else "no"),
            ],
        )
        for g in godowns
    ]
    requests = svc.storage.list_requests_for_farmer(user.id)
    table = DataTable(
        ["Product", "Godown", "Quantity", "From", "Until", "Fee", "Status"],
        [
            [
                str(r.get("product_name") or ""),
                str(names.get(r.get("godown_id")) or "-"),
                Component.kg(r.get("quantity_kg")),
                str(r.get("start_date") or ""),
                str(r.get("end_date") or ""),
                Component.amount(r.get("total_storage_fee")),
                str(r.get("status") or ""),
            ]
            for r in requests
        ],
        empty_text="No storage requests yet.",
    )
    content = (
        _section("Godowns", CardGrid(cards, empty_text="No godowns registered yet.").render())
        + _section("Request storage", StorageRequestForm(csrf_token(request), godowns).render())
        + _section("My requests", table.render())
    )
    return layout_response(request, "Storage", content)


@farmer_router.post("/storage/requests")
async def storage_request_create(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().storage.create_request(user.id, data),
        success="Storage request sent.",
        back="/storage",
    )


# --- Cooperatives ---------------------------------------------------------------

@farmer_router.get("/dashboard/cooperatives", response_class=HTMLResponse)
async def cooperatives_page(request: Request):
    user = current_user(request)
    svc = wiring.services().cooperatives
    token = csrf_token(request)
    mine = svc.memberships(user.id)
    cards = []
    for coop in svc.list_cooperatives():
        coop_id = str(coop.get("coop_id"))
        member = coop_id in mine
        action = (
            PostButton(f"/dashboard/cooperatives/{coop_id}/leave", "Leave", token, confirm="Leave this cooperative?")
            if member
            else PostButton(f"/dashboard/cooperatives/{coop_id}/join", "Join", token, variant="primary")
        )
        cards.append(
            ListingCard(
                str(coop.get("name") or ""),
                badge="member" if member else None,
                meta_items=[
                    MetaItem("Region", str(coop.get("region") or "-")),
                    MetaItem("Members", str(svc.member_count(coop_id))),
                ],
                body_html=f'<p>{Component.escape(coop.get("description") or "")}</p>',
                actions_html=action.render(),
            )
        )
    content = _section("All cooperatives", CardGrid(cards, empty_text="No cooperatives yet.").render()) + _section(
        "Start a cooperative", CooperativeForm(token).render()
    )
    return layout_response(request, "Cooperatives", content)


@farmer_router.post("/dashboard/cooperatives")
async def cooperative_create(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().cooperatives.create(user.id, data),
        success="Cooperative created.",
        back="/dashboard/cooperatives",
    )


@farmer_router.post("/dashboard/cooperatives/{coop_id}/join")
async def cooperative_join(request: Request, coop_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().cooperatives.join(user.id, coop_id),
        success="You joined the cooperative.",
        back="/dashboard/cooperatives",
    )


@farmer_router.post("/dashboard/cooperatives/{coop_id}/leave")
async def cooperative_leave(request: Request, coop_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    if wiring.services().cooperatives.leave(user.id, coop_id):
        flash(request, "You left the cooperative.", "success")
    else:
        flash(request, "You are not a member of that cooperative.", "error")
    return redirect("/dashboard/cooperatives")


# --- Warechain ------------------------------------------------------------------

@farmer_router.get("/dashboard/warechain", response_class=HTMLResponse)
async def warechain_page(request: Request):
    user = current_user(request)
    svc = wiring.services().warechain
    token = csrf_token(request)
    summary = svc.summary(user.id)
    items = svc.list_items(user.id)
    offers = svc.list_offers(user.id)
    inventory = DataTable(
        ["Product", "Quantity", "Price/kg", "Stored at", "City"],
        [
            [
                str(i.get("product_name") or ""),
                Component.kg(i.get("quantity_kg")),
                Component.amount(i.get("price_per_kg")),
                str(i.get("godown_name") or "-"),
                str(i.get("city") or "-"),
            ]
            for i in items
        ],
        actions=[
            PostButton(f"/dashboard/warechain/items/{i.get('item_id')}/delete", "Delete", token, variant="danger",
                       confirm="Delete this item?").render()
            for i in items
        ],
        empty_text="Your inventory is empty.",
    )
    offer_cards = [
        ListingCard(
            str(o.get("product_name") or ""),
            meta_items=[
                MetaItem("Quantity", Component.kg(o.get("quantity_kg"))),
                MetaItem("Price/kg", Component.amount(o.get("price_per_kg"))),
                MetaItem("City", str(o.get("city") or "-")),
            ],
            actions_html=PostButton(
                f"/dashboard/warechain/items/{o.get('item_id')}/order", "Order", token, variant="primary"
            ).render(),
        )
        for o in offers
    ]
    sales = svc.sales_received(user.id)
    sales_table = DataTable(
        ["Product", "Quantity", "Total", "Status"],
        [
            [
                str(s.get("product_name") or ""),
                Component.kg(s.get("quantity_kg")),
                Component.amount(s.get("total_price")),
                str(s.get("payment_status") or ""),
            ]
            for s in sales
        ],
        empty_text="No sales yet.",
    )
    summary_html = ListingCard(
        "Inventory value",
        meta_items=[
            MetaItem("Items", str(summary.item_count)),
            MetaItem("Quantity", Component.kg(summary.total_quantity_kg)),
            MetaItem("Value", Component.amount(summary.total_value)),
        ],
    ).render()
    content = (
        summary_html
        + _section("My inventory", inventory.render())
        + _section("Add item", WarechainItemForm(token).render())
        + _section("Offers from other farmers", CardGrid(offer_cards, empty_text="No offers right now.").render())
        + _section("Sales received", sales_table.render())
    )
    return layout_response(request, "Warechain", content)


@farmer_router.post("/dashboard/warechain/items")
async def warechain_item_add(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().warechain.add_item(user.id, data),
        success="Item added to your inventory.",
        back="/dashboard/warechain",
    )


@farmer_router.post("/dashboard/warechain/items/{item_id}/delete")
async def warechain_item_delete(request: Request, item_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().warechain.delete_item(user.id, item_id),
        success="Item deleted.",
        back="/dashboard/warechain",
    )


@farmer_router.post("/dashboard/warechain/items/{item_id}/order")
async def warechain_item_order(request: Request, item_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().warechain.order_item(user.id, item_id),
        success="Order placed.",
        back="/dashboard/warechain",
    )


# --- FarmGPT --------------------------------------------------------------------

def _speak_button(text: str, lang: str) -> str:
    src = "/api/tts?" + urlencode({"q": text, "lang": lang})
    return (
        f'<button type="button" class="btn btn-secondary" data-action="tts-play" '
        f'data-src="{Component.escape(src)}">🔊 Listen</button>'
    )


@farmer_router.get("/dashboard/farmgpt", response_class=HTMLResponse)
async def farmgpt_page(request: Request):
    user = current_user(request)
    token = csrf_token(request)
    history = wiring.advisory().recent(user.id)
    entries = "".join(
        f"""
        <article class="card chat-entry" lang="{Component.escape(e.language)}" dir="{'rtl' if e.language == 'ur' else 'ltr'}">
            <p class="chat-question"><strong>{Component.escape(e.question)}</strong></p>
            <p class="chat-answer">{Component.escape(e.answer)}</p>
            {_speak_button(e.answer, e.language)}
        </article>"""
        for e in history
    ) or '<p class="empty-state text-muted">Ask your first question.</p>'
    form = f"""
    <form method="post" action="/dashboard/farmgpt" class="card farmgpt-form">
        {Component.csrf_input(token)}
        {TextAreaField("question", "Your question", required=True, help_text="Urdu or English").render(rows=3)}
        <div class="form-actions">{SubmitButton("Ask").render()}</div>
    </form>"""
    content = form + _section("Recent answers", entries)
    return layout_response(request, "FarmGPT", content)


@farmer_router.post("/dashboard/farmgpt")
async def farmgpt_ask(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    try:
        wiring.advisory().ask(data.get("question"), user_id=user.id)
    except AgriVerseError as exc:
        logger.info("farmgpt page ask failed reason=%s", exc.__class__.__name__)
        flash(request, describe(exc), "error")
    return redirect("/dashboard/farmgpt")


__all__ = ["farmer_router"]
