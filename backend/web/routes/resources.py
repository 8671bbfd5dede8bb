"""
Shared marketplaces below `/marketplace`: produce, tools, trucks and waste.

Farmers and buyers both reach these pages. Listing and booking is open to
both roles; waste can only be listed by farmers. Godown administrators can
browse (their `/market` prefix also covers `/marketplace`) but not write.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from backend.identity_access.domain import BUYER, FARMER, Identity
from backend.marketplace.errors import AgriVerseError
from backend.marketplace.services.waste import WASTE_TYPES, recommendations_for
from backend.web import wiring
from backend.web.components.base import Component
from backend.web.components.cards import CardGrid, DataTable, ListingCard, MetaItem
from backend.web.components.forms import (
    AddToCartForm,
    PostButton,
    ToolBookingForm,
    ToolForm,
    TruckBookingForm,
    TruckForm,
    WasteForm,
)
from backend.web.ssr import (
    checked_form,
    csrf_error,
    csrf_token,
    current_user,
    describe,
    fail_and_redirect,
    layout_response,
    perform,
    require_role,
)

resources_router = APIRouter(tags=["Marketplace"])

TOOLS = "/marketplace/tools"
TRUCKS = "/marketplace/trucks"
WASTE = "/marketplace/waste"


def _section(title: str, body: str) -> str:
    return f'<section class="page-section"><h2>{Component.escape(title)}</h2>{body}</section>'


def _location(row: dict) -> str:
    lat, lng = row.get("location_lat"), row.get("location_long")
    if lat is None or lng is None:
        return "-"
    return f"{float(lat):.4f}, {float(lng):.4f}"


def _mine(row: dict, column: str, user: Optional[Identity]) -> bool:
    return user is not None and str(row.get(column)) == user.id


def _writer(request: Request, *roles: str) -> Optional[Identity]:
    return require_role(request, *(roles or (FARMER, BUYER)))


# --- Produce --------------------------------------------------------------------

@resources_router.get("/marketplace", response_class=HTMLResponse)
async def marketplace_page(request: Request, q: str = ""):
    user = current_user(request)
    token = csrf_token(request)
    items = wiring.services().market.list_available(q)
    cards = []
    for item in items:
        actions = ""
        if user is not None and user.role == BUYER:
            actions = AddToCartForm(token, str(item.get("item_id")), float(item.get("quantity_kg") or 0)).render()
        cards.append(
            ListingCard(
                str(item.get("product_name") or ""),
                badge=str(item.get("status") or ""),
                meta_items=[
                    MetaItem("Quantity", Component.kg(item.get("quantity_kg"))),
                    MetaItem("Price/kg", Component.amount(item.get("price_per_kg"))),
                ],
                actions_html=actions,
            )
        )
    search = f"""
    <form method="get" action="/marketplace" class="search-form" role="search">
        <label for="q" class="sr-only">Search produce</label>
        <input id="q" name="q" type="search" class="form-input" value="{Component.escape(q)}" placeholder="Search produce">
        <button type="submit" class="btn btn-secondary">Search</button>
    </form>"""
    empty = "No produce matches your search." if q else "No produce on offer right now."
    return layout_response(request, "Marketplace", search + CardGrid(cards, empty_text=empty).render())


# --- Tools ----------------------------------------------------------------------

@resources_router.get(TOOLS, response_class=HTMLResponse)
async def tools_page(request: Request):
    user = current_user(request)
    token = csrf_token(request)
    svc = wiring.services().tools
    can_write = _writer(request) is not None
    cards = []
    for tool in svc.list_tools():
        tool_id = str(tool.get("tool_id"))
        if _mine(tool, "owner_id", user):
            actions = PostButton(f"{TOOLS}/{tool_id}/delete", "Delete", token, variant="danger",
                                 confirm="Delete this tool?").render()
        elif can_write and tool.get("availability_status") == "available":
            actions = ToolBookingForm(token, action=f"{TOOLS}/{tool_id}/book").render()
        else:
            actions = ""
        cards.append(
            ListingCard(
                str(tool.get("tool_name") or ""),
                badge=str(tool.get("availability_status") or ""),
                meta_items=[
                    MetaItem("Type", str(tool.get("tool_type") or "-")),
                    MetaItem("Rent per day", Component.amount(tool.get("rent_price_per_day"))),
                    MetaItem("Location", _location(tool)),
                ],
                actions_html=actions,
            )
        )
    content = _section("Available tools", CardGrid(cards, empty_text="No tools listed yet.").render())
    if can_write:
        bookings = svc.list_bookings(user.id)
        table = DataTable(
            ["From", "Until", "Cost", "Status"],
            [[str(b.get("start_date") or ""), str(b.get("end_date") or ""), Component.amount(b.get("total_cost")),
              str(b.get("payment_status") or "")] for b in bookings],
            actions=[PostButton(f"{TOOLS}/bookings/{b.get('booking_id')}/cancel", "Cancel", token).render()
                     for b in bookings],
            empty_text="No tool bookings.",
        )
        content += _section("List a tool", ToolForm(token).render()) + _section("My bookings", table.render())
    return layout_response(request, "Tools", content)


@resources_router.post(TOOLS)
async def tool_add(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = _writer(request)
    if user is None:
        return fail_and_redirect(request, PermissionError("forbidden"), TOOLS)
    return perform(request, lambda: wiring.services().tools.add_tool(user.id, data), success="Tool listed.", back=TOOLS)


@resources_router.post(TOOLS + "/{tool_id}/delete")
async def tool_delete(request: Request, tool_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(request, lambda: wiring.services().tools.delete_tool(user.id, tool_id), success="Tool deleted.", back=TOOLS)


@resources_router.post(TOOLS + "/{tool_id}/book")
async def tool_book(request: Request, tool_id: str):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = _writer(request)
    if user is None:
        return fail_and_redirect(request, PermissionError("forbidden"), TOOLS)
    return perform(request, lambda: wiring.services().tools.book(user.id, tool_id, data), success="Tool booked.", back=TOOLS)


@resources_router.post(TOOLS + "/bookings/{booking_id}/cancel")
async def tool_booking_cancel(request: Request, booking_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().tools.cancel_booking(user.id, booking_id),
        success="Booking cancelled.",
        back=TOOLS,
    )


# --- Trucks ---------------------------------------------------------------------

@resources_router.get(TRUCKS, response_class=HTMLResponse)
async def trucks_page(request: Request):
    user = current_user(request)
    token = csrf_token(request)
    svc = wiring.services().trucks
    can_write = _writer(request) is not None
    cards = []
    for truck in svc.list_trucks():
        truck_id = str(truck.get("truck_id"))
        if _mine(truck, "owner_id", user):
            actions = (
                f'<a class="btn btn-secondary" href="{TRUCKS}/{Component.escape(truck_id)}/edit">Edit</a>'
                + PostButton(f"{TRUCKS}/{truck_id}/delete", "Delete", token, variant="danger",
                             confirm="Delete this truck?").render()
            )
        elif can_write and truck.get("availability") == "available":
            actions = TruckBookingForm(token, action=f"{TRUCKS}/{truck_id}/book").render()
        else:
            actions = ""
        route = " → ".join(p for p in (truck.get("route_from"), truck.get("route_to")) if p) or "-"
        cards.append(
            ListingCard(
                str(truck.get("vehicle_number") or ""),
                badge=str(truck.get("availability") or ""),
                meta_items=[
                    MetaItem("Driver", str(truck.get("driver_name") or "-")),
                    MetaItem("Phone", str(truck.get("driver_phone") or "-")),
                    MetaItem("Route", route),
                    MetaItem("Capacity", Component.kg(truck.get("capacity_kg"))),
                    MetaItem("Cost per km", Component.amount(truck.get("cost_per_km"))),
                    MetaItem("Location", _location(truck)),
                ],
                actions_html=actions,
            )
        )
    content = _section("Available trucks", CardGrid(cards, empty_text="No trucks listed yet.").render())
    if can_write:
        bookings = svc.list_bookings(user.id)
        table = DataTable(
            ["Pickup", "Destination", "Distance", "Cost", "Status"],
            [[str(b.get("pickup") or ""), str(b.get("destination") or ""), f"{float(b.get('estimated_km') or 0):g} km",
              Component.amount(b.get("total_cost")), str(b.get("payment_status") or "")] for b in bookings],
            actions=[PostButton(f"{TRUCKS}/bookings/{b.get('booking_id')}/cancel", "Cancel", token).render()
                     for b in bookings],
            empty_text="No truck bookings.",
        )
        content += _section("List a truck", TruckForm(token).render()) + _section("My bookings", table.render())
    return layout_response(request, "Trucks", content)


@resources_router.post(TRUCKS)
async def truck_add(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = _writer(request)
    if user is None:
        return fail_and_redirect(request, PermissionError("forbidden"), TRUCKS)
    return perform(request, lambda: wiring.services().trucks.add_truck(user.id, data), success="Truck listed.", back=TRUCKS)


@resources_router.get(TRUCKS + "/{truck_id}/edit", response_class=HTMLResponse)
async def truck_edit_page(request: Request, truck_id: str):
    user = current_user(request)
    try:
        truck = next(t for t in wiring.services().trucks.list_trucks() if str(t.get("truck_id")) == truck_id)
    except StopIteration:
        return fail_and_redirect(request, LookupError("trucks_not_found"), TRUCKS)
    if not _mine(truck, "owner_id", user):
        return fail_and_redirect(request, PermissionError("forbidden"), TRUCKS)
    form = TruckForm(csrf_token(request), values=truck, action=f"{TRUCKS}/{truck_id}")
    form.submit_label = "Save truck"
    return layout_response(request, "Edit truck", form.render())


@resources_router.post(TRUCKS + "/{truck_id}")
async def truck_update(request: Request, truck_id: str):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().trucks.update_truck(user.id, truck_id, data),
        success="Truck updated.",
        back=TRUCKS,
    )


@resources_router.post(TRUCKS + "/{truck_id}/delete")
async def truck_delete(request: Request, truck_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(request, lambda: wiring.services().trucks.delete_truck(user.id, truck_id), success="Truck deleted.", back=TRUCKS)


@resources_router.post(TRUCKS + "/{truck_id}/book")
async def truck_book(request: Request, truck_id: str):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = _writer(request)
    if user is None:
        return fail_and_redirect(request, PermissionError("forbidden"), TRUCKS)
    return perform(request, lambda: wiring.services().trucks.book(user.id, truck_id, data), success="Truck booked.", back=TRUCKS)


@resources_router.post(TRUCKS + "/bookings/{booking_id}/cancel")
async def truck_booking_cancel(request: Request, booking_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request,
        lambda: wiring.services().trucks.cancel_booking(user.id, booking_id),
        success="Booking cancelled.",
        back=TRUCKS,
    )


# --- Waste ----------------------------------------------------------------------

def _recommendations_html(waste_type: str) -> str:
    links = " ".join(
        f'<a class="{Component.classes("chip", active=(key == waste_type))}" href="{WASTE}?type={key}">{Component.escape(label)}</a>'
        for key, label in WASTE_TYPES.items()
    )
    body = ""
    if waste_type:
        try:
            tips = recommendations_for(waste_type)
        except AgriVerseError as exc:
            body = f'<p class="form-error">{Component.escape(describe(exc))}</p>'
        else:
            body = "<ul>" + "".join(f"<li>{Component.escape(t)}</li>" for t in tips) + "</ul>"
    return f'<div class="recommendations"><p>{links}</p>{body}</div>'


@resources_router.get(WASTE, response_class=HTMLResponse)
async def waste_page(request: Request, type: str = ""):
    user = current_user(request)
    token = csrf_token(request)
    svc = wiring.services().waste
    can_buy = _writer(request) is not None
    cards = []
    for waste in svc.list_available():
        waste_id = str(waste.get("waste_id"))
        if _mine(waste, "farmer_id", user):
            actions = (
                f'<a class="btn btn-secondary" href="{WASTE}/{Component.escape(waste_id)}/edit">Edit</a>'
                + PostButton(f"{WASTE}/{waste_id}/delete", "Delete", token, variant="danger",
                             confirm="Delete this listing?").render()
            )
        elif can_buy:
            actions = PostButton(f"{WASTE}/{waste_id}/buy", "Buy", token, variant="primary").render()
        else:
            actions = ""
        cards.append(
            ListingCard(
                WASTE_TYPES.get(str(waste.get("waste_type")), str(waste.get("waste_type") or "")),
                meta_items=[
                    MetaItem("Quantity", Component.kg(waste.get("quantity_kg"))),
                    MetaItem("Price", Component.amount(waste.get("price"))),
                    MetaItem("Suggested use", str(waste.get("suggested_use") or "-")),
                    MetaItem("Location", _location(waste)),
                ],
                body_html=f'<p>{Component.escape(waste.get("description") or "")}</p>',
                actions_html=actions,
            )
        )
    content = (
        _section("What to do with farm waste", _recommendations_html(type))
        + _section("Waste on offer", CardGrid(cards, empty_text="No waste listed right now.").render())
    )
    if user is not None and user.role == FARMER:
        content += _section("List waste", WasteForm(token).render())
    if can_buy:
        purchases = svc.list_purchases(user.id)
        table = DataTable(
            ["Lot", "Total", "Bought"],
            [[str(p.get("waste_id") or ""), Component.amount(p.get("total_price")), str(p.get("created_at") or "")[:10]]
             for p in purchases],
            empty_text="No waste purchases.",
        )
        content += _section("My purchases", table.render())
    return layout_response(request, "Farm waste", content)


@resources_router.post(WASTE)
async def waste_add(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = _writer(request, FARMER)
    if user is None:
        return fail_and_redirect(request, PermissionError("forbidden"), WASTE)
    return perform(request, lambda: wiring.services().waste.add(user.id, data), success="Waste listed.", back=WASTE)


@resources_router.get(WASTE + "/{waste_id}/edit", response_class=HTMLResponse)
async def waste_edit_page(request: Request, waste_id: str):
    user = current_user(request)
    own = [w for w in wiring.services().waste.list_own(user.id) if str(w.get("waste_id")) == waste_id]
    if not own:
        return fail_and_redirect(request, LookupError("wastes_not_found"), WASTE)
    form = WasteForm(csrf_token(request), values=own[0], action=f"{WASTE}/{waste_id}")
    form.submit_label = "Save listing"
    return layout_response(request, "Edit waste listing", form.render())


@resources_router.post(WASTE + "/{waste_id}")
async def waste_update(request: Request, waste_id: str):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    return perform(
        request, lambda: wiring.services().waste.update(user.id, waste_id, data), success="Listing updated.", back=WASTE
    )


@resources_router.post(WASTE + "/{waste_id}/delete")
async def waste_delete(request: Request, waste_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    return perform(request, lambda: wiring.services().waste.delete(user.id, waste_id), success="Listing deleted.", back=WASTE)


@resources_router.post(WASTE + "/{waste_id}/buy")
async def waste_buy(request: Request, waste_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    user = _writer(request)
    if user is None:
        return fail_and_redirect(request, PermissionError("forbidden"), WASTE)
    return perform(request, lambda: wiring.services().waste.buy(user.id, waste_id), success="Waste purchased.", back=WASTE)


__all__ = ["resources_router"]
