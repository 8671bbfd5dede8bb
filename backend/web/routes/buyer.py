"""
Buyer pages: home, cart and checkout.

The cart lives server-side per session id (see `wiring.CARTS`); it holds
item ids and quantities only, prices are always re-read from the store.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from backend.marketplace.errors import AgriVerseError
from backend.web import wiring
from backend.web.components.base import Component
from backend.web.components.cards import DataTable, ListingCard, MetaItem
from backend.web.components.forms import PostButton
from backend.web.ssr import (
    checked_form,
    csrf_error,
    csrf_token,
    current_user,
    fail_and_redirect,
    flash,
    layout_response,
    perform,
    redirect,
    session_id,
)

buyer_router = APIRouter(tags=["Buyer"])
logger = logging.getLogger("agriverse.web.buyer")


def _purchases_table(orders) -> DataTable:
    return DataTable(
        ["Product", "Quantity", "Price/kg", "Total", "Status"],
        [
            [
                str(o.get("product_name") or ""),
                Component.kg(o.get("quantity_kg")),
                Component.amount(o.get("price_per_kg")),
                Component.amount(o.get("total_price")),
                str(o.get("payment_status") or ""),
            ]
            for o in orders
        ],
        empty_text="No purchases yet.",
    )


@buyer_router.get("/buyer", response_class=HTMLResponse)
async def buyer_home(request: Request):
    user = current_user(request)
    svc = wiring.services()
    cart = wiring.CARTS.get(session_id(request))
    lines = svc.market.cart_lines(cart)
    available = svc.market.list_available()
    waste_purchases = svc.waste.list_purchases(user.id)
    overview = ListingCard(
        f"Welcome, {user.full_name}",
        meta_items=[
            MetaItem("Produce on offer", str(len(available))),
            MetaItem("In your cart", str(len(lines))),
            MetaItem("Cart total", Component.amount(sum(line.total for line in lines))),
            MetaItem("Waste lots bought", str(len(waste_purchases))),
        ],
        actions_html=(
            '<a class="btn btn-primary" href="/marketplace">Browse produce</a> '
            '<a class="btn btn-secondary" href="/buyer/cart">Open cart</a>'
        ),
    ).render()
    content = (
        overview
        + '<section class="page-section"><h2>My purchases</h2>'
        + _purchases_table(svc.market.list_purchases(user.id)).render()
        + "</section>"
    )
    return layout_response(request, "Buyer home", content)


@buyer_router.get("/buyer/cart", response_class=HTMLResponse)
async def cart_page(request: Request):
    token = csrf_token(request)
    svc = wiring.services().market
    cart = wiring.CARTS.get(session_id(request))
    lines = svc.cart_lines(cart)
    table = DataTable(
        ["Product", "Quantity", "Price/kg", "Line total"],
        [[line.product_name, Component.kg(line.quantity_kg), Component.amount(line.price_per_kg),
          Component.amount(line.total)] for line in lines],
        actions=[PostButton(f"/buyer/cart/{line.item_id}/remove", "Remove", token).render() for line in lines],
        empty_text="Your cart is empty.",
    )
    total = sum(line.total for line in lines)
    checkout = ""
    if lines:
        checkout = (
            f'<p class="cart-total">Total: <strong>{Component.escape(Component.amount(total))}</strong></p>'
            + PostButton("/buyer/checkout", "Checkout", token, variant="primary").render()
        )
    return layout_response(request, "Cart", table.render() + checkout)


@buyer_router.post("/buyer/cart")
async def cart_add(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    user = current_user(request)
    cart = wiring.CARTS.get(session_id(request))
    return perform(
        request,
        lambda: wiring.services().market.add_to_cart(cart, user.id, str(data.get("item_id") or ""), data.get("quantity_kg")),
        success="Added to cart.",
        back="/buyer/cart",
    )


@buyer_router.post("/buyer/cart/{item_id}/remove")
async def cart_remove(request: Request, item_id: str):
    if await checked_form(request) is None:
        return csrf_error()
    wiring.CARTS.get(session_id(request)).remove(item_id)
    flash(request, "Removed from cart.", "info")
    return redirect("/buyer/cart")


@buyer_router.post("/buyer/checkout")
async def checkout(request: Request):
    if await checked_form(request) is None:
        return csrf_error()
    user = current_user(request)
    cart = wiring.CARTS.get(session_id(request))
    try:
        orders = wiring.services().market.checkout(cart, user.id)
    except (AgriVerseError, PermissionError, LookupError) as exc:
        logger.info("checkout failed reason=%s", exc.__class__.__name__)
        return fail_and_redirect(request, exc, "/buyer/cart")
    flash(request, f"Order placed for {len(orders)} item(s).", "success")
    return redirect("/buyer")


__all__ = ["buyer_router"]
