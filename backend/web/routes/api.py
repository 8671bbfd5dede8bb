"""
JSON API for the marketplace (router-only module).

Why:
    The same use cases as the pages, for scripts and a future mobile client.
    Errors use one envelope `{"error": code}` with the status from
    `backend.marketplace.errors.status_for`.

Security:
    - Unauthenticated calls never reach these handlers (middleware answers 401).
    - Wrong role: 403 `{"error": "forbidden"}`.
    - Writes require a same-origin Origin/Referer when a browser sends one;
      otherwise 403 `{"error": "forbidden", "detail": "csrf_violation"}`.
    - Every response carries `Cache-Control: private, no-store`.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, field_validator

from backend.identity_access.domain import BUYER, FARMER, GODOWN_ADMIN
from backend.marketplace.errors import AgriVerseError
from backend.marketplace.services.waste import recommendations_for
from backend.web import wiring
from backend.web.routes.security import _is_same_origin
from backend.web.ssr import (
    csrf_json_error,
    current_user,
    forbidden_json,
    json_error,
    json_private,
    require_role,
    session_id,
)

api_router = APIRouter(tags=["API"])

_SERVICE_ERRORS = (AgriVerseError, PermissionError, LookupError)


# --- Request models -------------------------------------------------------------

class StorageRequestPayload(BaseModel):
    godown_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1, max_length=200)
    quantity_kg: float = Field(..., gt=0, allow_inf_nan=False)
    price_per_kg: float = Field(..., gt=0, allow_inf_nan=False)
    start_date: date
    end_date: date
    temperature_required: Optional[str] = Field(default=None, max_length=50)
    humidity_required: Optional[str] = Field(default=None, max_length=50)

    @field_validator("product_name")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class CartLinePayload(BaseModel):
    item_id: str = Field(..., min_length=1)
    quantity_kg: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)


def _cart_json(request: Request) -> dict:
    svc = wiring.services().market
    lines = svc.cart_lines(wiring.CARTS.get(session_id(request)))
    return {
        "items": [
            {
                "item_id": line.item_id,
                "product_name": line.product_name,
                "quantity_kg": line.quantity_kg,
                "price_per_kg": line.price_per_kg,
                "total": line.total,
            }
            for line in lines
        ],
        "total": sum(line.total for line in lines),
    }


# --- Identity -------------------------------------------------------------------

@api_router.get("/api/me")
async def get_me(request: Request):
    return json_private(current_user(request).to_dict())


# --- Storage --------------------------------------------------------------------

@api_router.get("/api/godowns")
async def list_godowns(request: Request):
    return json_private(wiring.services().storage.list_godowns())


@api_router.get("/api/storage/requests")
async def list_storage_requests(request: Request):
    """Farmers see their own requests, godown admins the requests for their godowns."""
    user = current_user(request)
    svc = wiring.services().storage
    if user.role == FARMER:
        return json_private(svc.list_requests_for_farmer(user.id))
    if user.role == GODOWN_ADMIN:
        return json_private(svc.list_requests_for_admin(user.id))
    return forbidden_json()


@api_router.post("/api/storage/requests")
async def create_storage_request(request: Request, payload: StorageRequestPayload):
    user = require_role(request, FARMER)
    if user is None:
        return forbidden_json()
    if not _is_same_origin(request):
        return csrf_json_error()
    try:
        created = wiring.services().storage.create_request(user.id, payload.model_dump(mode="json"))
    except _SERVICE_ERRORS as exc:
        return json_error(exc)
    return json_private(created, status_code=201)


@api_router.post("/api/requests/{request_id}/approve")
async def approve_request(request: Request, request_id: str):
    user = require_role(request, GODOWN_ADMIN)
    if user is None:
        return forbidden_json()
    if not _is_same_origin(request):
        return csrf_json_error()
    try:
        item = wiring.services().storage.approve(user.id, request_id)
    except _SERVICE_ERRORS as exc:
        return json_error(exc)
    return json_private(item)


@api_router.post("/api/requests/{request_id}/reject")
async def reject_request(request: Request, request_id: str):
    user = require_role(request, GODOWN_ADMIN)
    if user is None:
        return forbidden_json()
    if not _is_same_origin(request):
        return csrf_json_error()
    try:
        wiring.services().storage.reject(user.id, request_id)
    except _SERVICE_ERRORS as exc:
        return json_error(exc)
    return json_private({"request_id": request_id, "status": "rejected"})


# --- Marketplace and cart -------------------------------------------------------

@api_router.get("/api/marketplace/items")
async def list_items(request: Request, q: str = ""):
    return json_private(wiring.services().market.list_available(q))


@api_router.get("/api/cart")
async def get_cart(request: Request):
    if require_role(request, BUYER) is None:
        return forbidden_json()
    return json_private(_cart_json(request))


@api_router.post("/api/cart")
async def add_to_cart(request: Request, payload: CartLinePayload):
    user = require_role(request, BUYER)
    if user is None:
        return forbidden_json()
    if not _is_same_origin(request):
        return csrf_json_error()
    cart = wiring.CARTS.get(session_id(request))
    try:
        wiring.services().market.add_to_cart(cart, user.id, payload.item_id, payload.quantity_kg)
    except _SERVICE_ERRORS as exc:
        return json_error(exc)
    return json_private(_cart_json(request))


@api_router.delete("/api/cart/{item_id}")
async def remove_from_cart(request: Request, item_id: str):
    if require_role(request, BUYER) is None:
        return forbidden_json()
    if not _is_same_origin(request):
        return csrf_json_error()
    wiring.CARTS.get(session_id(request)).remove(item_id)
    return json_private(_cart_json(request))


@api_router.post("/api/cart/checkout")
async def checkout(request: Request):
    user = require_role(request, BUYER)
    if user is None:
        return forbidden_json()
    if not _is_same_origin(request):
        return csrf_json_error()
    cart = wiring.CARTS.get(session_id(request))
    try:
        orders = wiring.services().market.checkout(cart, user.id)
    except _SERVICE_ERRORS as exc:
        return json_error(exc)
    return json_private({"orders": orders}, status_code=201)


# --- Waste ----------------------------------------------------------------------

@api_router.get("/api/waste/recommendations")
async def waste_recommendations(request: Request, type: str = ""):
    try:
        tips = recommendations_for(type)
    except AgriVerseError as exc:
        return json_error(exc)
    return json_private({"waste_type": type, "recommendations": tips})


__all__ = ["api_router"]
