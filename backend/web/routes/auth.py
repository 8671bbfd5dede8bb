"""
Sign-in, sign-up and sign-out routes (router-only module).

Why:
    Accounts live in the `users` record collection; this module is the only
    place that turns a verified Identity into a server-side session and a
    cookie, and back.

Security:
    - Every form carries a CSRF token and must come from the same origin.
    - A successful sign-in or sign-up rotates the session id.
    - Responses carry `Cache-Control: private, no-store`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response

from backend.identity_access.routing import ROUTER
from backend.identity_access.session import Session
from backend.marketplace.errors import AgriVerseError, status_for
from backend.web import wiring
from backend.web.auth_utils import SESSION_TTL_SECONDS, expire_session_cookie, set_session_cookie
from backend.web.components.forms import LoginForm, SignupForm
from backend.web.config import current_environment
from backend.web.ssr import (
    ANON_CSRF_COOKIE,
    csrf_error,
    csrf_token,
    current_session,
    current_user,
    flash,
    forget_csrf_token,
    layout_response,
    read_form,
    redirect,
    validate_csrf,
)

auth_router = APIRouter(tags=["Auth"])
logger = logging.getLogger("agriverse.web.auth")

_GODOWN_FIELDS = (
    "godown_name",
    "city",
    "address",
    "godown_phone",
    "total_capacity_kg",
    "storage_fee_per_day",
    "temperature_control",
    "humidity_control",
    "location_lat",
    "location_long",
)


def _start_session(request: Request, identity) -> Response:
    session = current_session(request) or Session(store=wiring.session_store())
    old_sid = session.session_id
    sid = session.set(identity, ttl_seconds=SESSION_TTL_SECONDS)
    forget_csrf_token(old_sid)
    wiring.FLASHES.drop(old_sid)
    wiring.FLASHES.push(sid, f"Welcome, {identity.full_name}!", "success")
    response = redirect(ROUTER.home_for(identity.role) or "/login")
    set_session_cookie(response, sid, current_environment())
    response.delete_cookie(ANON_CSRF_COOKIE, path="/")
    response.headers["Cache-Control"] = "private, no-store"
    return response


@auth_router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    user = current_user(request)
    if user is not None and ROUTER.home_for(user.role):
        return redirect(ROUTER.home_for(user.role))
    form = LoginForm(csrf_token(request))
    return layout_response(request, "Sign in", form.render(), headers={"Cache-Control": "private, no-store"})


@auth_router.post("/login", response_class=HTMLResponse)
async def login_submit(request: Request):
    data = await read_form(request)
    if not validate_csrf(request, data.get("csrf_token")):
        return csrf_error()
    email = data.get("email", "")
    try:
        identity = wiring.services().verifier.authenticate(email, data.get("password"))
    except AgriVerseError as exc:
        form = LoginForm(csrf_token(request), email=email, error=exc.message)
        return layout_response(
            request, "Sign in", form.render(), status_code=status_for(exc),
            headers={"Cache-Control": "private, no-store"},
        )
    logger.info("login ok role=%s", identity.role)
    return _start_session(request, identity)


@auth_router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request):
    user = current_user(request)
    if user is not None and ROUTER.home_for(user.role):
        return redirect(ROUTER.home_for(user.role))
    form = SignupForm(csrf_token(request))
    return layout_response(request, "Create account", form.render(), headers={"Cache-Control": "private, no-store"})


@auth_router.post("/signup", response_class=HTMLResponse)
async def signup_submit(request: Request):
    data = await read_form(request)
    if not validate_csrf(request, data.get("csrf_token")):
        return csrf_error()
    try:
        identity = wiring.services().verifier.register(
            full_name=data.get("full_name"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role"),
            phone=data.get("phone"),
            language_preference=data.get("language_preference"),
            location_lat=data.get("location_lat"),
            location_long=data.get("location_long"),
            godown={k: data.get(k) for k in _GODOWN_FIELDS},
        )
    except AgriVerseError as exc:
        values = {k: v for k, v in data.items() if k not in ("password", "csrf_token")}
        form = SignupForm(csrf_token(request), values=values, error=exc.message)
        return layout_response(
            request, "Create account", form.render(), status_code=status_for(exc),
            headers={"Cache-Control": "private, no-store"},
        )
    return _start_session(request, identity)


@auth_router.post("/logout")
async def logout(request: Request):
    """Clear the session and the cookie, then return to the sign-in page.

    Without a session there is nothing to protect and the request simply
    redirects; with one, the CSRF token is required.
    """
    session = current_session(request)
    sid = session.session_id if session else None
    if sid:
        data = await read_form(request)
        if not validate_csrf(request, data.get("csrf_token")):
            return csrf_error()
        forget_csrf_token(sid)
        wiring.FLASHES.drop(sid)
        wiring.CARTS.drop(sid)
        session.clear()
    response = redirect("/login")
    expire_session_cookie(response, current_environment())
    response.headers["Cache-Control"] = "private, no-store"
    if request.headers.get("HX-Request"):
        response.headers["HX-Redirect"] = "/login"
    return response


__all__ = ["auth_router"]
