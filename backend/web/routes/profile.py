"""
Profile editing for farmers (`/settings`) and buyers (`/profile`).

After a successful update the session's stored identity is replaced so the
sidebar and every later request see the new name, email and language.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from backend.marketplace.errors import AgriVerseError
from backend.web import wiring
from backend.web.components.forms import ProfileForm
from backend.web.ssr import (
    checked_form,
    csrf_error,
    csrf_token,
    current_session,
    current_user,
    fail_and_redirect,
    flash,
    layout_response,
    redirect,
)

profile_router = APIRouter(tags=["Profile"])


def _render(request: Request, path: str) -> HTMLResponse:
    user = current_user(request)
    form = ProfileForm(csrf_token(request), values=user.to_dict(), action=path)
    return layout_response(request, "Profile", form.render())


def _save(request: Request, path: str, data: dict):
    user = current_user(request)
    try:
        updated = wiring.services().profile.update(user, data)
    except (AgriVerseError, LookupError) as exc:
        return fail_and_redirect(request, exc, path)
    current_session(request).refresh(updated)
    flash(request, "Profile saved.", "success")
    return redirect(path)


@profile_router.get("/settings", response_class=HTMLResponse)
async def settings_page(request: Request):
    return _render(request, "/settings")


@profile_router.post("/settings")
async def settings_save(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    return _save(request, "/settings", data)


@profile_router.get("/profile", response_class=HTMLResponse)
async def profile_page(request: Request):
    return _render(request, "/profile")


@profile_router.post("/profile")
async def profile_save(request: Request):
    data = await checked_form(request)
    if data is None:
        return csrf_error()
    return _save(request, "/profile", data)


__all__ = ["profile_router"]
