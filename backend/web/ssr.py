"""
Helpers shared by the server-rendered page routes and the JSON API.

Why:
    Every page handler needs the same small set of things: the signed-in
    identity, a CSRF token, a Layout rendered HTMX-aware, a flash toast and a
    PRG redirect. Keeping them here leaves route modules readable.

CSRF:
    Signed-in visitors get one synchronizer token per server-side session.
    Anonymous visitors (sign-in and sign-up forms) get a random token in a
    short-lived cookie that the form must echo back (double submit). Both
    paths additionally require a same-origin Origin/Referer.
"""
from __future__ import annotations

import hmac
import logging
import secrets
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from backend.identity_access.domain import Identity
from backend.identity_access.session import Session
from backend.marketplace.errors import AgriVerseError, status_for
from backend.web.components import Layout
from backend.web.components.forms import error_text
from backend.web.routes.security import _is_same_origin
from backend.web.wiring import FLASHES

logger = logging.getLogger("agriverse.web")

ANON_CSRF_COOKIE = "agriverse_csrf"

_CSRF_BY_SESSION: Dict[str, str] = {}


# --- Session accessors ----------------------------------------------------------

def current_session(request: Request) -> Optional[Session]:
    return getattr(request.state, "session", None)


def current_user(request: Request) -> Optional[Identity]:
    return getattr(request.state, "user", None)


def session_id(request: Request) -> Optional[str]:
    session = current_session(request)
    return session.session_id if session else None


# --- CSRF -----------------------------------------------------------------------

def get_or_create_csrf_token(sid: str) -> str:
    token = _CSRF_BY_SESSION.get(sid)
    if not token:
        token = secrets.token_urlsafe(24)
        _CSRF_BY_SESSION[sid] = token
    return token


def forget_csrf_token(sid: Optional[str]) -> None:
    if sid:
        _CSRF_BY_SESSION.pop(sid, None)


def csrf_token(request: Request) -> str:
    """Token for forms on this page; anonymous visitors get a cookie-bound one."""
    sid = session_id(request)
    if sid:
        return get_or_create_csrf_token(sid)
    token = request.cookies.get(ANON_CSRF_COOKIE) or getattr(request.state, "anon_csrf", None)
    if not token:
        token = secrets.token_urlsafe(24)
        request.state.anon_csrf = token
    return token


def validate_csrf(request: Request, form_value: Optional[str]) -> bool:
    if not form_value or not _is_same_origin(request):
        return False
    sid = session_id(request)
    expected = _CSRF_BY_SESSION.get(sid) if sid else request.cookies.get(ANON_CSRF_COOKIE)
    if not expected:
        return False
    return hmac.compare_digest(expected, str(form_value))


def csrf_error() -> HTMLResponse:
    return HTMLResponse("CSRF Error", status_code=403)


async def read_form(request: Request) -> Dict[str, Any]:
    """Form fields as plain strings (last value wins)."""
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


# --- Rendering ------------------------------------------------------------------

def layout_response(
    request: Request,
    title: str,
    content: str,
    *,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
    show_nav: bool = True,
) -> HTMLResponse:
    """Render the page HTMX-aware and return an HTMLResponse.

    Behavior:
        - `HX-Request` present: inner <main> markup plus an out-of-band sidebar.
        - Otherwise the complete document.
        - Personalised pages default to `Cache-Control: private, no-store`.
        - Pending flash toasts for the session are popped and rendered once.
    """
    user = current_user(request)
    token = csrf_token(request)
    layout = Layout(
        title=title,
        content=content,
        user=user,
        show_nav=show_nav,
        current_path=request.url.path,
        csrf_token=token,
        flashes=FLASHES.pop(session_id(request)),
        lang=(user.language_preference if user and user.language_preference else "en"),
    )
    body = layout.render_fragment() if request.headers.get("HX-Request") else layout.render()
    response = HTMLResponse(content=body, status_code=status_code)
    if user is not None and not (headers and "Cache-Control" in headers):
        response.headers["Cache-Control"] = "private, no-store"
    if headers:
        for key, value in headers.items():
            response.headers[key] = value
    anon = getattr(request.state, "anon_csrf", None)
    if anon:
        response.set_cookie(
            ANON_CSRF_COOKIE,
            anon,
            httponly=True,
            secure=True,
            samesite="strict",
            path="/",
            max_age=60 * 60,
        )
        response.headers["Cache-Control"] = "private, no-store"
    return response


def flash(request: Request, message: str, kind: str = "info") -> None:
    FLASHES.push(session_id(request), message, kind)


def redirect(url: str) -> RedirectResponse:
    """PRG redirect after a form post."""
    return RedirectResponse(url=url, status_code=303)


def describe(exc: Exception) -> str:
    """Human-readable toast text for a service error."""
    if isinstance(exc, PermissionError):
        return "You are not allowed to do that."
    if isinstance(exc, LookupError):
        return "That entry no longer exists."
    code = exc.message if isinstance(exc, AgriVerseError) else str(exc)
    return error_text(code) or "Something went wrong."


def fail_and_redirect(request: Request, exc: Exception, url: str) -> RedirectResponse:
    flash(request, describe(exc), "error")
    return redirect(url)


async def checked_form(request: Request) -> Optional[Dict[str, Any]]:
    """The posted form, or None when the CSRF token or origin does not match."""
    data = await read_form(request)
    if not validate_csrf(request, data.get("csrf_token")):
        return None
    return data


def perform(request: Request, action: Callable[[], Any], *, success: str, back: str) -> RedirectResponse:
    """Run a service call for a form post and redirect back with a toast.

    Service errors (validation, duplicates, store failures, ownership and
    missing rows) become an error toast; anything else propagates.
    """
    try:
        action()
    except (AgriVerseError, PermissionError, LookupError) as exc:
        logger.info("form action failed path=%s reason=%s", request.url.path, exc.__class__.__name__)
        return fail_and_redirect(request, exc, back)
    flash(request, success, "success")
    return redirect(back)


# --- JSON -----------------------------------------------------------------------

def private_headers() -> Dict[str, str]:
    return {"Cache-Control": "private, no-store"}


def json_private(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=private_headers())


def json_error(exc: Exception) -> JSONResponse:
    """Map a service error to `{"error": code}` with the matching status."""
    status = status_for(exc)
    if isinstance(exc, AgriVerseError):
        code = exc.message
    elif isinstance(exc, PermissionError):
        code = "forbidden"
    elif isinstance(exc, LookupError):
        code = "not_found"
    else:
        code = "internal_error"
    return json_private({"error": code}, status_code=status)


def forbidden_json() -> JSONResponse:
    return json_private({"error": "forbidden"}, status_code=403)


def csrf_json_error() -> JSONResponse:
    return json_private({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)


def require_role(request: Request, *roles: str) -> Optional[Identity]:
    """The identity when its role is one of `roles`, else None."""
    user = current_user(request)
    if user is None or user.role not in roles:
        return None
    return user
