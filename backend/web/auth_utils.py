"""
Shared session cookie helpers.

Why:
    The login, signup, logout and profile routes all touch the session cookie.
    One helper keeps flags and lifetime identical everywhere.
"""

from __future__ import annotations

from fastapi import Response

from backend.identity_access.session import SESSION_COOKIE

SESSION_TTL_SECONDS = 60 * 60 * 8


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    SameSite=Lax keeps the cookie on top-level navigations (links from other
    sites) while withholding it from cross-site form posts.
    """
    return {"secure": True, "samesite": "lax"}


def set_session_cookie(response: Response, session_id: str, environment: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        max_age=SESSION_TTL_SECONDS,
        path="/",
        **cookie_opts(environment),
    )


def expire_session_cookie(response: Response, environment: str) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/", httponly=True, **cookie_opts(environment))
