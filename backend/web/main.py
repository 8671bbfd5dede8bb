"AgriVerse web application"
from __future__ import annotations

from pathlib import Path
import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles

from backend.identity_access.routing import ROUTER
from backend.identity_access.session import SESSION_COOKIE, Session


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via AGRIVERSE_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("AGRIVERSE_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


from dotenv import load_dotenv

if _should_load_dotenv():
    load_dotenv()

# Fail fast on insecure production configuration before anything is wired.
from backend.web import config as _cfg

_cfg.ensure_secure_config_on_startup()

from backend.web import wiring
from backend.web.routes.admin import admin_router
from backend.web.routes.advisory import advisory_router
from backend.web.routes.api import api_router
from backend.web.routes.auth import auth_router
from backend.web.routes.buyer import buyer_router
from backend.web.routes.farmer import farmer_router
from backend.web.routes.profile import profile_router
from backend.web.routes.resources import resources_router

logger = logging.getLogger("agriverse.web")

app = FastAPI(title="AgriVerse", description="Marketplace for farmers, buyers and godowns", version="0.1.0")

# --- Static Files ---------------------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# --- Session & Routing Middleware -----------------------------------------------

_UNROUTED_PREFIXES = ("/static/", "/api/")
_UNROUTED_PATHS = ("/health", "/favicon.ico", "/logout")


def _is_unrouted(path: str) -> bool:
    return path.startswith(_UNROUTED_PREFIXES) or path in _UNROUTED_PATHS


@app.middleware("http")
async def session_routing(request: Request, call_next):
    """Restore the session, then let the role router decide about the location.

    Behavior:
        - Static assets are served without a session lookup.
        - API paths without a session: 401 `{"error": "unauthenticated"}`.
        - Page paths: the router's redirect target, if any, as a 302. HTMX
          requests from anonymous visitors get 401 with `HX-Redirect` so the
          client navigates instead of swapping the login page into <main>.
    """
    path = request.url.path
    if path.startswith("/static/"):
        return await call_next(request)

    session = Session(store=wiring.session_store(), session_id=request.cookies.get(SESSION_COOKIE))
    session.restore()
    request.state.session = session
    request.state.user = session.identity

    if _is_unrouted(path):
        if path.startswith("/api/") and session.identity is None:
            headers = {"Cache-Control": "private, no-store", "Vary": "Origin"}
            return JSONResponse({"error": "unauthenticated"}, status_code=401, headers=headers)
        return await call_next(request)

    target = ROUTER.decide(session.view(), path)
    if target is None:
        return await call_next(request)
    logger.debug("route redirect state=%s target=%s", session.view().state, target)
    headers = {"Cache-Control": "private, no-store", "Vary": "HX-Request"}
    if "HX-Request" in request.headers:
        headers["HX-Redirect"] = target
        return Response(status_code=401 if session.identity is None else 204, headers=headers)
    return RedirectResponse(url=target, status_code=302, headers=headers)


# --- Security Headers Middleware ------------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if _cfg.current_environment() == "prod":
        # No inline scripts or styles in production.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            "img-src 'self' data:; media-src 'self' data:; font-src 'self' data:; connect-src 'self';"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; media-src 'self' data:; font-src 'self' data:; connect-src 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if _cfg.current_environment() == "prod":
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    # The map picker uses the browser's geolocation on our own pages.
    response.headers.setdefault("Permissions-Policy", "geolocation=(self), microphone=(), camera=()")
    return response


# --- Routes ---------------------------------------------------------------------

@app.get("/health")
async def health():
    return JSONResponse({"status": "healthy", "service": "agriverse"}, headers={"Cache-Control": "no-store"})


app.include_router(auth_router)
app.include_router(farmer_router)
app.include_router(buyer_router)
app.include_router(profile_router)
app.include_router(resources_router)
app.include_router(admin_router)
app.include_router(api_router)
app.include_router(advisory_router)


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
