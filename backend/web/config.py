"""
Configuration and startup security checks for AgriVerse.

Why: A marketplace that handles accounts and orders must not be deployed with
development shortcuts. This module provides a single guard that enforces
minimal production safety without burdening local development.

Permissions: The caller needs no special privileges. The function reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def current_environment() -> str:
    return (os.getenv("AGRIVERSE_ENV") or "dev").strip().lower()


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod-like environments only):
    - Supabase URL and service role key are set; the in-memory record store
      is a development fallback.
    - Sessions are persisted in Postgres and DATABASE_URL does not disable TLS.
    - The chat backend is not the stub adapter.
    - The speech endpoint uses https.
    """

    if not _is_prod_like(current_environment()):
        return

    # 1) Record store
    url = os.getenv("SUPABASE_URL", "").strip()
    srole = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
    if not url:
        raise SystemExit("Refusing to start: SUPABASE_URL is unset in production (in-memory store is dev only).")
    if not srole or srole.upper() == "DUMMY_DO_NOT_USE":
        raise SystemExit(
            "Refusing to start: SUPABASE_SERVICE_ROLE_KEY is unset or a dummy placeholder in production."
        )

    # 2) Sessions
    backend = (os.getenv("SESSIONS_BACKEND") or "memory").strip().lower()
    if backend != "db":
        raise SystemExit("Refusing to start: SESSIONS_BACKEND=db is mandatory in production/staging.")
    dsn = os.getenv("DATABASE_URL", "")
    if not dsn:
        raise SystemExit("Refusing to start: DATABASE_URL is required for the session store in production.")
    if "sslmode=disable" in dsn:
        raise SystemExit(
            "Refusing to start: DATABASE_URL contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )

    # 3) Chat backend
    ai_backend = (os.getenv("AI_BACKEND") or "stub").strip().lower()
    if ai_backend == "stub":
        raise SystemExit(
            "Refusing to start: AI_BACKEND=stub is not allowed in production/staging. Configure a real adapter."
        )

    # 4) Speech endpoint must use HTTPS
    tts = (os.getenv("TTS_BASE_URL") or "").strip().lower()
    if tts.startswith("http://"):
        raise SystemExit("Refusing to start: TTS_BASE_URL must use https in production (got http).")
