"""
Advisory (FarmGPT chat and text-to-speech) configuration.

Intent:
    One place to read the environment variables that select the chat adapter,
    model name, timeouts, the local Ollama URL and the speech service URL.

Why:
    Routes and adapters share the same validated values, and tests can
    exercise config behaviour without starting the app.
"""
from __future__ import annotations

from dataclasses import dataclass
import os
import re
from urllib.parse import urlparse


@dataclass(frozen=True)
class AdvisoryConfig:
    backend: str  # "stub" | "local"
    chat_adapter_path: str
    chat_model: str
    temperature: float
    timeout_chat_seconds: int
    timeout_tts_seconds: int
    ollama_base_url: str
    tts_base_url: str


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")
    if value <= 0 or value > 300:
        raise ValueError(f"{name} out of range (1..300), got: {value}")
    return value


_HOST_RE = re.compile(r"^[a-z0-9._-]+$")


def _validate_ollama_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError("OLLAMA_BASE_URL must start with http:// or https://")
    host = (parsed.hostname or "").lower()
    if host == "localhost" or host.startswith("127.") or host == "::1":
        return
    # Docker compose service names (no dots).
    if "." not in host and _HOST_RE.match(host):
        return
    raise ValueError("OLLAMA_BASE_URL must point to localhost or a service hostname without dots")


def _validate_tts_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ValueError("TTS_BASE_URL must be an absolute http(s) URL")


def is_prod_like() -> bool:
    env = (os.getenv("AGRIVERSE_ENV") or "dev").lower()
    return env in {"prod", "production", "stage", "staging"}


def load_advisory_config() -> AdvisoryConfig:
    """
    Parse and validate advisory configuration from environment variables.

    Behavior:
        - `AI_BACKEND` selects the chat adapter: "stub" or "local" (default: stub).
        - `ADVISORY_CHAT_ADAPTER` overrides the module path.
        - Timeouts must be 1..300 seconds.
    """
    backend = (os.getenv("AI_BACKEND") or "stub").strip().lower()
    if backend not in {"stub", "local"}:
        raise ValueError("AI_BACKEND must be 'stub' or 'local'")
    if backend == "stub" and is_prod_like():
        raise ValueError("AI_BACKEND=stub is not allowed in production/staging environments.")

    default_chat = (
        "backend.advisory.adapters.local_chat" if backend == "local" else "backend.advisory.adapters.stub_chat"
    )
    chat_adapter = os.getenv("ADVISORY_CHAT_ADAPTER", default_chat)

    ollama_url = os.getenv("OLLAMA_BASE_URL", "http://ollama:11434")
    _validate_ollama_url(ollama_url)
    tts_url = os.getenv("TTS_BASE_URL", "https://translate.google.com/translate_tts")
    _validate_tts_url(tts_url)

    return AdvisoryConfig(
        backend=backend,
        chat_adapter_path=chat_adapter,
        chat_model=os.getenv("AI_CHAT_MODEL", "llama3.1"),
        temperature=0.4,
        timeout_chat_seconds=_int_env("AI_TIMEOUT_CHAT", 30),
        timeout_tts_seconds=_int_env("AI_TIMEOUT_TTS", 10),
        ollama_base_url=ollama_url,
        tts_base_url=tts_url,
    )
