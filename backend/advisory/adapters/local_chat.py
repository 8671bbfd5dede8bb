"""
Local chat adapter backed by an Ollama server.

Intent:
    Send the system prompt and the farmer's question to a chat model and
    return the stripped answer text.

Privacy:
    Never log the question or answer; only exception class names.
"""

from __future__ import annotations

import logging
import os

from backend.advisory.ports import UpstreamError

logger = logging.getLogger("agriverse.advisory.chat")


class _LocalChatAdapter:
    def __init__(self) -> None:
        self._model = (os.getenv("AI_CHAT_MODEL") or "").strip() or "llama3.1"
        self._base_url = (os.getenv("OLLAMA_BASE_URL") or "").strip() or "http://ollama:11434"
        self._timeout = int(os.getenv("AI_TIMEOUT_CHAT", "30"))
        self._temperature = 0.4

    def complete(self, *, system_prompt: str, question: str) -> str:
        # Import lazily so tests can install a fake module.
        try:
            import ollama  # type: ignore
        except Exception as exc:  # pragma: no cover - dependency missing at runtime
            raise UpstreamError(f"ollama client unavailable: {exc.__class__.__name__}")

        try:
            client = ollama.Client(host=self._base_url, timeout=self._timeout)
            raw = client.chat(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": question},
                ],
                options={"temperature": self._temperature},
            )
        except TimeoutError as exc:
            logger.warning("advisory.chat.timeout model=%s", self._model)
            raise UpstreamError("chat_timeout") from exc
        except Exception as exc:
            logger.warning("advisory.chat.failed reason=%s", exc.__class__.__name__)
            raise UpstreamError("chat_failed") from exc

        return _extract_content(raw)


def _extract_content(raw: object) -> str:
    """Read `message.content` from either a ChatResponse object or a plain dict."""
    message = raw.get("message") if isinstance(raw, dict) else getattr(raw, "message", None)
    if isinstance(message, dict):
        content = message.get("content")
    else:
        content = getattr(message, "content", None)
    return str(content or "").strip()


def build() -> _LocalChatAdapter:
    """Factory used by the advisory service to instantiate the adapter."""
    return _LocalChatAdapter()
