"""
Ports for advisory adapters.

Design:
    - ChatAdapterProtocol: one system prompt + one question in, answer text out.
    - SpeechAdapterProtocol: text + language tag in, MP3 bytes out.
    - Errors: adapters raise `UpstreamError` for any vendor failure; the
      routes map it to a 500 with a stable error code.
"""

from __future__ import annotations

from typing import Protocol

from backend.marketplace.errors import UpstreamError


class ChatAdapterProtocol(Protocol):
    def complete(self, *, system_prompt: str, question: str) -> str:
        ...


class SpeechAdapterProtocol(Protocol):
    def synthesize(self, *, text: str, lang: str) -> bytes:
        ...


__all__ = ["ChatAdapterProtocol", "SpeechAdapterProtocol", "UpstreamError"]
