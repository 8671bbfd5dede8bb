"""
Text-to-speech over a translate-style HTTP endpoint.

The endpoint answers `GET ?ie=UTF-8&tl=<lang>&client=tw-ob&q=<text>` with MP3
bytes. Any non-2xx status or transport error becomes `UpstreamError`.
"""

from __future__ import annotations

import logging

import httpx

from backend.advisory.ports import UpstreamError

logger = logging.getLogger("agriverse.advisory.tts")


class HttpSpeechAdapter:
    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    def synthesize(self, *, text: str, lang: str) -> bytes:
        params = {"ie": "UTF-8", "tl": lang, "client": "tw-ob", "q": text}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.get(self._base_url, params=params, headers={"User-Agent": "Mozilla/5.0"})
        except httpx.HTTPError as exc:
            logger.warning("advisory.tts.transport_failed reason=%s", exc.__class__.__name__)
            raise UpstreamError("tts_transport_failed") from exc
        if resp.status_code >= 400:
            logger.warning("advisory.tts.bad_status status=%s", resp.status_code)
            raise UpstreamError(f"tts_status_{resp.status_code}")
        return resp.content


def build(base_url: str, timeout: float = 10.0) -> HttpSpeechAdapter:
    return HttpSpeechAdapter(base_url, timeout=timeout)
