"""
FarmGPT and speech use cases.

Why:
    Routes stay thin: they validate HTTP input and map errors, while this
    module owns language selection, the empty-answer fallback, history and
    speech text cleanup.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import import_module
from typing import List, Optional

from backend.advisory.adapters import http_tts
from backend.advisory.config import AdvisoryConfig, load_advisory_config
from backend.advisory.history import ChatHistory, Exchange
from backend.advisory.language import (
    clean_for_speech,
    detect_language,
    fallback_answer,
    is_valid_lang_tag,
    system_prompt_for,
)
from backend.advisory.ports import ChatAdapterProtocol, SpeechAdapterProtocol, UpstreamError
from backend.marketplace.errors import ValidationError

logger = logging.getLogger("agriverse.advisory")


@dataclass(frozen=True)
class Answer:
    answer: str
    language: str


@dataclass
class AdvisoryService:
    chat: ChatAdapterProtocol
    speech: SpeechAdapterProtocol
    history: ChatHistory = field(default_factory=ChatHistory)

    def ask(self, question: Optional[str], *, user_id: Optional[str] = None) -> Answer:
        text = (question or "").strip()
        if not text:
            raise ValidationError("empty_question")
        language = detect_language(text)
        try:
            reply = self.chat.complete(system_prompt=system_prompt_for(language), question=text)
        except UpstreamError:
            raise
        except Exception as exc:
            logger.warning("advisory.ask.adapter_error reason=%s", exc.__class__.__name__)
            raise UpstreamError("chat_failed") from exc
        answer = (reply or "").strip() or fallback_answer(language)
        if user_id:
            self.history.record(user_id, text, answer, language)
        logger.info("advisory.ask.completed language=%s", language)
        return Answer(answer=answer, language=language)

    def recent(self, user_id: str) -> List[Exchange]:
        return self.history.recent(user_id)

    def speak(self, text: Optional[str], lang: Optional[str] = None) -> bytes:
        tag = (lang or "ur").strip() or "ur"
        if not is_valid_lang_tag(tag):
            raise ValidationError("invalid_lang")
        cleaned = clean_for_speech(text or "")
        if not cleaned.strip():
            raise ValidationError("missing_text")
        try:
            return self.speech.synthesize(text=cleaned, lang=tag)
        except UpstreamError:
            raise
        except Exception as exc:
            logger.warning("advisory.speak.adapter_error reason=%s", exc.__class__.__name__)
            raise UpstreamError("tts_failed") from exc


def build_service(cfg: Optional[AdvisoryConfig] = None) -> AdvisoryService:
    """Wire adapters from configuration (module path + `build()` factory)."""
    cfg = cfg or load_advisory_config()
    chat_module = import_module(cfg.chat_adapter_path)
    chat = chat_module.build()  # type: ignore[attr-defined]
    speech = http_tts.build(cfg.tts_base_url, timeout=float(cfg.timeout_tts_seconds))
    return AdvisoryService(chat=chat, speech=speech)


__all__ = ["Answer", "AdvisoryService", "build_service"]
