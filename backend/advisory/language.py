"""Language detection, prompts and speech text cleanup."""
from __future__ import annotations

import re

URDU = "ur"
ENGLISH = "en"

SYSTEM_PROMPTS = {
    URDU: "آپ ایک پاکستانی زرعی مشیر ہیں۔ کسانوں کے سوالات کے جوابات مختصر، درست اور عام فہم اردو میں دیں۔",
    ENGLISH: "You are an experienced Pakistani agricultural advisor. Respond in short, clear, and simple English.",
}

FALLBACK_ANSWERS = {
    URDU: "کوئی جواب دستیاب نہیں۔",
    ENGLISH: "No answer available.",
}

_ARABIC_SCRIPT = re.compile("[؀-ۿ]")
_LANG_TAG = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")
_SPEECH_PUNCTUATION = frozenset(".,؟?!،")


def detect_language(text: str) -> str:
    """Urdu when any Arabic-script character is present, else English."""
    return URDU if _ARABIC_SCRIPT.search(text or "") else ENGLISH


def system_prompt_for(language: str) -> str:
    return SYSTEM_PROMPTS.get(language, SYSTEM_PROMPTS[ENGLISH])


def fallback_answer(language: str) -> str:
    return FALLBACK_ANSWERS.get(language, FALLBACK_ANSWERS[ENGLISH])


def clean_for_speech(text: str) -> str:
    """Keep letters, digits, whitespace and basic punctuation; drop emoji and symbols."""
    return "".join(ch for ch in (text or "") if ch.isalnum() or ch.isspace() or ch in _SPEECH_PUNCTUATION)


def is_valid_lang_tag(lang: str) -> bool:
    return bool(_LANG_TAG.match(lang or ""))
