"""
Deterministic chat adapter for local development and tests.

Behavior:
    Echoes a short canned answer in the prompt's language so the FarmGPT page
    works end to end without a model server.
"""

from __future__ import annotations

from backend.advisory.language import URDU, detect_language


class StubChatAdapter:
    def complete(self, *, system_prompt: str, question: str) -> str:
        if detect_language(system_prompt) == URDU:
            return "یہ ایک آزمائشی جواب ہے۔ اصل مشورے کے لیے ماڈل فعال کریں۔"
        return "This is a placeholder answer. Enable a model backend for real advice."


def build() -> StubChatAdapter:
    """Factory used by the advisory service to instantiate the adapter."""
    return StubChatAdapter()
