"""
One-shot flash notifications ("toasts").

Routes push a message before a PRG redirect; the next rendered page pops and
shows it. Messages are kept server-side per session id and never in cookies.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .base import Component

KINDS = ("success", "error", "info")


@dataclass(frozen=True)
class FlashMessage:
    message: str
    kind: str = "info"


class FlashStore:
    def __init__(self) -> None:
        self._pending: Dict[str, List[FlashMessage]] = {}

    def push(self, session_id: Optional[str], message: str, kind: str = "info") -> None:
        if not session_id:
            return
        if kind not in KINDS:
            kind = "info"
        self._pending.setdefault(session_id, []).append(FlashMessage(message, kind))

    def pop(self, session_id: Optional[str]) -> List[FlashMessage]:
        if not session_id:
            return []
        return self._pending.pop(session_id, [])

    def drop(self, session_id: Optional[str]) -> None:
        if session_id:
            self._pending.pop(session_id, None)


class ToastStack(Component):
    """Fixed-position stack of toasts; dismissed by agriverse.js after a few seconds."""

    def __init__(self, messages: List[FlashMessage]):
        self.messages = messages

    def render(self) -> str:
        if not self.messages:
            return '<div id="toast-stack" class="toast-stack" aria-live="polite"></div>'
        items = "".join(
            f'<div class="toast toast--{self.escape(m.kind)}" role="{"alert" if m.kind == "error" else "status"}">'
            f"{self.escape(m.message)}"
            '<button type="button" class="toast-close" data-action="toast-close" aria-label="Dismiss">&times;</button>'
            "</div>"
            for m in self.messages
        )
        return f'<div id="toast-stack" class="toast-stack" aria-live="polite">{items}</div>'
