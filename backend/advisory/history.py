"""Per-user FarmGPT history: the most recent question/answer pairs, newest first."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Deque, Dict, List

HISTORY_LIMIT = 5


@dataclass(frozen=True)
class Exchange:
    question: str
    answer: str
    language: str
    asked_at: str


class ChatHistory:
    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self._limit = limit
        self._by_user: Dict[str, Deque[Exchange]] = {}

    def record(self, user_id: str, question: str, answer: str, language: str) -> Exchange:
        entry = Exchange(question, answer, language, datetime.now(timezone.utc).isoformat())
        self._by_user.setdefault(user_id, deque(maxlen=self._limit)).appendleft(entry)
        return entry

    def recent(self, user_id: str) -> List[Exchange]:
        return list(self._by_user.get(user_id, ()))

    def clear(self, user_id: str) -> None:
        self._by_user.pop(user_id, None)
