"""
Two-step writes with a compensating undo.

The record store offers no transactions across collections. When the second
write of a pair fails, the first one is reverted and the original error is
raised as `RemoteError`. A failing undo is logged; the caller still sees the
original message.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from backend.marketplace.errors import RemoteError

logger = logging.getLogger("agriverse.compensation")

T = TypeVar("T")
U = TypeVar("U")


def run_compensated(
    first: Callable[[], T],
    second: Callable[[T], U],
    undo: Callable[[T], None],
    *,
    operation: str,
) -> U:
    result = first()
    try:
        return second(result)
    except Exception as exc:
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        try:
            undo(result)
        except Exception as undo_exc:
            logger.error("compensation for %s failed: %s", operation, undo_exc.__class__.__name__)
        else:
            logger.warning("%s reverted after %s", operation, exc.__class__.__name__)
        raise RemoteError(message) from exc


__all__ = ["run_compensated"]
