"""
FarmGPT and text-to-speech endpoints.

Contract:
    POST /api/farmgpt {question} -> 200 {answer, language}
        400 {"error": "empty_question"}, 500 {"error": "upstream_failed"}
    GET /api/farmgpt/history -> 200 {items: [...]} (newest first, at most five)
    GET /api/tts?q=&lang= -> 200 audio/mpeg, public for an hour
        400 {"error": "missing_text" | "invalid_lang"}, 500 {"error": "tts_failed"}

Any signed-in role may call these. Question text is never logged.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import BaseModel, field_validator

from backend.marketplace.errors import UpstreamError, ValidationError
from backend.web import wiring
from backend.web.routes.security import _is_same_origin
from backend.web.ssr import csrf_json_error, current_user, json_private

advisory_router = APIRouter(tags=["Advisory"])
logger = logging.getLogger("agriverse.web.advisory")


class FarmGptQuestion(BaseModel):
    question: Optional[str] = None

    @field_validator("question", mode="before")
    @classmethod
    def _only_text(cls, v):
        # Non-text questions are answered like an empty one.
        return v if isinstance(v, str) else None


@advisory_router.post("/api/farmgpt")
async def farmgpt(request: Request, payload: FarmGptQuestion):
    if not _is_same_origin(request):
        return csrf_json_error()
    user = current_user(request)
    try:
        answer = wiring.advisory().ask(payload.question, user_id=user.id)
    except ValidationError as exc:
        return json_private({"error": exc.message}, status_code=400)
    except UpstreamError as exc:
        logger.warning("farmgpt upstream failure reason=%s", exc.message)
        return json_private({"error": "upstream_failed"}, status_code=500)
    return json_private({"answer": answer.answer, "language": answer.language})


@advisory_router.get("/api/farmgpt/history")
async def farmgpt_history(request: Request):
    user = current_user(request)
    items = [
        {"question": e.question, "answer": e.answer, "language": e.language, "asked_at": e.asked_at}
        for e in wiring.advisory().recent(user.id)
    ]
    return json_private({"items": items})


@advisory_router.get("/api/tts")
async def tts(request: Request, q: str = "", lang: str = "ur"):
    try:
        audio = wiring.advisory().speak(q, lang)
    except ValidationError as exc:
        return json_private({"error": exc.message}, status_code=400)
    except UpstreamError as exc:
        logger.warning("tts upstream failure reason=%s", exc.message)
        return json_private({"error": "tts_failed"}, status_code=500)
    return Response(content=audio, media_type="audio/mpeg", headers={"Cache-Control": "public, max-age=3600"})


__all__ = ["advisory_router"]
