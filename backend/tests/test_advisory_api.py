"""
FarmGPT and text-to-speech endpoints.

Requirements:
- POST /api/farmgpt -> {answer, language}; empty question 400; model failure 500
- GET /api/farmgpt/history -> newest first, per user
- GET /api/tts -> audio/mpeg, cacheable for an hour; validation 400; upstream 500
"""

import pytest

from backend.identity_access.domain import BUYER, FARMER, GODOWN_ADMIN
from backend.web import wiring
from utils.fakes import FakeChat, FakeSpeech, failing_advisory, fake_advisory, seed_user
from utils.web import make_client, sign_in

pytestmark = pytest.mark.anyio("asyncio")


@pytest.mark.anyio
async def test_farmgpt_answers_and_detects_language():
    chat = FakeChat(answer="مارچ کے آخر میں")
    wiring.set_advisory(fake_advisory(chat))
    who = seed_user(wiring.services().records, FARMER)
    async with make_client() as client:
        sign_in(client, who)
        r = await client.post("/api/farmgpt", json={"question": "کپاس کب کاشت کریں؟"})
    assert r.status_code == 200
    assert r.json() == {"answer": "مارچ کے آخر میں", "language": "ur"}
    assert r.headers.get("Cache-Control") == "private, no-store"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "payload", [{}, {"question": ""}, {"question": "   "}, {"question": 5}, {"question": ["wheat"]}, {"question": None}]
)
async def test_farmgpt_empty_question_is_400(payload):
    who = seed_user(wiring.services().records, BUYER)
    async with make_client() as client:
        sign_in(client, who)
        r = await client.post("/api/farmgpt", json=payload)
    assert r.status_code == 400
    assert r.json() == {"error": "empty_question"}


@pytest.mark.anyio
async def test_farmgpt_upstream_failure_is_500():
    wiring.set_advisory(failing_advisory())
    who = seed_user(wiring.services().records, FARMER)
    async with make_client() as client:
        sign_in(client, who)
        r = await client.post("/api/farmgpt", json={"question": "Will it rain?"})
    assert r.status_code == 500
    assert r.json() == {"error": "upstream_failed"}


@pytest.mark.anyio
async def test_farmgpt_cross_origin_is_rejected():
    who = seed_user(wiring.services().records, FARMER)
    async with make_client() as client:
        sign_in(client, who)
        r = await client.post("/api/farmgpt", json={"question": "hi"}, headers={"Origin": "https://evil.example"})
    assert r.status_code == 403
    assert r.json()["detail"] == "csrf_violation"


@pytest.mark.anyio
async def test_farmgpt_history_is_per_user_newest_first():
    records = wiring.services().records
    farmer = seed_user(records, FARMER)
    admin = seed_user(records, GODOWN_ADMIN)
    async with make_client() as client:
        sign_in(client, farmer)
        for q in ("first question", "second question"):
            await client.post("/api/farmgpt", json={"question": q})
        mine = await client.get("/api/farmgpt/history")
    async with make_client() as client:
        sign_in(client, admin)
        theirs = await client.get("/api/farmgpt/history")
    assert [i["question"] for i in mine.json()["items"]] == ["second question", "first question"]
    assert mine.json()["items"][0]["language"] == "en"
    assert theirs.json() == {"items": []}


@pytest.mark.anyio
async def test_tts_returns_cacheable_audio():
    speech = FakeSpeech(audio=b"ID3-audio")
    wiring.set_advisory(fake_advisory(speech=speech))
    who = seed_user(wiring.services().records, FARMER)
    async with make_client() as client:
        sign_in(client, who)
        r = await client.get("/api/tts", params={"q": "گندم 🌾", "lang": "ur"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("audio/mpeg")
    assert r.headers.get("Cache-Control") == "public, max-age=3600"
    assert r.content == b"ID3-audio"
    assert speech.calls == [("گندم ", "ur")]


@pytest.mark.anyio
@pytest.mark.parametrize("params,code", [({"q": ""}, "missing_text"), ({"q": "hello", "lang": "english"}, "invalid_lang")])
async def test_tts_validation_is_400(params, code):
    who = seed_user(wiring.services().records, BUYER)
    async with make_client() as client:
        sign_in(client, who)
        r = await client.get("/api/tts", params=params)
    assert r.status_code == 400
    assert r.json() == {"error": code}


@pytest.mark.anyio
async def test_tts_upstream_failure_is_500():
    wiring.set_advisory(failing_advisory())
    who = seed_user(wiring.services().records, FARMER)
    async with make_client() as client:
        sign_in(client, who)
        r = await client.get("/api/tts", params={"q": "hello", "lang": "en"})
    assert r.status_code == 500
    assert r.json() == {"error": "tts_failed"}


@pytest.mark.anyio
async def test_tts_requires_session():
    async with make_client() as client:
        r = await client.get("/api/tts", params={"q": "hello"})
    assert r.status_code == 401
