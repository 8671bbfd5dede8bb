"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and give every test a fresh,
in-memory wiring (records, sessions, advisory adapters, carts, flashes and
CSRF tokens) so module-level singletons never leak between tests.
"""
import sys
from pathlib import Path

import pytest

# Ensure `backend.*` and the test helpers are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_environment_toggles(monkeypatch: pytest.MonkeyPatch):
    """Run every test in a dev-like environment unless it opts into prod.

    Behavior:
        - Drop env toggles that change wiring or security decisions.
        - Tests that need them set them explicitly via monkeypatch.
    """
    for var in (
        "AGRIVERSE_ENV",
        "AGRIVERSE_TRUST_PROXY",
        "SESSIONS_BACKEND",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
        "DATABASE_URL",
        "AI_BACKEND",
        "ADVISORY_CHAT_ADAPTER",
        "AI_CHAT_MODEL",
        "AI_TIMEOUT_CHAT",
        "AI_TIMEOUT_TTS",
        "OLLAMA_BASE_URL",
        "TTS_BASE_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_wiring():
    """Bind fresh in-memory collaborators before each test.

    The advisory service gets fake adapters (see `utils.fakes`) so no test
    ever reaches a model server or the speech endpoint by accident.
    """
    from backend.identity_access.stores import SessionStore
    from backend.marketplace.records import InMemoryRecordStore
    from backend.web import ssr, wiring
    from utils.fakes import fake_advisory

    wiring.set_records(InMemoryRecordStore())
    wiring.set_session_store(SessionStore())
    wiring.set_advisory(fake_advisory())
    wiring.CARTS._carts.clear()
    wiring.FLASHES._pending.clear()
    ssr._CSRF_BY_SESSION.clear()
    yield
