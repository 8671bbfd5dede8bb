"""
Process-wide wiring of the record store, sessions and adapters.

Why:
    Routes should not know whether records live in Supabase or in memory, or
    which chat adapter answers FarmGPT questions. This module builds those
    collaborators once from the environment and lets tests swap them via the
    `set_*` helpers.

Behavior:
    - Records: Supabase when SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are
      set, otherwise an in-memory store (logged as a warning). A Supabase
      client that fails to build is fatal in prod-like environments.
    - Sessions: Postgres when SESSIONS_BACKEND=db (never under pytest),
      otherwise in-memory.
    - Advisory: adapters chosen by AI_BACKEND / ADVISORY_CHAT_ADAPTER.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Optional

from backend.advisory.service import AdvisoryService, build_service
from backend.identity_access.stores import SessionStore
from backend.identity_access.verifier import CredentialVerifier
from backend.marketplace.records import InMemoryRecordStore, RecordStore
from backend.marketplace.records_supabase import build_from_env
from backend.marketplace.services.cooperatives import CooperativeService
from backend.marketplace.services.market import CartStore, MarketService
from backend.marketplace.services.profile import ProfileService
from backend.marketplace.services.resources import ToolService, TruckService
from backend.marketplace.services.storage import StorageService
from backend.marketplace.services.warechain import WarechainService
from backend.marketplace.services.waste import WasteService
from backend.web.components.flash import FlashStore
from backend.web.config import _is_prod_like, current_environment

logger = logging.getLogger("agriverse.web")


def _under_pytest() -> bool:
    return "pytest" in sys.modules or bool(os.getenv("PYTEST_CURRENT_TEST"))


@dataclass
class Services:
    """Use-case objects bound to one record store."""

    records: RecordStore
    verifier: CredentialVerifier
    storage: StorageService
    market: MarketService
    tools: ToolService
    trucks: TruckService
    waste: WasteService
    cooperatives: CooperativeService
    warechain: WarechainService
    profile: ProfileService

    @classmethod
    def bind(cls, records: RecordStore) -> "Services":
        return cls(
            records=records,
            verifier=CredentialVerifier(records),
            storage=StorageService(records),
            market=MarketService(records),
            tools=ToolService(records),
            trucks=TruckService(records),
            waste=WasteService(records),
            cooperatives=CooperativeService(records),
            warechain=WarechainService(records),
            profile=ProfileService(records),
        )


_SERVICES: Optional[Services] = None
_SESSION_STORE: Any = None
_ADVISORY: Optional[AdvisoryService] = None

CARTS = CartStore()
FLASHES = FlashStore()


def _build_records() -> RecordStore:
    try:
        store = build_from_env()
    except Exception as exc:
        if _is_prod_like(current_environment()):
            logger.error("Supabase record store wiring failed: %s", exc.__class__.__name__)
            raise
        logger.warning("Supabase record store wiring failed: %s", exc.__class__.__name__)
        store = None
    if store is not None:
        logger.info("Record store: Supabase")
        return store
    logger.warning("Record store: in-memory (SUPABASE_URL not configured); data is lost on restart")
    return InMemoryRecordStore()


def services() -> Services:
    global _SERVICES
    if _SERVICES is None:
        _SERVICES = Services.bind(_build_records())
    return _SERVICES


def set_records(records: Optional[RecordStore]) -> None:
    """Rebind every service to `records`; None rebuilds from the environment on next use."""
    global _SERVICES
    _SERVICES = Services.bind(records) if records is not None else None


def session_store() -> Any:
    global _SESSION_STORE
    if _SESSION_STORE is None:
        backend = (os.getenv("SESSIONS_BACKEND") or "memory").strip().lower()
        if backend == "db" and not _under_pytest():
            from backend.identity_access.stores_db import DBSessionStore

            _SESSION_STORE = DBSessionStore()
        else:
            _SESSION_STORE = SessionStore()
    return _SESSION_STORE


def set_session_store(store: Any) -> None:
    global _SESSION_STORE
    _SESSION_STORE = store


def advisory() -> AdvisoryService:
    global _ADVISORY
    if _ADVISORY is None:
        _ADVISORY = build_service()
    return _ADVISORY


def set_advisory(service: Optional[AdvisoryService]) -> None:
    global _ADVISORY
    _ADVISORY = service


__all__ = [
    "CARTS",
    "FLASHES",
    "Services",
    "advisory",
    "services",
    "session_store",
    "set_advisory",
    "set_records",
    "set_session_store",
]
