"""
Per-request Session object over the in-memory SessionStore.

Lifecycle: unresolved -> restore() -> anonymous | authenticated; set()
rotates the id, clear() deletes the server-side record.
"""
from __future__ import annotations

import pytest

from backend.identity_access.domain import BUYER, Identity
from backend.identity_access.session import Session
from backend.identity_access.stores import SessionStore


def _buyer() -> Identity:
    return Identity(id="b-1", full_name="Sana", email="sana@example.com", role=BUYER)


def test_new_session_is_unresolved_until_restored():
    session = Session(store=SessionStore())
    assert session.view().state == "unresolved"
    assert session.restore() is None
    assert session.view().state == "anonymous"


def test_restore_known_id_yields_identity():
    store = SessionStore()
    rec = store.create(identity=_buyer())
    session = Session(store=store, session_id=rec.session_id)
    assert session.restore() == _buyer()
    assert session.view().state == "authenticated"


def test_restore_unknown_id_drops_it():
    session = Session(store=SessionStore(), session_id="stale")
    assert session.restore() is None
    assert session.session_id is None


def test_restore_treats_store_failure_as_anonymous():
    class Broken:
        def get(self, session_id):
            raise ConnectionError("db down")

    session = Session(store=Broken(), session_id="abc")
    assert session.restore() is None
    assert session.is_loading is False


def test_set_rotates_session_id():
    store = SessionStore()
    old = store.create(identity=_buyer())
    session = Session(store=store, session_id=old.session_id)
    session.restore()

    new_sid = session.set(_buyer())

    assert new_sid != old.session_id
    assert store.get(old.session_id) is None
    assert store.get(new_sid).identity == _buyer()


def test_refresh_updates_stored_identity():
    store = SessionStore()
    session = Session(store=store)
    sid = session.set(_buyer())
    session.refresh(_buyer().with_profile(full_name="Sana Malik", role="farmer"))
    assert store.get(sid).identity.full_name == "Sana Malik"
    # Role is not editable through profile changes.
    assert store.get(sid).identity.role == BUYER


def test_clear_deletes_record():
    store = SessionStore()
    session = Session(store=store)
    sid = session.set(_buyer())
    session.clear()
    assert store.get(sid) is None
    assert session.identity is None and session.session_id is None


def test_memory_store_expires_records(monkeypatch: pytest.MonkeyPatch):
    from backend.identity_access import stores

    store = SessionStore()
    rec = store.create(identity=_buyer(), ttl_seconds=10)
    monkeypatch.setattr(stores, "_now", lambda: rec.expires_at + 1)
    assert store.get(rec.session_id) is None
