"""
tests/test_session_store.py -- Unit tests for SessionStore.

Covers:
  - create/resolve round trip and hashed-at-rest storage
  - fail-closed resolution of missing, malformed and unknown ids
  - revoke is idempotent
  - expired sessions never resolve and are deleted on sight
  - purge_expired removes only expired rows
"""

from __future__ import annotations

import pytest
from sqlalchemy import select

from auth.store import SessionStore
from auth.tokens import hash_session_id
from core.db import sessions


class TestCreateAndResolve:
    def test_new_session_resolves_to_its_user(self, session_store, make_user) -> None:
        user = make_user()
        session_id = session_store.create(user.id)
        assert session_store.resolve(session_id) == user.id

    def test_raw_id_is_not_stored(self, engine, session_store, make_user) -> None:
        user = make_user()
        session_id = session_store.create(user.id)
        with engine.connect() as conn:
            stored = conn.execute(select(sessions.c.id_hash)).scalars().all()
        assert stored == [hash_session_id(session_id)]
        assert session_id not in stored

    def test_each_session_id_is_unique(self, session_store, make_user) -> None:
        user = make_user()
        ids = {session_store.create(user.id) for _ in range(5)}
        assert len(ids) == 5
        assert session_store.count_for_user(user.id) == 5

    def test_expiry_is_after_creation(self, session_store, make_user) -> None:
        user = make_user()
        session = session_store.get(session_store.create(user.id))
        assert session is not None
        assert session.expires_at > session.created_at


class TestFailClosed:
    @pytest.mark.parametrize("bad_id", [None, "", "x" * 500, 12345, "unknown-session-id"])
    def test_bad_ids_resolve_to_none(self, session_store, bad_id) -> None:
        assert session_store.resolve(bad_id) is None

    def test_unparseable_expiry_is_treated_as_expired(self, engine, session_store, make_user) -> None:
        user = make_user()
        session_id = session_store.create(user.id)
        with engine.connect() as conn:
            conn.execute(sessions.update().values(expires_at="not-a-date"))
            conn.commit()
        assert session_store.resolve(session_id) is None


class TestRevoke:
    def test_revoked_session_no_longer_resolves(self, session_store, make_user) -> None:
        user = make_user()
        session_id = session_store.create(user.id)
        session_store.revoke(session_id)
        assert session_store.resolve(session_id) is None
        assert session_store.count_for_user(user.id) == 0

    def test_revoke_is_idempotent(self, session_store, make_user) -> None:
        user = make_user()
        session_id = session_store.create(user.id)
        session_store.revoke(session_id)
        session_store.revoke(session_id)
        session_store.revoke(None)
        session_store.revoke("")

    def test_revoke_leaves_other_sessions(self, session_store, make_user) -> None:
        user = make_user()
        first = session_store.create(user.id)
        second = session_store.create(user.id)
        session_store.revoke(first)
        assert session_store.resolve(second) == user.id


class TestExpiry:
    def test_expired_session_does_not_resolve_and_is_deleted(self, engine, make_user) -> None:
        store = SessionStore(engine, expire_seconds=-1)
        user = make_user()
        session_id = store.create(user.id)
        assert store.count_for_user(user.id) == 1
        assert store.resolve(session_id) is None
        assert store.count_for_user(user.id) == 0

    def test_purge_expired_only_removes_expired(self, engine, session_store, make_user) -> None:
        user = make_user()
        live = session_store.create(user.id)
        expired_store = SessionStore(engine, expire_seconds=-1)
        expired_store.create(user.id)
        expired_store.create(user.id)

        assert session_store.purge_expired() == 2
        assert session_store.count_for_user(user.id) == 1
        assert session_store.resolve(live) == user.id
