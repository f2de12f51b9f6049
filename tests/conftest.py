"""
tests/conftest.py -- Shared test fixtures for the issue tracker.

This module provides:
  - engine / user_store / session_store / cache / issue_store: isolated stores
    backed by a fresh named shared-memory SQLite database per test
  - make_user: factory that inserts a user with a real bcrypt hash
  - client: TestClient over the real ASGI app (api/ + web/) with the stores
    above wired into app.state through a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG and BCRYPT_ROUNDS must be set before any auth/core import:
get_settings() auto-generates SECRET_KEY in dev mode instead of raising, and
auth/tokens.py reads the bcrypt cost once at import.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from asgi import app
from auth.models import User
from auth.store import SessionStore, UserStore
from auth.tokens import hash_password
from cache.store import TagCache
from core.db import create_db_engine, init_schema
from issues.store import IssueStore

SESSION_TTL = 3600

# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """A fresh database with the full schema, unique to the test."""
    db_url = f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    eng = create_db_engine(db_url)
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def session_store(engine: Engine) -> SessionStore:
    return SessionStore(engine, expire_seconds=SESSION_TTL)


@pytest.fixture
def cache() -> Generator[TagCache, None, None]:
    tag_cache = TagCache(":memory:")
    yield tag_cache
    tag_cache.close()


@pytest.fixture
def issue_store(engine: Engine, cache: TagCache) -> IssueStore:
    return IssueStore(engine, cache)


@pytest.fixture
def make_user(user_store: UserStore) -> Callable[..., User]:
    """Return a factory that inserts a user and returns the stored record."""

    def _make(email: str = "a@b.com", password: str = "secret1") -> User:
        user_id = user_store.create_user(User(email=email, password=hash_password(password)))
        user = user_store.get_by_id(user_id)
        assert user is not None
        return user

    return _make


# ---------------------------------------------------------------------------
# App fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(engine, user_store, session_store, cache, issue_store):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    the isolated test database rather than the configured one.

    The purge_task is a long-sleeping coroutine so shutdown can cancel a real
    asyncio.Task just like in production.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.user_store = user_store
        app.state.session_store = session_store
        app.state.cache = cache
        app.state.issue_store = issue_store
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture
def client(engine, user_store, session_store, cache, issue_store) -> Generator[TestClient, None, None]:
    """TestClient over the real app with follow_redirects=False.

    Redirect tests assert on the Location header, which is invisible once the
    client follows the redirect.
    """
    app.router.lifespan_context = _patch_lifespan(engine, user_store, session_store, cache, issue_store)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as test_client:
        yield test_client
