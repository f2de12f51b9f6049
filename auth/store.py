"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper. UserStore and SessionStore are the
repositories; _row_to_user / _row_to_session are the mappers. Action and
dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  SessionStore never sees a raw session id in its tables -- ids are hashed
  with hash_session_id() on the way in, for create, resolve and revoke alike.

  SessionStore.resolve() fails closed: a missing, malformed, unknown or
  expired id resolves to None. It never raises for bad input.

Both stores share one Engine (built by core.db.create_db_engine) because
sessions and issues hold foreign keys to users.

Layer rule: no imports from api/, web/, issues/, or cache/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from auth.models import Session, User
from auth.tokens import generate_session_id, hash_session_id, is_well_formed_session_id
from core.db import sessions as _sessions
from core.db import users as _users

logger = logging.getLogger("issuetracker.auth.store")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _now_iso() -> str:
    return _now().isoformat()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(engine)
        user_id = store.create_user(User(email="a@b.com", password=hash_password("secret1")))
        user = store.get_by_email("a@b.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_user(self, user: User) -> str:
        """Insert a new user and return its assigned id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers (sign-up) catch IntegrityError as a signal that a concurrent
        request registered the same email first.
        """
        user_id = uuid.uuid4().hex
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    email=user.email,
                    password=user.password,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return user_id

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by email."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.email)).fetchall()
        return [_row_to_user(r) for r in rows]


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class SessionStore:
    """Issues, resolves and revokes opaque session ids.

    Transport-agnostic: the caller decides how the raw id reaches the client
    (auth/tokens.set_session_cookie). The store only ever returns the raw id
    once, from create().
    """

    def __init__(self, engine: Engine, expire_seconds: int) -> None:
        self.engine = engine
        self.expire_seconds = expire_seconds

    def create(self, user_id: str) -> str:
        """Start a session for user_id and return the raw session id."""
        raw_id = generate_session_id()
        now = _now()
        with self.engine.connect() as conn:
            conn.execute(
                _sessions.insert().values(
                    id_hash=hash_session_id(raw_id),
                    user_id=user_id,
                    created_at=now.isoformat(),
                    expires_at=(now + timedelta(seconds=self.expire_seconds)).isoformat(),
                )
            )
            conn.commit()
        logger.debug("Session %s… created for user %s", raw_id[:6], user_id)
        return raw_id

    def get(self, session_id: str) -> Session | None:
        """Return the stored Session row for a raw id, expired or not."""
        if not is_well_formed_session_id(session_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(
                _sessions.select().where(_sessions.c.id_hash == hash_session_id(session_id))
            ).fetchone()
        return _row_to_session(row) if row is not None else None

    def resolve(self, session_id: str | None) -> str | None:
        """Return the user id for a live session, or None.

        An expired row is deleted on the way out so it cannot be resolved
        again even if purge_expired() has not run yet.
        """
        session = self.get(session_id) if session_id else None
        if session is None:
            return None
        if _is_expired(session.expires_at):
            self._delete_hash(session.id_hash)
            return None
        return session.user_id

    def revoke(self, session_id: str | None) -> None:
        """Delete a session. Revoking an unknown or malformed id is a no-op."""
        if not is_well_formed_session_id(session_id):
            return
        self._delete_hash(hash_session_id(session_id))

    def count_for_user(self, user_id: str) -> int:
        """Return the number of stored (not necessarily live) sessions for a user."""
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_sessions).where(_sessions.c.user_id == user_id)
            ).scalar()
        return result or 0

    def purge_expired(self) -> int:
        """Delete all expired sessions. Returns number of rows removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= _now_iso()))
            conn.commit()
        return result.rowcount

    def _delete_hash(self, id_hash: str) -> None:
        with self.engine.connect() as conn:
            conn.execute(_sessions.delete().where(_sessions.c.id_hash == id_hash))
            conn.commit()


def _is_expired(expires_at: str) -> bool:
    try:
        return datetime.fromisoformat(expires_at) <= _now()
    except ValueError:
        # Unparseable expiry is treated as expired -- fail closed.
        return True


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password=row.password,
        created_at=row.created_at,
    )


def _row_to_session(row) -> Session:
    return Session(
        id_hash=row.id_hash,
        user_id=row.user_id,
        created_at=row.created_at,
        expires_at=row.expires_at,
    )
