"""
issues/store.py -- SQLAlchemy-backed persistence layer for issues.

Uses SQLAlchemy Core (not ORM) so the dataclasses in issues/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. IssueStore is the repository;
_row_to_issue is the mapper. Actions and routes never touch SQL directly.

Cache invalidation: when constructed with a TagCache, every successful write
(insert, update, delete) drops all entries tagged ISSUES_TAG before
returning, so the next list read goes to the database. Writes that raise do
not invalidate.

Ownership: delete_by_id_and_owner() puts both the id and the owner in the
WHERE clause. Deleting another user's issue matches zero rows and is not an
error -- callers cannot tell "not found" from "not yours".

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = IssueStore(engine, cache)
    issue = store.insert(Issue(title="Fix bug", user_id=uid, status="todo", priority="high"))
    issues = store.find_all()             # newest first, owner joined
    store.update(issue.id, status="done")
    store.delete_by_id_and_owner(issue.id, uid)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine

from cache.store import TagCache
from core.db import issues as _issues
from core.db import users as _users
from issues.models import Issue, IssueOwner

logger = logging.getLogger("issuetracker.issues.store")

ISSUES_TAG = "issues"

# Columns the update() method accepts. Everything else is fixed at insert.
_UPDATABLE = frozenset({"title", "description", "status", "priority"})

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _select_with_owner():
    return select(
        _issues,
        _users.c.email.label("owner_email"),
    ).select_from(_issues.outerjoin(_users, _issues.c.user_id == _users.c.id))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class IssueStore:
    def __init__(self, engine: Engine, cache: Optional[TagCache] = None) -> None:
        self.engine = engine
        self.cache = cache

    def insert(self, issue: Issue) -> Issue:
        """Insert a new issue and return the stored record (id, created_at and owner filled in).

        Raises sqlalchemy.exc.IntegrityError if user_id does not reference an
        existing user or status/priority is outside its enumeration.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _issues.insert().values(
                    title=issue.title,
                    description=issue.description,
                    status=issue.status,
                    priority=issue.priority,
                    user_id=issue.user_id,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            issue_id = result.inserted_primary_key[0]
        self._invalidate()
        created = self.find_by_id(issue_id)
        if created is None:
            raise RuntimeError(f"Issue {issue_id} not found after insert")
        return created

    def find_all(self) -> list[Issue]:
        """Return every issue with its owner joined, newest created_at first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _select_with_owner().order_by(_issues.c.created_at.desc(), _issues.c.id.desc())
            ).fetchall()
        return [_row_to_issue(r) for r in rows]

    def find_by_id(self, issue_id: int) -> Optional[Issue]:
        """Return one issue with its owner joined, or None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_select_with_owner().where(_issues.c.id == issue_id)).fetchone()
        return _row_to_issue(row) if row is not None else None

    def update(self, issue_id: int, **fields) -> int:
        """Apply the given column values to one issue, matched by id alone.

        Accepted fields: title, description, status, priority. Unknown keys
        raise ValueError rather than being silently ignored. An empty field
        set is a no-op.

        Returns the number of rows updated (0 or 1).
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown issue fields: {sorted(unknown)!r}")
        if not fields:
            return 0
        with self.engine.connect() as conn:
            result = conn.execute(_issues.update().where(_issues.c.id == issue_id).values(**fields))
            conn.commit()
        self._invalidate()
        return result.rowcount

    def delete_by_id_and_owner(self, issue_id: int, owner_id: str) -> int:
        """Delete an issue only if owner_id created it. Returns rows deleted (0 or 1)."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _issues.delete().where((_issues.c.id == issue_id) & (_issues.c.user_id == owner_id))
            )
            conn.commit()
        self._invalidate()
        return result.rowcount

    def _invalidate(self) -> None:
        if self.cache is not None:
            dropped = self.cache.invalidate_tag(ISSUES_TAG)
            logger.debug("Invalidated %d cached read(s) tagged %r", dropped, ISSUES_TAG)


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_issue(row) -> Issue:
    owner = IssueOwner(id=row.user_id, email=row.owner_email) if row.owner_email is not None else None
    return Issue(
        id=row.id,
        title=row.title,
        description=row.description,
        status=row.status,
        priority=row.priority,
        user_id=row.user_id,
        created_at=row.created_at,
        user=owner,
    )
