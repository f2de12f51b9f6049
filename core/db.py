"""
core/db.py -- Shared SQLAlchemy Core schema and engine factory.

Users, sessions and issues live in one database because issues reference
their owner (FOREIGN KEY issues.user_id -> users.id) and the issue list joins
the owner's email. The repositories in auth/store.py and issues/store.py
import the Table objects from here; neither defines its own schema.

SQLAlchemy Core (not ORM) keeps the dataclasses in auth/models.py and
issues/models.py as the authoritative domain representation. Swapping SQLite
for PostgreSQL is a connection string change.

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, issues/,
or cache/.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine

ISSUE_STATUSES = ("backlog", "todo", "in_progress", "done")
ISSUE_PRIORITIES = ("low", "medium", "high")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt hash
    Column("created_at", String(32), nullable=False),
)

sessions = Table(
    "sessions",
    metadata,
    # HMAC-SHA256 hex of the raw session id. The raw id only ever lives in the cookie.
    Column("id_hash", String(64), primary_key=True),
    Column("user_id", String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
)

issues = Table(
    "issues",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(100), nullable=False),
    Column("description", Text),
    Column("status", String(20), nullable=False, server_default="backlog"),
    Column("priority", String(10), nullable=False, server_default="low"),
    Column("user_id", String(32), ForeignKey("users.id"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    CheckConstraint(f"status IN {ISSUE_STATUSES!r}", name="ck_issue_status"),
    CheckConstraint(f"priority IN {ISSUE_PRIORITIES!r}", name="ck_issue_priority"),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. foreign_keys is OFF by default in SQLite.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Build an Engine for db_url. SQLite URLs get the threadpool-safe settings.

    check_same_thread=False is required because FastAPI runs sync route
    handlers in a threadpool; a pooled connection may be used by a thread
    other than the one that opened it.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _sqlite_pragmas)
    return engine


def init_schema(engine: Engine) -> None:
    """Create all tables if they do not exist. Idempotent."""
    metadata.create_all(engine)
