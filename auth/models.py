"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in issues/models.py -- dataclasses own domain shape; stores and actions do
the work.

Layer rule: no imports from api/, web/, issues/, or cache/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class User:
    """A registered account.

    password holds the bcrypt hash. It is excluded from repr so a stray log
    line or traceback never prints it, and no response model ever copies it.

    id is None before the record is written to the database; the store
    assigns a uuid4 hex string on insert.
    """

    email: str
    password: str = field(repr=False)
    id: str | None = None
    created_at: str | None = None


@dataclass
class Session:
    """A server-side session row.

    The raw session id is never stored -- only id_hash, the HMAC-SHA256 of the
    raw id keyed with SECRET_KEY. The raw id lives only in the client cookie.
    """

    id_hash: str
    user_id: str
    created_at: str
    expires_at: str
