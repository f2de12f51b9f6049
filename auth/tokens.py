"""
auth/tokens.py -- Password hashing, session id utilities and the session cookie.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). Bcrypt is the right
       choice for low-entropy secrets because its cost factor makes
       brute-force expensive. The cost comes from Settings.bcrypt_rounds. The
       _DUMMY_HASH constant enables timing equalization in
       authenticate_user() so response time does not reveal whether an email
       is registered.

  Session ids: secrets.token_urlsafe(32) gives 256 bits of entropy. We store
       HMAC-SHA256(SECRET_KEY, raw_id) so lookup is O(1) and a copy of the
       sessions table alone cannot be replayed as cookies. bcrypt's
       intentional slowness is unnecessary for high-entropy ids.

  Cookie: httpOnly, SameSite=Lax, Secure when SECURE_COOKIES (default: on unless DEBUG), Max-Age
       equal to the server-side session lifetime so both expire together.

Layer rule: no imports from api/, web/, issues/, or cache/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import TYPE_CHECKING

import bcrypt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("issuetracker.auth")

_settings = get_settings()

# Raw ids longer than this are rejected before hashing. token_urlsafe(32) is 43 chars.
MAX_SESSION_ID_LENGTH = 128

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are truncated by bcrypt. The sign-up form
    caps password length well below that boundary's practical relevance.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed or empty stored hash returns False instead of raising.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("issuetracker_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password):
        return None
    return user


# ---------------------------------------------------------------------------
# Session ids
# ---------------------------------------------------------------------------


def generate_session_id() -> str:
    """Return a new opaque, URL-safe session id with 256 bits of entropy."""
    return secrets.token_urlsafe(32)


def hash_session_id(raw_id: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, raw_id) as a hex string."""
    return hmac.new(
        _settings.secret_key.encode(),
        raw_id.encode(),
        hashlib.sha256,
    ).hexdigest()


def is_well_formed_session_id(raw_id: object) -> bool:
    return isinstance(raw_id, str) and 0 < len(raw_id) <= MAX_SESSION_ID_LENGTH


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, session_id: str) -> None:
    """Write the session id as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation for forms.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the server-side expiry so both expire together.
    """
    response.set_cookie(
        _settings.session_cookie_name,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_expire_seconds,
        path="/",
    )


def clear_session_cookie(response) -> None:
    """Expire the session cookie on the client."""
    response.delete_cookie(
        _settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
    )
