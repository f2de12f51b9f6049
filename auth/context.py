"""
auth/context.py -- Per-request authentication context.

RequestContext is created once at the start of handling an inbound request
and discarded when the response is sent. It carries:

  - the request's cookies (read-only),
  - the UserStore and SessionStore to resolve them against,
  - the memoized current user (resolved at most once per request),
  - queued session-cookie changes and an optional redirect target, which the
    route applies to whatever response it builds (apply_to()).

Actions take a RequestContext instead of reaching for an ambient request, so
they can be called from a FastAPI route, the CLI, or a unit test alike.

The memo lives on the instance, never on the class or the module: a new
request gets a new context and therefore a fresh lookup.

Layer rule: no imports from api/, web/, issues/, or cache/.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy.exc import SQLAlchemyError

from auth.models import User
from auth.store import SessionStore, UserStore
from auth.tokens import clear_session_cookie, set_session_cookie
from core.config import get_settings

logger = logging.getLogger("issuetracker.auth.context")

_UNRESOLVED = object()


class RequestContext:
    def __init__(
        self,
        cookies: Mapping[str, str],
        user_store: UserStore,
        session_store: SessionStore,
    ) -> None:
        self.cookies = cookies
        self.user_store = user_store
        self.session_store = session_store
        self.redirect_to: str | None = None
        self._current_user: object = _UNRESOLVED
        self._new_session_id: str | None = None
        self._clear_cookie = False

    @property
    def session_id(self) -> str | None:
        """The session id presented by the client on this request, if any."""
        return self.cookies.get(get_settings().session_cookie_name) or None

    # ------------------------------------------------------------------
    # Current-user resolution
    # ------------------------------------------------------------------

    def current_user(self) -> User | None:
        """Return the authenticated User for this request, or None.

        Memoized: the first call hits the session and user tables, later calls
        on the same context return the cached result. Never raises -- store
        failures are logged and treated as unauthenticated.
        """
        if self._current_user is _UNRESOLVED:
            self._current_user = self._resolve_user()
        return self._current_user  # type: ignore[return-value]

    def _resolve_user(self) -> User | None:
        # A session started during this request wins over the presented cookie.
        session_id = self._new_session_id or self.session_id
        if not session_id:
            return None
        try:
            user_id = self.session_store.resolve(session_id)
            if user_id is None:
                return None
            return self.user_store.get_by_id(user_id)
        except SQLAlchemyError:
            logger.exception("Failed to resolve current user")
            return None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(self, user_id: str) -> None:
        """Create a session for user_id and queue the cookie that carries it.

        The session presented on this request, if any, is revoked first so a
        re-sign-in never leaves the replaced session live.
        """
        if self.session_id:
            self.session_store.revoke(self.session_id)
        self._new_session_id = self.session_store.create(user_id)
        self._clear_cookie = False
        self._current_user = _UNRESOLVED

    def end_session(self) -> None:
        """Revoke the presented session. Does not touch the cookie -- see clear_session()."""
        self.session_store.revoke(self.session_id)
        self._current_user = None

    def clear_session(self) -> None:
        """Queue deletion of the session cookie."""
        self._new_session_id = None
        self._clear_cookie = True
        self._current_user = None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def apply_to(self, response) -> None:
        """Write queued cookie changes onto a Starlette response."""
        if self._new_session_id is not None:
            set_session_cookie(response, self._new_session_id)
        elif self._clear_cookie:
            clear_session_cookie(response)
