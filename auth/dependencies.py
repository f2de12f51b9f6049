"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_request_context() builds the per-request RequestContext from the
request's cookies and the stores on app.state. FastAPI caches dependency
results per request, so every dependency and the route itself share one
context -- and therefore one memoized current-user lookup -- per request.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from api/, web/, issues/, or cache/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.context import RequestContext
from auth.models import User


def get_request_context(request: Request) -> RequestContext:
    """Create the RequestContext for this request."""
    return RequestContext(
        cookies=request.cookies,
        user_store=request.app.state.user_store,
        session_store=request.app.state.session_store,
    )


def try_get_current_user(ctx: RequestContext = Depends(get_request_context)) -> User | None:
    """Resolve the session cookie to a User. Returns None on any failure."""
    return ctx.current_user()


def get_current_user(user: User | None = Depends(try_get_current_user)) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user
