"""
api/routes/v1/auth.py -- Current-user endpoint.

Routes:
  GET /api/v1/auth/me -- identity of the signed-in user (requires auth)

Sign-in, sign-up and sign-out are form submissions and live in web/routes.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import MeResponse
from auth.dependencies import get_current_user
from auth.models import User

router = APIRouter()


@router.get("/auth/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        created_at=current_user.created_at,
    )
