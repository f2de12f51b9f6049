"""
API request and response models for the issue tracker REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
issues/models.py, which own the internal domain representation. Route handlers
map between the two.

The issue mutation endpoints do not declare a body model here: they pass the
raw JSON object to issues/actions.py, which validates it and reports field
errors inside the result envelope rather than as a 422.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from issues.models import IssuePriority, IssueStatus

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class MeResponse(BaseModel):
    """Response for GET /api/v1/auth/me. Never carries the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    email: str
    created_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Read API
# ---------------------------------------------------------------------------


class IssueCreateRequest(BaseModel):
    """Request body for POST /api/issue.

    title and userId are optional at the schema level so a missing value is
    reported by the route as a 400 with its own message. status and priority
    are checked against their enumerations here; an unknown value is a 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: IssueStatus = IssueStatus.backlog
    priority: IssuePriority = IssuePriority.low
    user_id: Optional[str] = Field(default=None, alias="userId")
