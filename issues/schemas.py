"""
issues/schemas.py -- Pydantic schemas for issue input and output.

IssueForm          -- full schema, used by create_issue().
IssueUpdateForm    -- partial schema, used by update_issue(). Absent fields are
                      not validated and not applied; model_fields_set tells the
                      action which fields the caller actually sent.
IssuePayload       -- the JSON shape every read returns (camelCase keys).

Field keys in validation errors use the client-facing names ("userId") via
aliases. Empty-string descriptions normalize to None in both input schemas.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from issues.models import Issue, IssuePriority, IssueStatus

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100

# ---------------------------------------------------------------------------
# Shared field rules
# ---------------------------------------------------------------------------


def _check_title(value: str) -> str:
    if len(value) < TITLE_MIN_LENGTH:
        raise PydanticCustomError(
            "title_too_short",
            "Title must be at least {min_length} characters",
            {"min_length": TITLE_MIN_LENGTH},
        )
    if len(value) > TITLE_MAX_LENGTH:
        raise PydanticCustomError(
            "title_too_long",
            "Title must be less than {max_length} characters",
            {"max_length": TITLE_MAX_LENGTH},
        )
    return value


def _check_choice(enum_cls, value, message: str):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str) or value not in [m.value for m in enum_cls]:
        raise PydanticCustomError("invalid_choice", message)
    return enum_cls(value)


def _check_user_id(value: str) -> str:
    if not value:
        raise PydanticCustomError("user_id_required", "User ID is required")
    return value


def _reject_null(value, field: str):
    if value is None:
        raise PydanticCustomError("null_not_allowed", "{field} cannot be null", {"field": field})
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


# ---------------------------------------------------------------------------
# Input schemas
# ---------------------------------------------------------------------------


class IssueForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str
    description: Optional[str] = None
    status: IssueStatus
    priority: IssuePriority
    user_id: str = Field(alias="userId")

    @field_validator("title")
    @classmethod
    def title_length(cls, value: str) -> str:
        return _check_title(value)

    @field_validator("description")
    @classmethod
    def description_blank(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def status_choice(cls, value):
        return _check_choice(IssueStatus, value, "Please select a valid status")

    @field_validator("priority", mode="before")
    @classmethod
    def priority_choice(cls, value):
        return _check_choice(IssuePriority, value, "Please select a valid priority")

    @field_validator("user_id")
    @classmethod
    def user_id_present(cls, value: str) -> str:
        return _check_user_id(value)


class IssueUpdateForm(BaseModel):
    """Every field optional. A field that is sent must satisfy the IssueForm rule.

    description may be sent as null or "" to clear it; title, status and
    priority may not be null.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[IssueStatus] = None
    priority: Optional[IssuePriority] = None
    user_id: Optional[str] = Field(default=None, alias="userId")

    @field_validator("title", mode="before")
    @classmethod
    def title_not_null(cls, value):
        return _reject_null(value, "Title")

    @field_validator("title")
    @classmethod
    def title_length(cls, value: str) -> str:
        return _check_title(value)

    @field_validator("description")
    @classmethod
    def description_blank(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def status_choice(cls, value):
        return _check_choice(IssueStatus, value, "Please select a valid status")

    @field_validator("priority", mode="before")
    @classmethod
    def priority_choice(cls, value):
        return _check_choice(IssuePriority, value, "Please select a valid priority")

    @field_validator("user_id", mode="before")
    @classmethod
    def user_id_not_null(cls, value):
        return _reject_null(value, "User ID")

    @field_validator("user_id")
    @classmethod
    def user_id_present(cls, value: str) -> str:
        return _check_user_id(value)

    def changes(self) -> dict:
        """Return the explicitly provided, updatable fields as store column values.

        user_id is validated when sent but never reassigned -- ownership is
        fixed at creation.
        """
        updatable = ("title", "description", "status", "priority")
        values: dict = {}
        for name in updatable:
            if name in self.model_fields_set:
                value = getattr(self, name)
                values[name] = value.value if isinstance(value, (IssueStatus, IssuePriority)) else value
        return values


# ---------------------------------------------------------------------------
# Output schema
# ---------------------------------------------------------------------------


class OwnerPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class IssuePayload(BaseModel):
    """JSON shape of one issue: {id, title, description, status, priority, userId, createdAt, user}."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    title: str
    description: Optional[str]
    status: str
    priority: str
    user_id: str
    created_at: str
    user: Optional[OwnerPayload] = None

    @classmethod
    def from_issue(cls, issue: Issue) -> "IssuePayload":
        return cls(
            id=issue.id,
            title=issue.title,
            description=issue.description,
            status=issue.status,
            priority=issue.priority,
            user_id=issue.user_id,
            created_at=issue.created_at or "",
            user=OwnerPayload(id=issue.user.id, email=issue.user.email) if issue.user else None,
        )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
