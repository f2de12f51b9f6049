"""
auth/schemas.py -- Pydantic input schemas for the sign-in and sign-up forms.

These validate raw form submissions before any lookup or hashing happens.
Error messages are user-facing; field keys follow the form field names
("confirmPassword", not "confirm_password") via aliases, so
core.results.field_errors() reports them under the names the client sent.

Missing form fields arrive as None and are coerced to "" so they fail the
"required" rule with the same message as an empty input. Absent keys are
filled in by _fill_absent() before field validation, so every field runs its
validators and reports under its form name.
"""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic_core import PydanticCustomError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes and newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


def _none_to_empty(value):
    return "" if value is None else value


def _fill_absent(data, keys: tuple[str, ...]):
    if not isinstance(data, dict):
        return data
    return {**{key: "" for key in keys}, **data}


FormStr = Annotated[str, BeforeValidator(_none_to_empty)]


def _check_email(value: str) -> str:
    if not value:
        raise PydanticCustomError("email_required", "Email is required")
    if not EMAIL_PATTERN.match(value):
        raise PydanticCustomError("email_format", "Invalid email format")
    return value


class SignInForm(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: FormStr = ""
    password: FormStr = ""

    @model_validator(mode="before")
    @classmethod
    def fill_absent(cls, data):
        return _fill_absent(data, ("email", "password"))

    @field_validator("email")
    @classmethod
    def email_shape(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def password_present(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_required", "Password is required")
        return value


class SignUpForm(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    email: FormStr = ""
    password: FormStr = ""
    confirm_password: FormStr = Field(default="", alias="confirmPassword")

    @model_validator(mode="before")
    @classmethod
    def fill_absent(cls, data):
        # Keyed by alias. A caller using the field name keeps its value.
        if isinstance(data, dict) and "confirm_password" in data:
            return _fill_absent(data, ("email", "password"))
        return _fill_absent(data, ("email", "password", "confirmPassword"))

    @field_validator("email")
    @classmethod
    def email_shape(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                "Password must be at least {min_length} characters",
                {"min_length": MIN_PASSWORD_LENGTH},
            )
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise PydanticCustomError(
                "password_too_long",
                "Password must be at most {max_bytes} bytes",
                {"max_bytes": MAX_PASSWORD_BYTES},
            )
        return value

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise PydanticCustomError("confirm_required", "Please confirm your password")
        # password is absent from info.data when it failed its own validation.
        password = info.data.get("password")
        if password is not None and value != password:
            raise PydanticCustomError("password_mismatch", "Passwords don't match")
        return value
