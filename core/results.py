"""
core/results.py -- The uniform result envelope returned by every mutation action.

Shape on the wire:
    {"success": bool, "message": str, "errors"?: {field: [msg, ...]}, "error"?: str}

errors carries field-level validation messages; error carries a short
machine-friendly failure label. Both are omitted from the serialized form when
unset (model_dump(exclude_none=True)).

The HTTP status a route should answer with is kept on a private attribute so
it never leaks into the payload. Actions pick it via the factory classmethods;
routes read it via result.status_code.

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, issues/,
or cache/.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, PrivateAttr, ValidationError


class ActionResult(BaseModel):
    success: bool
    message: str
    errors: Optional[dict[str, list[str]]] = None
    error: Optional[str] = None

    _status_code: int = PrivateAttr(default=200)

    @property
    def status_code(self) -> int:
        return self._status_code

    def _with_status(self, status_code: int) -> "ActionResult":
        self._status_code = status_code
        return self

    @classmethod
    def ok(cls, message: str, status_code: int = 200) -> "ActionResult":
        return cls(success=True, message=message)._with_status(status_code)

    @classmethod
    def invalid(cls, message: str, errors: dict[str, list[str]], status_code: int = 400) -> "ActionResult":
        return cls(success=False, message=message, errors=errors)._with_status(status_code)

    @classmethod
    def unauthorized(cls) -> "ActionResult":
        return cls(success=False, message="Unauthorized access", error="Unauthorized")._with_status(401)

    @classmethod
    def failed(cls, message: str, error: Optional[str] = None, status_code: int = 500) -> "ActionResult":
        return cls(success=False, message=message, error=error)._with_status(status_code)

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


def field_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Flatten a pydantic ValidationError into {field: [messages]}.

    The field key is the first element of each error's loc (the alias when the
    field declares one, so "confirmPassword", not "confirm_password").
    Model-level errors (empty loc) are collected under "_form".
    Missing fields report "Required" rather than pydantic's "Field required".
    """
    flat: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        key = str(loc[0]) if loc else "_form"
        msg = "Required" if err.get("type") == "missing" else err.get("msg", "Invalid value")
        flat.setdefault(key, [])
        if msg not in flat[key]:
            flat[key].append(msg)
    return flat
