"""
api/routes/v1/issues.py -- Issue mutation endpoints.

Routes:
  POST   /api/v1/issues        -- create an issue
  PATCH  /api/v1/issues/{id}   -- update the provided fields of an issue
  DELETE /api/v1/issues/{id}   -- delete an issue owned by the caller

These routes do not use Depends(get_current_user): the actions check the
caller themselves and answer with the {success, message, error} envelope
(401) rather than the {"error": {...}} HTTP error envelope. The body is passed
to the action as a plain dict so field errors come back in the envelope too.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from auth.context import RequestContext
from auth.dependencies import get_request_context
from core.results import ActionResult
from issues.actions import create_issue, delete_issue, update_issue
from issues.store import IssueStore

router = APIRouter()


def _respond(ctx: RequestContext, result: ActionResult) -> JSONResponse:
    response = JSONResponse(status_code=result.status_code, content=result.to_payload())
    ctx.apply_to(response)
    return response


@router.post("/issues", status_code=201)
def create(
    request: Request,
    body: dict[str, Any] = Body(...),
    ctx: RequestContext = Depends(get_request_context),
) -> JSONResponse:
    """Create an issue. The caller must be signed in; userId must name an existing user."""
    store: IssueStore = request.app.state.issue_store
    return _respond(ctx, create_issue(ctx, store, body))


@router.patch("/issues/{issue_id}")
def update(
    request: Request,
    issue_id: int,
    body: dict[str, Any] = Body(...),
    ctx: RequestContext = Depends(get_request_context),
) -> JSONResponse:
    """Apply the fields present in the body. Absent fields are left unchanged."""
    store: IssueStore = request.app.state.issue_store
    return _respond(ctx, update_issue(ctx, store, issue_id, body))


@router.delete("/issues/{issue_id}")
def delete(
    request: Request,
    issue_id: int,
    ctx: RequestContext = Depends(get_request_context),
) -> JSONResponse:
    """Delete the issue if the caller owns it. Succeeds either way."""
    store: IssueStore = request.app.state.issue_store
    return _respond(ctx, delete_issue(ctx, store, issue_id))
