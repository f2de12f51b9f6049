"""
api/routes/issue.py -- Public read API for issues.

Routes:
  GET  /api/issue        -- every issue, newest first  -> {"data": [...]}
  POST /api/issue        -- add an issue                -> {"message", "issue"}
                            (title bounded like the issue form: 3..100 chars)
  GET  /api/issue/{id}   -- one issue                   -> {"data": {...}}

No authentication: this surface is consumed by external clients, so the list
response carries permissive CORS headers of its own. Bodies are plain
{"message": ...} objects on failure rather than the {"error": {...}} envelope,
and 500s never echo the underlying exception.

The list is served through the tag cache; the POST goes through IssueStore,
which invalidates that cache before responding.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import IssueCreateRequest
from issues.actions import get_issue, get_issues
from issues.models import Issue
from issues.schemas import TITLE_MAX_LENGTH, TITLE_MIN_LENGTH, IssuePayload
from issues.store import IssueStore

logger = logging.getLogger("issuetracker.api.issue")

router = APIRouter()

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@router.get("/issue")
def list_issues(request: Request) -> JSONResponse:
    """Return every issue with its owner, newest first."""
    store: IssueStore = request.app.state.issue_store
    try:
        data = get_issues(store, request.app.state.cache)
    except Exception:
        logger.exception("Failed to fetch issues")
        return JSONResponse(status_code=500, content={"message": "Failed to fetch issues"})
    return JSONResponse(status_code=200, content={"data": data}, headers=_CORS_HEADERS)


@router.post("/issue", status_code=201)
def add_issue(request: Request, body: IssueCreateRequest) -> JSONResponse:
    """Add an issue. status defaults to "backlog" and priority to "low"."""
    if not body.title or not body.user_id:
        return JSONResponse(status_code=400, content={"message": "Issues title and user id are required"})
    if not TITLE_MIN_LENGTH <= len(body.title) <= TITLE_MAX_LENGTH:
        return JSONResponse(
            status_code=400,
            content={"message": f"Issue title must be {TITLE_MIN_LENGTH} to {TITLE_MAX_LENGTH} characters"},
        )

    store: IssueStore = request.app.state.issue_store
    try:
        issue = store.insert(
            Issue(
                title=body.title,
                description=body.description or None,
                status=body.status.value,
                priority=body.priority.value,
                user_id=body.user_id,
            )
        )
    except Exception:
        logger.exception("Failed to add issue")
        return JSONResponse(status_code=500, content={"message": "Failed to add issue"})
    return JSONResponse(
        status_code=201,
        content={"message": "Issue Added successfully", "issue": IssuePayload.from_issue(issue).to_json()},
    )


@router.get("/issue/{issue_id}")
def read_issue(request: Request, issue_id: int) -> JSONResponse:
    """Return one issue with its owner, or 404."""
    store: IssueStore = request.app.state.issue_store
    try:
        data = get_issue(store, issue_id)
    except Exception:
        logger.exception("Failed to fetch issue %d", issue_id)
        return JSONResponse(status_code=500, content={"message": "Failed to fetch issue"})
    if data is None:
        return JSONResponse(status_code=404, content={"message": "Could not retrieve the issue"})
    return JSONResponse(status_code=200, content={"data": data})
