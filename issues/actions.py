"""
issues/actions.py -- Authorization-gated issue mutations and the issue reads.

Mutations (create_issue, update_issue, delete_issue):
  1. Require an authenticated caller via ctx.current_user(). Unauthenticated
     calls return ActionResult.unauthorized() before the store is touched.
  2. Validate input with issues/schemas.py.
  3. Delegate to IssueStore, which invalidates the "issues" cache tag.
  4. Return an ActionResult. Store failures are logged and reported with a
     generic message; nothing raises past this module.

Authorization scope differs by operation:
  - delete is owner-scoped: (id, caller id). A non-owner gets success=True and
    nothing is deleted.
  - update matches by id alone, so any signed-in user can edit any issue.
    This mirrors long-standing behavior and is pinned by a test; scoping it
    to the owner is a product decision, not a silent fix.

Reads (get_issues, get_issue) need no caller. get_issues is read-through
cached under the "issues" tag, guarded by the tag generation; get_issue
always reads the store.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from auth.context import RequestContext
from cache.store import TagCache
from core.results import ActionResult, field_errors
from issues.models import Issue
from issues.schemas import IssueForm, IssuePayload, IssueUpdateForm
from issues.store import ISSUES_TAG, IssueStore

logger = logging.getLogger("issuetracker.issues")

_LIST_CACHE_KEY = "issues:all"

# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def create_issue(ctx: RequestContext, store: IssueStore, data: Mapping[str, Any]) -> ActionResult:
    try:
        user = ctx.current_user()
        if user is None:
            return ActionResult.unauthorized()

        try:
            form = IssueForm.model_validate(dict(data))
        except ValidationError as exc:
            return ActionResult.invalid("Validation failed", field_errors(exc))

        if ctx.user_store.get_by_id(form.user_id) is None:
            return ActionResult.invalid("Validation failed", {"userId": ["User does not exist"]})

        issue = store.insert(
            Issue(
                title=form.title,
                description=form.description,
                status=form.status.value,
                priority=form.priority.value,
                user_id=form.user_id,
            )
        )
        logger.info("Issue %d created by user %s", issue.id, user.id)
        return ActionResult.ok("Issue created successfully", status_code=201)
    except Exception:
        logger.exception("Error creating issue")
        return ActionResult.failed("An error occurred while creating the issue", "Failed to create issue")


def update_issue(ctx: RequestContext, store: IssueStore, issue_id: int, data: Mapping[str, Any]) -> ActionResult:
    try:
        user = ctx.current_user()
        if user is None:
            return ActionResult.unauthorized()

        try:
            form = IssueUpdateForm.model_validate(dict(data))
        except ValidationError as exc:
            return ActionResult.invalid("Invalid inputs", field_errors(exc))

        updated = store.update(issue_id, **form.changes())
        logger.info("Issue %d updated by user %s (%d row(s))", issue_id, user.id, updated)
        return ActionResult.ok("Issue updated successfully")
    except Exception:
        logger.exception("Error updating issue %s", issue_id)
        return ActionResult.failed("Failed to update issue", "Failed to update issue")


def delete_issue(ctx: RequestContext, store: IssueStore, issue_id: int) -> ActionResult:
    try:
        user = ctx.current_user()
        if user is None:
            return ActionResult.unauthorized()

        deleted = store.delete_by_id_and_owner(issue_id, user.id)
        if not deleted:
            logger.info("Delete of issue %d by user %s matched no rows", issue_id, user.id)
        return ActionResult.ok(f"Deleted issue with id of {issue_id} successfully")
    except Exception:
        logger.exception("Error deleting issue %s", issue_id)
        return ActionResult.failed("Failed to delete issue", "Failed to delete issue")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_issues(store: IssueStore, cache: Optional[TagCache] = None) -> list[dict]:
    """Return every issue as JSON payloads, newest first, through the tag cache.

    The tag generation is read before the query; a write that lands between
    the query and the cache write bumps it, and the now-stale list is not
    cached.
    """
    generation = None
    if cache is not None:
        cached = cache.get(_LIST_CACHE_KEY)
        if cached is not None:
            return cached
        generation = cache.generation(ISSUES_TAG)
    payload = [IssuePayload.from_issue(issue).to_json() for issue in store.find_all()]
    if cache is not None:
        cache.set(_LIST_CACHE_KEY, payload, tag=ISSUES_TAG, generation=generation)
    return payload


def get_issue(store: IssueStore, issue_id: int) -> Optional[dict]:
    """Return one issue as a JSON payload, or None. Never cached."""
    issue = store.find_by_id(issue_id)
    return IssuePayload.from_issue(issue).to_json() if issue is not None else None
