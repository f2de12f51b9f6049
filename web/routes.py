"""
web/routes.py -- Form-submission auth routes for the issue tracker.

These routes receive application/x-www-form-urlencoded posts from the sign-in
and sign-up pages and hand the fields to auth/actions.py. They share app.state
with the API routes (same user and session stores).

Routes:
  POST /signin    -- handle email/password sign-in; sets the session cookie
  POST /signup    -- create an account and sign it in; sets the session cookie
  POST /signout   -- revoke the session, clear the cookie, 303 -> /signin

Sign-in and sign-up answer with the action's {success, message, errors?,
error?} envelope as JSON so the page can render field errors inline. Every
form field is optional at this layer: a missing field is reported by the
action's validation, not as a framework 422.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse, RedirectResponse

from auth.actions import sign_in, sign_out, sign_up
from auth.context import RequestContext
from auth.dependencies import get_request_context
from core.results import ActionResult

logger = logging.getLogger("issuetracker.web")

router = APIRouter()


def _envelope(ctx: RequestContext, result: ActionResult) -> JSONResponse:
    resp = JSONResponse(status_code=result.status_code, content=result.to_payload())
    ctx.apply_to(resp)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/signin")
def signin_post(
    email: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    ctx: RequestContext = Depends(get_request_context),
) -> JSONResponse:
    """Handle the sign-in form."""
    return _envelope(ctx, sign_in(ctx, {"email": email, "password": password}))


@router.post("/signup")
def signup_post(
    email: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    confirm_password: Optional[str] = Form(default=None, alias="confirmPassword"),
    ctx: RequestContext = Depends(get_request_context),
) -> JSONResponse:
    """Handle the sign-up form."""
    data = {"email": email, "password": password, "confirmPassword": confirm_password}
    return _envelope(ctx, sign_up(ctx, data))


@router.post("/signout")
def signout_post(ctx: RequestContext = Depends(get_request_context)) -> RedirectResponse:
    """Sign out and redirect to the sign-in page, whatever the outcome."""
    result = sign_out(ctx)
    if not result.success:
        logger.warning("Sign out finished with an error: %s", result.message)
    resp = RedirectResponse(ctx.redirect_to or "/signin", status_code=303)
    ctx.apply_to(resp)
    return resp
