"""
auth/actions.py -- Sign-in, sign-up and sign-out.

Each action validates, consults the stores through the RequestContext, and
returns an ActionResult envelope. Nothing raises past the action boundary:
validation failures become field errors, unexpected failures are logged and
reported with a generic message.

Cookie changes are queued on the context (start_session / clear_session) and
written by the route via ctx.apply_to(response). The session id and the
password never appear in a returned payload.

Known behavior kept on purpose: a failed sign-in reports its error under the
"email" key for both an unknown email and a wrong password. The message is
identical in both cases, and authenticate_user() equalizes timing, but the
key itself hints that the email field is involved.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from auth.context import RequestContext
from auth.models import User
from auth.schemas import SignInForm, SignUpForm
from auth.tokens import authenticate_user, hash_password
from core.results import ActionResult, field_errors

logger = logging.getLogger("issuetracker.auth.actions")

SIGN_IN_PATH = "/signin"

_BAD_CREDENTIALS = "Invalid email or password"
_EMAIL_TAKEN = "This email has already been used"


def sign_in(ctx: RequestContext, data: Mapping[str, Any]) -> ActionResult:
    try:
        try:
            form = SignInForm.model_validate(dict(data))
        except ValidationError as exc:
            return ActionResult.invalid("Incorrect or missing field", field_errors(exc))

        user = authenticate_user(ctx.user_store, form.email, form.password)
        if user is None:
            logger.info("Sign-in rejected")
            return ActionResult.invalid(_BAD_CREDENTIALS, {"email": [_BAD_CREDENTIALS]}, status_code=401)

        ctx.start_session(user.id)
        logger.info("User %s signed in", user.id)
        return ActionResult.ok("Signed in successfully")
    except Exception:
        logger.exception("Sign in failed")
        return ActionResult.failed("Sign in failed", "Sign in failed")


def sign_up(ctx: RequestContext, data: Mapping[str, Any]) -> ActionResult:
    try:
        try:
            form = SignUpForm.model_validate(dict(data))
        except ValidationError as exc:
            return ActionResult.invalid("Validation Failed", field_errors(exc))

        if ctx.user_store.get_by_email(form.email) is not None:
            return ActionResult.invalid("User already exists", {"email": [_EMAIL_TAKEN]}, status_code=409)

        try:
            user_id = ctx.user_store.create_user(User(email=form.email, password=hash_password(form.password)))
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email.
            return ActionResult.invalid("User already exists", {"email": [_EMAIL_TAKEN]}, status_code=409)

        created = ctx.user_store.get_by_id(user_id)
        if created is None:
            raise RuntimeError("failed to create a new user")

        ctx.start_session(created.id)
        logger.info("User %s signed up", created.id)
        return ActionResult.ok("User has been successfully created", status_code=201)
    except Exception:
        logger.exception("Sign up failed")
        return ActionResult.failed("Failed to signup", "Failed to signup")


def sign_out(ctx: RequestContext) -> ActionResult:
    """Revoke the current session, clear the cookie, and redirect to sign-in.

    The cookie is cleared and the redirect target set in `finally`, so a
    failed revocation never leaves the client holding a cookie or stranded on
    the current page.
    """
    result = ActionResult.ok("Logged out successfully")
    try:
        ctx.end_session()
    except Exception:
        logger.exception("Sign out failed")
        result = ActionResult.failed("Failed to sign out")
    finally:
        ctx.clear_session()
        ctx.redirect_to = SIGN_IN_PATH
    return result
