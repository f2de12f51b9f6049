#!/usr/bin/env python3
"""
Issue tracker -- administration commands.

Operates directly on the configured database (DATABASE_URL) without starting
the web server.

Usage:
  python main.py create-user a@b.com
  python main.py create-user a@b.com --password secret1
  python main.py issues
  python main.py issues --json
  python main.py purge

Environment variables:
  DATABASE_URL   SQLAlchemy URL of the application database (see core/config.py).
  CACHE_DB_PATH  Path of the read cache database, used by `purge`.
"""

import argparse
import getpass
import json
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.schemas import SignUpForm
from auth.store import SessionStore, UserStore
from auth.tokens import hash_password
from cache.store import TagCache
from core.config import get_settings
from core.db import create_db_engine, init_schema
from core.results import field_errors
from issues.schemas import IssuePayload
from issues.store import IssueStore


def _create_user(args: argparse.Namespace) -> int:
    password = args.password
    if password is None:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
    else:
        confirm = password

    try:
        form = SignUpForm.model_validate({"email": args.email, "password": password, "confirmPassword": confirm})
    except ValidationError as exc:
        for field, messages in field_errors(exc).items():
            for msg in messages:
                print(f"  [!] {field}: {msg}")
        return 1

    engine = create_db_engine(args.db)
    try:
        init_schema(engine)
        store = UserStore(engine)
        if store.get_by_email(form.email) is not None:
            print(f"  [!] A user with email {form.email} already exists.")
            return 1
        try:
            user_id = store.create_user(User(email=form.email, password=hash_password(form.password)))
        except IntegrityError:
            print(f"  [!] A user with email {form.email} already exists.")
            return 1
    finally:
        engine.dispose()

    print(f"  Created user {form.email} ({user_id})")
    return 0


def _list_issues(args: argparse.Namespace) -> int:
    engine = create_db_engine(args.db)
    try:
        init_schema(engine)
        issues = IssueStore(engine).find_all()
    finally:
        engine.dispose()

    if args.json:
        print(json.dumps([IssuePayload.from_issue(i).to_json() for i in issues], indent=2))
        return 0

    if not issues:
        print("  No issues.")
        return 0
    for issue in issues:
        owner = issue.user.email if issue.user else issue.user_id
        print(f"  #{issue.id:<5} [{issue.status:<11}] [{issue.priority:<6}] {issue.title}  ({owner})")
    print(f"\n  {len(issues)} issue(s).")
    return 0


def _purge(args: argparse.Namespace) -> int:
    settings = get_settings()
    engine = create_db_engine(args.db)
    try:
        init_schema(engine)
        sessions = SessionStore(engine, settings.session_expire_seconds).purge_expired()
    finally:
        engine.dispose()

    cache = TagCache(args.cache_db, ttl=settings.cache_ttl_seconds)
    try:
        entries = cache.purge_expired()
    finally:
        cache.close()

    print(f"  Purged {sessions} expired session(s) and {entries} expired cache entr(ies).")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="issue-tracker",
        description="Administration commands for the issue tracker.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-user a@b.com
  python main.py issues --json > issues.json
  DATABASE_URL=sqlite:////srv/issues.db python main.py purge
        """,
    )
    parser.add_argument(
        "--db",
        default=settings.database_url,
        metavar="URL",
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = sub.add_parser("create-user", help="Create a user account")
    create.add_argument("email", help="Email address of the new user")
    create.add_argument(
        "--password",
        default=None,
        help="Password for the new user. Prompted for (twice) when omitted.",
    )
    create.set_defaults(func=_create_user)

    listing = sub.add_parser("issues", help="List issues, newest first")
    listing.add_argument("--json", action="store_true", help="Output structured JSON")
    listing.set_defaults(func=_list_issues)

    purge = sub.add_parser("purge", help="Delete expired sessions and cache entries")
    purge.add_argument(
        "--cache-db",
        default=settings.cache_db_path,
        metavar="PATH",
        help="Path of the read cache database (default: CACHE_DB_PATH setting)",
    )
    purge.set_defaults(func=_purge)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
