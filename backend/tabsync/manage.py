#!/usr/bin/env python3
"""User provisioning for deployments that run with authentication enabled.

The JWT strategy only accepts tokens whose subject is an existing, active
``users`` row, so every browser owner has to be created here first.

Usage:
    tabsync-admin create-user EMAIL [--name NAME]
    tabsync-admin list-users
    tabsync-admin token USER [--days N]

``USER`` is a numeric id or an email address.  ``create-user`` prints a
token straight away; an existing email is reused and only gets a new token.
"""

import argparse
import logging
import sys
from datetime import timedelta
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from tabsync import database
from tabsync.auth.tokens import DEFAULT_TOKEN_LIFETIME
from tabsync.auth.tokens import issue_access_token
from tabsync.config import get_settings
from tabsync.crud import crud
from tabsync.models.models import User
from tabsync.schemas.auth import UserActivity
from tabsync.utils.log import configure_logging

logger = logging.getLogger(__name__)


def create_user(db: Session, email: str, name: Optional[str] = None) -> Tuple[User, bool]:
    """Return ``(user, created)``; an existing email is returned unchanged apart from its name."""

    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValueError(f"Invalid email address: {email!r}")

    user = crud.get_user_by_email(db, email)
    if user is not None:
        if name and user.display_name != name:
            user.display_name = name
            db.commit()
        return user, False

    user = crud.create_user(db, email=email, display_name=name)
    logger.info("Created user %s (%s)", user.id, email)
    return user, True


def list_users(db: Session) -> List[UserActivity]:
    return [
        UserActivity(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            is_active=user.is_active,
            created_at=user.created_at,
            instance_count=instances or 0,
            event_count=events or 0,
            last_event_at=last_event_at,
        )
        for user, instances, events, last_event_at in crud.get_users_with_activity(db)
    ]


def resolve_user(db: Session, ref: str) -> User:
    """Look a user up by numeric id or email; raises ``LookupError``."""

    ref = ref.strip()
    user = crud.get_user(db, int(ref)) if ref.isdigit() else crud.get_user_by_email(db, ref.lower())
    if user is None:
        raise LookupError(f"No user matches {ref!r}")
    return user


def token_for(user: User, lifetime: timedelta = DEFAULT_TOKEN_LIFETIME) -> str:
    return issue_access_token(user.id, user.email, user.display_name, expires_delta=lifetime)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _print_token(user: User, token: str) -> None:
    print(f"User ID: {user.id} ({user.email})")
    print("=" * 70)
    print(token)
    print("=" * 70)
    print(f"Authorization: Bearer {token}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tabsync-admin", description="Manage tabsync users and tokens")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-user", help="Create a user (or reuse one) and print a token")
    create.add_argument("email")
    create.add_argument("--name", default=None)
    create.add_argument("--days", type=int, default=DEFAULT_TOKEN_LIFETIME.days)

    commands.add_parser("list-users", help="List users with their sync activity")

    token = commands.add_parser("token", help="Issue a token for an existing user")
    token.add_argument("user", help="User id or email")
    token.add_argument("--days", type=int, default=DEFAULT_TOKEN_LIFETIME.days)
    return parser


def main(argv: Optional[Sequence[str]] = None, engine: Optional[Engine] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)

    engine = engine or database.default_engine
    database.initialize_database(engine)
    factory = database.make_sessionmaker(engine)

    try:
        with database.db_session(factory) as db:
            if args.command == "create-user":
                user, created = create_user(db, args.email, args.name)
                print(("Created" if created else "Existing") + f" user {user.id}")
                _print_token(user, token_for(user, timedelta(days=args.days)))

            elif args.command == "list-users":
                users = list_users(db)
                if not users:
                    print("No users found. Create one with: tabsync-admin create-user EMAIL")
                for row in users:
                    print(
                        f"{row.id:<4} | {row.email[:30]:<30} | {(row.display_name or '')[:20]:<20} | "
                        f"instances={row.instance_count} events={row.event_count}"
                    )
                print(f"Total users: {len(users)}")

            elif args.command == "token":
                user = resolve_user(db, args.user)
                _print_token(user, token_for(user, timedelta(days=args.days)))

    except (ValueError, LookupError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
