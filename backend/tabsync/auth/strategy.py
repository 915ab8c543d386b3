"""Authentication strategies.

The sync core only needs a resolved ``user_id``; how it is obtained is
decided once at startup:

• :class:`DevAuthStrategy` – local development and tests, every request is
  the ``dev@local`` user.
• :class:`JWTAuthStrategy` – validates an HS256 bearer token issued by an
  external identity service or minted by ``tabsync.manage`` and maps its
  ``sub`` claim (or the legacy ``id`` claim) to ``users.id``.
"""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
from typing import Any

from fastapi import HTTPException
from fastapi import Request
from fastapi import status
from jose import JWTError
from sqlalchemy.orm import Session

from tabsync.auth.tokens import decode_token
from tabsync.auth.tokens import subject_user_id
from tabsync.config import get_settings
from tabsync.crud import crud
from tabsync.models.models import User


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthStrategy(ABC):
    """Pluggable authentication backend (strategy pattern)."""

    @abstractmethod
    def get_current_user(self, request: Request, db: Session) -> User:  # noqa: D401 – abstract
        """Return the authenticated user or raise **401**."""


class DevAuthStrategy(AuthStrategy):
    """Bypass all checks – used when *AUTH_DISABLED* is true or in tests."""

    DEV_EMAIL = "dev@local"

    def _get_or_create_dev_user(self, db: Session) -> User:
        user = crud.get_user_by_email(db, self.DEV_EMAIL)
        if user is not None:
            return user
        return crud.create_user(db, email=self.DEV_EMAIL, display_name="Developer")

    def get_current_user(self, request: Request, db: Session) -> User:  # noqa: D401 – impl
        return self._get_or_create_dev_user(db)


class JWTAuthStrategy(AuthStrategy):
    """Production strategy that validates HS256 tokens."""

    def __init__(self, secret: str | None = None):
        self._secret = secret if secret is not None else get_settings().jwt_secret

    def decode(self, token: str) -> dict[str, Any]:
        """Return verified claims; raises :class:`jose.JWTError`."""
        return decode_token(token, self._secret)

    def get_current_user(self, request: Request, db: Session) -> User:  # noqa: D401 – impl
        auth_header: str | None = request.headers.get("Authorization")
        if not auth_header or not auth_header.lower().startswith("bearer "):
            raise _unauthorized("Missing bearer token")

        token = auth_header[7:].strip()
        if not token:
            raise _unauthorized("Missing bearer token")

        try:
            payload = self.decode(token)
        except JWTError:
            raise _unauthorized("Invalid or expired token")

        try:
            user_id = subject_user_id(payload)
        except (TypeError, ValueError):
            raise _unauthorized("Invalid token subject")

        user = crud.get_user(db, user_id)
        if user is None or not user.is_active:
            raise _unauthorized("User not found or inactive")

        return user


__all__ = [
    "AuthStrategy",
    "DevAuthStrategy",
    "JWTAuthStrategy",
]
