"""FastAPI dependency that exposes the *current user*.

The concrete strategy is chosen from :pydata:`settings.auth_disabled` so the
request handlers stay branch-free.  Tests may monkeypatch ``AUTH_DISABLED``
to exercise the JWT path.
"""

from __future__ import annotations

from fastapi import Depends
from fastapi import Request
from sqlalchemy.orm import Session

from tabsync.auth.strategy import AuthStrategy
from tabsync.auth.strategy import DevAuthStrategy
from tabsync.auth.strategy import JWTAuthStrategy
from tabsync.config import get_settings
from tabsync.database import get_db
from tabsync.models.models import User

_settings = get_settings()

AUTH_DISABLED: bool = _settings.auth_disabled  # noqa: N816

_strategy_cache: dict[str, AuthStrategy] = {}


def _get_strategy() -> AuthStrategy:
    """Return the singleton strategy for the current ``AUTH_DISABLED`` value."""

    if AUTH_DISABLED:
        if "dev" not in _strategy_cache:
            _strategy_cache["dev"] = DevAuthStrategy()
        return _strategy_cache["dev"]

    return get_jwt_strategy()


def get_jwt_strategy() -> JWTAuthStrategy:
    """Return the token validator regardless of ``AUTH_DISABLED``."""

    if "jwt" not in _strategy_cache:
        _strategy_cache["jwt"] = JWTAuthStrategy(_settings.jwt_secret)
    return _strategy_cache["jwt"]


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Return the authenticated *User* row or raise **401**."""

    return _get_strategy().get_current_user(request, db)


__all__ = ["get_current_user", "get_jwt_strategy"]
