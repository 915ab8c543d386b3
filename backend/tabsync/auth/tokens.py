"""HS256 access tokens for browser instances.

Tokens are long-lived (one year by default) because they are pasted into
the extension settings once and then reused by every sync request.
"""

from __future__ import annotations

from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import Any

from jose import jwt

from tabsync.config import get_settings

ALGORITHM = "HS256"
DEFAULT_TOKEN_LIFETIME = timedelta(days=365)


def issue_access_token(
    user_id: int,
    email: str,
    name: str | None = None,
    *,
    secret: str | None = None,
    expires_delta: timedelta = DEFAULT_TOKEN_LIFETIME,
) -> str:
    """Return a signed token whose ``sub`` (and legacy ``id``) is *user_id*."""

    expiry = datetime.now(timezone.utc) + expires_delta
    payload = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "name": name or "",
        "exp": int(expiry.timestamp()),
    }
    return jwt.encode(payload, secret if secret is not None else get_settings().jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> dict[str, Any]:
    """Verify signature and expiry; raises :class:`jose.JWTError` on failure."""

    return jwt.decode(token, secret, algorithms=[ALGORITHM])


def subject_user_id(claims: dict[str, Any]) -> int:
    """Return the user id carried by *claims*.

    ``sub`` wins; tokens minted by older tooling only carry an ``id`` claim.
    Raises ``ValueError`` when neither holds an integer.
    """

    raw = claims.get("sub")
    if raw in (None, ""):
        raw = claims.get("id")
    if raw in (None, "") or isinstance(raw, bool):
        raise ValueError("token carries no user id")
    return int(raw)


__all__ = [
    "ALGORITHM",
    "DEFAULT_TOKEN_LIFETIME",
    "decode_token",
    "issue_access_token",
    "subject_user_id",
]
