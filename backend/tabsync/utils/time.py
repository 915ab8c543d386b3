"""Time helpers.

The wire protocol speaks epoch milliseconds everywhere, while SQLAlchemy
``DateTime`` columns hold naive UTC.  Import these helpers instead of calling
the stdlib directly so both representations come from one clock.
"""

from datetime import datetime
from datetime import timezone


def utc_now() -> datetime:  # noqa: D401 – simple utility
    """Return *aware* current time in UTC."""

    return datetime.now(timezone.utc)


def epoch_millis() -> int:
    """Return the current time as integer epoch milliseconds."""

    return int(utc_now().timestamp() * 1000)


__all__ = ["utc_now", "epoch_millis"]
