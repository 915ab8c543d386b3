"""Custom exceptions for the sync core.

Only *validation* problems get their own types.  Store failures surface as
the SQLAlchemy exceptions that caused them so callers can tell a lost
connection apart from a constraint violation.
"""

from sqlalchemy.exc import DataError
from sqlalchemy.exc import IntegrityError

# Failures limited to a single row.  Anything else (lost connection, ...)
# propagates and aborts the enclosing transaction.
SOFT_ITEM_ERRORS = (IntegrityError, DataError, ValueError, TypeError)


class TabSyncError(Exception):
    """Base exception for all tabsync errors."""

    pass


class InstanceIdError(TabSyncError):
    """Raised when an instance id is missing, malformed or inconsistent."""

    def __init__(self, message: str = "Invalid instance ID format (expected UUID)"):
        super().__init__(message)


class BatchTooLargeError(TabSyncError):
    """Raised when an upload exceeds the configured batch size."""

    def __init__(self, received: int, limit: int):
        self.received = received
        self.limit = limit
        super().__init__(f"Batch of {received} events exceeds the limit of {limit}")
