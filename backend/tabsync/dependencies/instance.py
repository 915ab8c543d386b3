"""Instance-id handling for sync requests.

Every sync request names the browser install it comes from, either in the
``X-Instance-ID`` header, in the URL, or in the body.  All of them must be
UUIDs and, when the header is present, must agree with it.
"""

from typing import Optional

from fastapi import Header

from tabsync.exceptions import InstanceIdError
from tabsync.schemas.sync import is_valid_instance_id

INSTANCE_HEADER = "X-Instance-ID"


def optional_instance_id(x_instance_id: Optional[str] = Header(None, alias=INSTANCE_HEADER)) -> Optional[str]:
    """Validate the header when present; absence is allowed."""

    if x_instance_id is None:
        return None
    if not is_valid_instance_id(x_instance_id):
        raise InstanceIdError()
    return x_instance_id


def require_instance_id(x_instance_id: Optional[str] = Header(None, alias=INSTANCE_HEADER)) -> str:
    """Return the header value or raise when it is missing or malformed."""

    if not x_instance_id:
        raise InstanceIdError("X-Instance-ID header is required")
    if not is_valid_instance_id(x_instance_id):
        raise InstanceIdError()
    return x_instance_id


def reconcile_instance_id(header_value: Optional[str], explicit: str) -> str:
    """Validate a path/body instance id against the optional header value."""

    if not is_valid_instance_id(explicit):
        raise InstanceIdError()
    if header_value is not None and header_value != explicit:
        raise InstanceIdError("Instance ID mismatch")
    return explicit


__all__ = [
    "INSTANCE_HEADER",
    "optional_instance_id",
    "require_instance_id",
    "reconcile_instance_id",
]
