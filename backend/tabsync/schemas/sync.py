"""Request/response models for the marker-based sync protocol."""

import re
from typing import Any
from typing import Dict
from typing import List
from typing import Literal
from typing import Optional

from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic.alias_generators import to_camel

from tabsync.models.enums import EventType
from tabsync.schemas.base import CamelModel

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def is_valid_instance_id(value: Optional[str]) -> bool:
    """Return True when *value* is a canonical, hyphenated UUID string."""

    return bool(value) and UUID_RE.match(value) is not None


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class EventIn(CamelModel):
    """One locally observed browser event.

    Only ``eventType`` and ``timestamp`` are mandatory; the remaining fields
    depend on the event type and are stored as NULL when absent.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    event_type: EventType
    document_id: Optional[str] = Field(None, max_length=255, description="Client idempotency key")
    timestamp: int = Field(..., ge=0, description="Client-observed epoch millis")
    instance_id: Optional[str] = None

    # Tab / window
    tab_id: Optional[int] = None
    window_id: Optional[int] = None
    url: Optional[str] = None
    title: Optional[str] = None

    # Navigation
    navigation_type: Optional[str] = None
    from_address_bar: Optional[bool] = None
    transition_type: Optional[str] = None
    transition_qualifiers: Optional[List[str]] = None

    # Time tracking
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    duration_ms: Optional[int] = None
    was_active: Optional[bool] = None
    was_window_focused: Optional[bool] = None
    user_was_active: Optional[bool] = None

    # Context
    tab_count: Optional[int] = None
    window_count: Optional[int] = None

    # Tab groups – clients disagree on the field names, accept all of them
    group_id: Optional[int] = None
    group_title: Optional[str] = None
    group_name: Optional[str] = None
    group_color: Optional[str] = None
    color: Optional[str] = None

    # Session restoration
    original_session_id: Optional[str] = None
    new_window_id: Optional[int] = None

    metadata: Optional[Any] = None

    @field_validator("document_id")
    @classmethod
    def _blank_document_id_is_absent(cls, value: Optional[str]) -> Optional[str]:
        # "" would otherwise collide on UNIQUE(instance_id, document_id)
        if value is not None and not value.strip():
            return None
        return value


class RestorationMetadata(CamelModel):
    event_type: Literal["session-restored"] = "session-restored"
    original_session_id: str = Field(..., min_length=1)
    restored_at: int = Field(..., ge=0)
    new_window_id: Optional[int] = None


class SyncEventsRequest(CamelModel):
    instance_id: str
    from_timestamp: int = 0
    events: List[EventIn]
    restoration_metadata: Optional[List[RestorationMetadata]] = None

    @field_validator("instance_id")
    @classmethod
    def _check_instance_id(cls, value: str) -> str:
        if not is_valid_instance_id(value):
            raise ValueError("instanceId must be a UUID")
        return value


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


class SyncMarkerOut(CamelModel):
    instance_id: str
    last_event_timestamp: int
    last_session_id: Optional[str] = None
    first_sync: bool
    event_count_to_sync: int = 0


class SyncResult(CamelModel):
    instance_id: str
    events_received: int
    events_processed: int
    duplicate_count: int
    restoration_mappings: int = 0
    error_count: int = 0
    errors: List[str] = Field(default_factory=list)
    message: str


class SyncStats(CamelModel):
    has_marker: bool
    last_event_timestamp: int
    total_events: int
    events_by_type: Dict[str, int] = Field(default_factory=dict)


class RestorationOut(CamelModel):
    instance_id: str
    original_session_id: str
    new_window_id: Optional[int] = None
    restored_at: Optional[int] = None
