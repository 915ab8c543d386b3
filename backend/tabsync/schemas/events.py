from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from pydantic import Field

from tabsync.models.enums import EventType
from tabsync.schemas.base import CamelModel


class EventFilters(CamelModel):
    instance_id: Optional[str] = None
    event_types: Optional[List[EventType]] = None
    from_timestamp: Optional[int] = None
    to_timestamp: Optional[int] = None
    limit: int = 100
    offset: int = Field(0, ge=0)


class EventOut(CamelModel):
    id: int
    event_type: str
    document_id: Optional[str] = None
    timestamp: int
    instance_id: str
    tab_id: Optional[int] = None
    window_id: Optional[int] = None
    url: Optional[str] = None
    title: Optional[str] = None
    navigation_type: Optional[str] = None
    from_address_bar: Optional[bool] = None
    transition_type: Optional[str] = None
    transition_qualifiers: Optional[List[str]] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    duration_ms: Optional[int] = None
    was_active: Optional[bool] = None
    was_window_focused: Optional[bool] = None
    user_was_active: Optional[bool] = None
    tab_count: Optional[int] = None
    window_count: Optional[int] = None
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    group_color: Optional[str] = None
    original_session_id: Optional[str] = None
    new_window_id: Optional[int] = None
    metadata: Optional[Any] = None


class EventPage(CamelModel):
    total: int
    count: int
    offset: int
    limit: int
    events: List[EventOut] = Field(default_factory=list)


class EventStats(CamelModel):
    total_events: int = 0
    unique_event_types: int = 0
    active_days: int = 0
    first_event_timestamp: Optional[int] = None
    last_event_timestamp: Optional[int] = None
    events_by_type: Dict[str, int] = Field(default_factory=dict)


class InstanceSummary(CamelModel):
    instance_id: str
    event_count: int
    first_event_at: Optional[int] = None
    last_event_at: Optional[int] = None
