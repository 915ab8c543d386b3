"""Shared *Enum* definitions for SQLAlchemy & Pydantic models.

The Enums inherit from ``str`` so that:

* JSON serialisation remains unchanged (values render as plain strings).
* Equality checks against raw literals (``event_type == "navigation"``) keep
  working in services and tests.
"""

from __future__ import annotations

from enum import Enum


class EventType(str, Enum):
    NAVIGATION = "navigation"
    TAB_CREATED = "tab-created"
    TAB_REMOVED = "tab-removed"
    TAB_ACTIVATED = "tab-activated"
    TAB_UPDATED = "tab-updated"
    TAB_BATCH_CREATED = "tab-batch-created"
    WINDOW_CREATED = "window-created"
    WINDOW_REMOVED = "window-removed"
    WINDOW_FOCUSED = "window-focused"
    TIME_ENTRY = "time-entry"
    IDLE_STATE_CHANGED = "idle-state-changed"
    SESSION_CAPTURED = "session-captured"
    SESSION_RESTORED = "session-restored"
    TAB_GROUP_CREATED = "tab-group-created"
    TAB_GROUP_UPDATED = "tab-group-updated"
    TAB_GROUP_REMOVED = "tab-group-removed"

    @property
    def is_tab_group(self) -> bool:
        return self.value.startswith("tab-group-")


__all__ = [
    "EventType",
]
