"""Row-level helpers for the sync tables.

Functions here never commit (with the exception of :func:`create_user`, which
the auth layer calls outside of any sync transaction).  Transaction scope is
owned by the services so a whole upload can be committed or rolled back as
one unit.
"""

from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from sqlalchemy import distinct
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.orm import selectinload

from tabsync.models.enums import EventType
from tabsync.models.models import SessionSnapshot
from tabsync.models.models import SessionWindow

# NOTE: For return type hints we use ``Optional[User]`` instead of PEP 604
# unions; the declarative class proxies ``|`` and breaks at import time on
# some Python versions.
from tabsync.models.models import User
from tabsync.models.sync import Event
from tabsync.models.sync import SessionRestoration
from tabsync.models.sync import SyncMarker
from tabsync.schemas.sync import EventIn

# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, *, email: str, display_name: Optional[str] = None) -> User:
    """Insert a user row and commit."""

    user = User(email=email, display_name=display_name, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_users_with_activity(db: Session) -> List[tuple]:
    """Return ``(user, instance_count, event_count, last_event_at)`` rows, newest user first."""

    return (
        db.query(
            User,
            func.count(distinct(Event.instance_id)),
            func.count(Event.id),
            func.max(Event.timestamp),
        )
        .outerjoin(Event, Event.user_id == User.id)
        .group_by(User.id)
        .order_by(User.id.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Sync markers
# ---------------------------------------------------------------------------


def get_marker(db: Session, user_id: int, instance_id: str) -> Optional[SyncMarker]:
    return (
        db.query(SyncMarker)
        .filter(SyncMarker.user_id == user_id, SyncMarker.instance_id == instance_id)
        .first()
    )


def create_marker(db: Session, user_id: int, instance_id: str, last_event_timestamp: int = 0) -> SyncMarker:
    """Stage a new marker and flush so unique violations surface immediately."""

    marker = SyncMarker(user_id=user_id, instance_id=instance_id, last_event_timestamp=last_event_timestamp)
    db.add(marker)
    db.flush()
    return marker


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def count_events(
    db: Session,
    user_id: int,
    instance_id: str,
    *,
    newer_than: Optional[int] = None,
) -> int:
    """Count an instance's events, optionally only those after *newer_than*."""

    query = db.query(func.count(Event.id)).filter(Event.user_id == user_id, Event.instance_id == instance_id)
    if newer_than is not None:
        query = query.filter(Event.timestamp > newer_than)
    return query.scalar() or 0


def count_events_by_type(db: Session, user_id: int, instance_id: Optional[str] = None) -> Dict[str, int]:
    query = db.query(Event.event_type, func.count(Event.id)).filter(Event.user_id == user_id)
    if instance_id is not None:
        query = query.filter(Event.instance_id == instance_id)
    return {event_type: count for event_type, count in query.group_by(Event.event_type).all()}


def event_exists(db: Session, instance_id: str, document_id: str) -> bool:
    """Return True if *document_id* was already ingested for *instance_id*."""

    row = (
        db.query(Event.id)
        .filter(Event.instance_id == instance_id, Event.document_id == document_id)
        .first()
    )
    return row is not None


_COMMON_FIELDS = ("tab_id", "window_id", "url", "title", "tab_count", "window_count", "group_id")
_NAVIGATION_FIELDS = ("navigation_type", "from_address_bar", "transition_type", "transition_qualifiers")
_TIME_FIELDS = ("start_time", "end_time", "duration_ms", "was_active", "was_window_focused", "user_was_active")
_RESTORATION_FIELDS = ("original_session_id", "new_window_id")

# Field groups that only make sense for particular event types.  Common
# fields are copied for every event.
_TYPED_FIELDS: Dict[EventType, tuple] = {
    EventType.NAVIGATION: _NAVIGATION_FIELDS,
    EventType.TIME_ENTRY: _TIME_FIELDS,
    EventType.SESSION_RESTORED: _RESTORATION_FIELDS,
}


def _group_name(event: EventIn) -> Optional[str]:
    if event.group_name:
        return event.group_name
    if event.group_title:
        return event.group_title
    # Group listeners report the group's label as the event title
    return event.title if event.event_type.is_tab_group else None


def build_event_row(user_id: int, instance_id: str, event: EventIn) -> Event:
    """Map an inbound event onto an ``events`` row.

    Only the column groups relevant to ``event.event_type`` are filled;
    everything else stays NULL.
    """

    values: Dict[str, Any] = {name: getattr(event, name) for name in _COMMON_FIELDS}
    for name in _TYPED_FIELDS.get(event.event_type, ()):
        values[name] = getattr(event, name)

    if event.event_type.is_tab_group:
        values["group_name"] = _group_name(event)
        values["group_color"] = event.group_color or event.color

    return Event(
        user_id=user_id,
        instance_id=instance_id,
        event_type=event.event_type.value,
        document_id=event.document_id or None,
        timestamp=event.timestamp,
        event_metadata=event.metadata,
        **values,
    )


# ---------------------------------------------------------------------------
# Session restorations
# ---------------------------------------------------------------------------


def create_restoration(
    db: Session,
    *,
    user_id: int,
    instance_id: str,
    original_session_id: str,
    new_window_id: Optional[int] = None,
    restored_at: Optional[int] = None,
) -> SessionRestoration:
    row = SessionRestoration(
        user_id=user_id,
        instance_id=instance_id,
        original_session_id=original_session_id,
        new_window_id=new_window_id,
        restored_at=restored_at,
    )
    db.add(row)
    db.flush()
    return row


def get_restorations(
    db: Session,
    user_id: int,
    *,
    instance_id: Optional[str] = None,
    original_session_id: Optional[str] = None,
    new_window_id: Optional[int] = None,
) -> List[SessionRestoration]:
    query = db.query(SessionRestoration).filter(SessionRestoration.user_id == user_id)
    if instance_id is not None:
        query = query.filter(SessionRestoration.instance_id == instance_id)
    if original_session_id is not None:
        query = query.filter(SessionRestoration.original_session_id == original_session_id)
    if new_window_id is not None:
        query = query.filter(SessionRestoration.new_window_id == new_window_id)
    return query.order_by(SessionRestoration.id.desc()).all()


# ---------------------------------------------------------------------------
# Session snapshots
# ---------------------------------------------------------------------------


def get_session(db: Session, user_id: int, session_id: str, *, with_tree: bool = False) -> Optional[SessionSnapshot]:
    """Return the snapshot row for *session_id* owned by *user_id*."""

    query = db.query(SessionSnapshot)
    if with_tree:
        # Re-read the tree in stored order even when the rows are already in
        # the identity map with their insertion-ordered collections.
        query = query.options(
            selectinload(SessionSnapshot.windows).selectinload(SessionWindow.tabs),
        ).populate_existing()
    return query.filter(SessionSnapshot.user_id == user_id, SessionSnapshot.session_id == session_id).first()


def get_sessions(
    db: Session,
    user_id: int,
    *,
    skip: int = 0,
    limit: int = 50,
    instance_id: Optional[str] = None,
) -> List[SessionSnapshot]:
    query = db.query(SessionSnapshot).filter(SessionSnapshot.user_id == user_id)
    if instance_id is not None:
        query = query.filter(SessionSnapshot.instance_id == instance_id)
    return query.order_by(SessionSnapshot.captured_at.desc(), SessionSnapshot.id.desc()).offset(skip).limit(limit).all()
