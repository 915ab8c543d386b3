"""Replication models for marker-based browser activity sync.

Each browser instance uploads batches of locally observed events.  The server
keeps one cursor (``SyncMarker``) per (user, instance), an append-only event
log deduplicated by the client's ``document_id``, and the restoration
mappings that tie a reopened session to the window that replaced it.
"""

from sqlalchemy import JSON
from sqlalchemy import BigInteger
from sqlalchemy import Boolean
from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import ForeignKey
from sqlalchemy import Index
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy import Text
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func

from tabsync.database import Base

# Name of the constraint that makes ``document_id`` an idempotency key.  The
# ingestion pipeline inspects IntegrityErrors for it to tell benign duplicate
# uploads apart from real constraint violations.
EVENT_DOCUMENT_CONSTRAINT = "uq_events_instance_document"


class SyncMarker(Base):
    """Replication cursor for one browser instance.

    ``last_event_timestamp`` is epoch millis; ``0`` means the instance has
    not synced anything yet.
    """

    __tablename__ = "sync_markers"
    __table_args__ = (UniqueConstraint("user_id", "instance_id", name="uq_sync_markers_user_instance"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    instance_id = Column(String, nullable=False, index=True)

    last_event_timestamp = Column(BigInteger, nullable=False, default=0)
    last_session_id = Column(String, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)


class Event(Base):
    """Immutable browsing fact reported by one instance.

    Columns are grouped by the event types that populate them; anything an
    event type does not carry is stored as NULL.

    Note: ``document_id`` uniqueness is scoped per instance.  NULL document
    ids never collide, so events without one are always inserted.
    """

    __tablename__ = "events"
    __table_args__ = (
        UniqueConstraint("instance_id", "document_id", name=EVENT_DOCUMENT_CONSTRAINT),
        Index("ix_events_user_instance", "user_id", "instance_id"),
        Index("ix_events_user_type", "user_id", "event_type"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Ownership
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    instance_id = Column(String, nullable=False, index=True)

    event_type = Column(String, nullable=False, index=True)

    # Client-generated idempotency key
    document_id = Column(String, nullable=True, index=True)

    # Tab / window
    tab_id = Column(Integer, nullable=True)
    window_id = Column(Integer, nullable=True)
    url = Column(Text, nullable=True)
    title = Column(Text, nullable=True)

    # Navigation
    navigation_type = Column(String, nullable=True)
    from_address_bar = Column(Boolean, nullable=True)
    transition_type = Column(String, nullable=True)
    transition_qualifiers = Column(JSON(none_as_null=True), nullable=True)

    # Time tracking (epoch millis)
    start_time = Column(BigInteger, nullable=True)
    end_time = Column(BigInteger, nullable=True)
    duration_ms = Column(BigInteger, nullable=True)
    was_active = Column(Boolean, nullable=True)
    was_window_focused = Column(Boolean, nullable=True)
    user_was_active = Column(Boolean, nullable=True)

    # Context
    tab_count = Column(Integer, nullable=True)
    window_count = Column(Integer, nullable=True)

    # Tab groups
    group_id = Column(Integer, nullable=True)
    group_name = Column(String, nullable=True)
    group_color = Column(String, nullable=True)

    # Session restoration
    original_session_id = Column(String, nullable=True)
    new_window_id = Column(Integer, nullable=True)

    # Client-observed time (epoch millis)
    timestamp = Column(BigInteger, nullable=False, index=True)

    # Server tracking
    synced_at = Column(DateTime, server_default=func.now(), nullable=False)

    # ``metadata`` is reserved on declarative classes
    event_metadata = Column("metadata", JSON(none_as_null=True), nullable=True)


class SessionRestoration(Base):
    """"Session X was reopened as window Y" – one row per report.

    Rows are append-only and deliberately not deduplicated: a session can be
    restored more than once.
    """

    __tablename__ = "session_restorations"
    __table_args__ = (Index("ix_session_restorations_user_instance", "user_id", "instance_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    instance_id = Column(String, nullable=False)

    original_session_id = Column(String, nullable=False, index=True)
    new_window_id = Column(Integer, nullable=True, index=True)

    # Client-reported restore time (epoch millis)
    restored_at = Column(BigInteger, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
