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
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from tabsync.database import Base

# ---------------------------------------------------------------------------
# Authentication – User table
# ---------------------------------------------------------------------------


class User(Base):
    """Account that owns browser instances.

    Rows are created by the authentication layer; the sync core only ever
    references ``users.id``.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps -------------------------------------------------------------
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


# ---------------------------------------------------------------------------
# Session snapshots – Session → Window → Tab
# ---------------------------------------------------------------------------


class SessionSnapshot(Base):
    """Point-in-time capture of a browser's windows and tabs.

    ``tab_count`` / ``window_count`` are written once when the snapshot is
    created and are never reconciled against the child rows afterwards.
    """

    __tablename__ = "sessions"
    __table_args__ = (
        UniqueConstraint("user_id", "session_id", name="uq_sessions_user_session"),
        Index("ix_sessions_user_instance", "user_id", "instance_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Opaque identifier handed to clients (unique per user)
    session_id = Column(String, nullable=False, index=True)
    instance_id = Column(String, nullable=False, index=True)

    name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    tags = Column(MutableList.as_mutable(JSON(none_as_null=True)), nullable=True, default=list)

    # Epoch millis
    captured_at = Column(BigInteger, nullable=False, index=True)

    tab_count = Column(Integer, nullable=False, default=0)
    window_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())

    windows = relationship(
        "SessionWindow",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SessionWindow.window_order",
    )


class SessionWindow(Base):
    __tablename__ = "session_windows"

    id = Column(Integer, primary_key=True, index=True)
    session_pk = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)

    window_id = Column(Integer, nullable=False)
    focused = Column(Boolean, default=False, nullable=False)
    incognito = Column(Boolean, default=False, nullable=False)
    type = Column(String, nullable=True)

    # Caller-supplied position; row order on read is never relied upon
    window_order = Column(Integer, nullable=False)

    session = relationship("SessionSnapshot", back_populates="windows")
    tabs = relationship(
        "SessionTab",
        back_populates="window",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SessionTab.tab_index",
    )


class SessionTab(Base):
    __tablename__ = "session_tabs"

    id = Column(Integer, primary_key=True, index=True)
    session_window_pk = Column(
        Integer,
        ForeignKey("session_windows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    tab_id = Column(Integer, nullable=False, default=0)
    url = Column(Text, nullable=False)
    title = Column(Text, nullable=True)
    tab_index = Column(Integer, nullable=False)
    active = Column(Boolean, default=False, nullable=False)
    pinned = Column(Boolean, default=False, nullable=False)
    group_id = Column(Integer, nullable=True)
    fav_icon_url = Column(Text, nullable=True)

    window = relationship("SessionWindow", back_populates="tabs")
