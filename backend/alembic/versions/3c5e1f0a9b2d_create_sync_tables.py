"""Create sync tables

Revision ID: 3c5e1f0a9b2d
Revises:
Create Date: 2026-10-17 10:30:00.000000

"""

from typing import Sequence
from typing import Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c5e1f0a9b2d"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, markers, events, session snapshots and restorations."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "sync_markers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("instance_id", sa.String(), nullable=False),
        sa.Column("last_event_timestamp", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("last_session_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "instance_id", name="uq_sync_markers_user_instance"),
    )
    op.create_index("ix_sync_markers_id", "sync_markers", ["id"])
    op.create_index("ix_sync_markers_user_id", "sync_markers", ["user_id"])
    op.create_index("ix_sync_markers_instance_id", "sync_markers", ["instance_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("instance_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("document_id", sa.String(), nullable=True),
        sa.Column("tab_id", sa.Integer(), nullable=True),
        sa.Column("window_id", sa.Integer(), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("navigation_type", sa.String(), nullable=True),
        sa.Column("from_address_bar", sa.Boolean(), nullable=True),
        sa.Column("transition_type", sa.String(), nullable=True),
        sa.Column("transition_qualifiers", sa.JSON(), nullable=True),
        sa.Column("start_time", sa.BigInteger(), nullable=True),
        sa.Column("end_time", sa.BigInteger(), nullable=True),
        sa.Column("duration_ms", sa.BigInteger(), nullable=True),
        sa.Column("was_active", sa.Boolean(), nullable=True),
        sa.Column("was_window_focused", sa.Boolean(), nullable=True),
        sa.Column("user_was_active", sa.Boolean(), nullable=True),
        sa.Column("tab_count", sa.Integer(), nullable=True),
        sa.Column("window_count", sa.Integer(), nullable=True),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("group_name", sa.String(), nullable=True),
        sa.Column("group_color", sa.String(), nullable=True),
        sa.Column("original_session_id", sa.String(), nullable=True),
        sa.Column("new_window_id", sa.Integer(), nullable=True),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("synced_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.UniqueConstraint("instance_id", "document_id", name="uq_events_instance_document"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_user_id", "events", ["user_id"])
    op.create_index("ix_events_instance_id", "events", ["instance_id"])
    op.create_index("ix_events_event_type", "events", ["event_type"])
    op.create_index("ix_events_document_id", "events", ["document_id"])
    op.create_index("ix_events_timestamp", "events", ["timestamp"])
    op.create_index("ix_events_user_instance", "events", ["user_id", "instance_id"])
    op.create_index("ix_events_user_type", "events", ["user_id", "event_type"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("instance_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("captured_at", sa.BigInteger(), nullable=False),
        sa.Column("tab_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("window_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "session_id", name="uq_sessions_user_session"),
    )
    op.create_index("ix_sessions_id", "sessions", ["id"])
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
    op.create_index("ix_sessions_session_id", "sessions", ["session_id"])
    op.create_index("ix_sessions_instance_id", "sessions", ["instance_id"])
    op.create_index("ix_sessions_captured_at", "sessions", ["captured_at"])
    op.create_index("ix_sessions_user_instance", "sessions", ["user_id", "instance_id"])

    op.create_table(
        "session_windows",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_pk", sa.Integer(), sa.ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("window_id", sa.Integer(), nullable=False),
        sa.Column("focused", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("incognito", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column("window_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_session_windows_id", "session_windows", ["id"])
    op.create_index("ix_session_windows_session_pk", "session_windows", ["session_pk"])

    op.create_table(
        "session_tabs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "session_window_pk",
            sa.Integer(),
            sa.ForeignKey("session_windows.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("tab_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("tab_index", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("fav_icon_url", sa.Text(), nullable=True),
    )
    op.create_index("ix_session_tabs_id", "session_tabs", ["id"])
    op.create_index("ix_session_tabs_session_window_pk", "session_tabs", ["session_window_pk"])

    op.create_table(
        "session_restorations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("instance_id", sa.String(), nullable=False),
        sa.Column("original_session_id", sa.String(), nullable=False),
        sa.Column("new_window_id", sa.Integer(), nullable=True),
        sa.Column("restored_at", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_session_restorations_id", "session_restorations", ["id"])
    op.create_index("ix_session_restorations_user_id", "session_restorations", ["user_id"])
    op.create_index("ix_session_restorations_user_instance", "session_restorations", ["user_id", "instance_id"])
    op.create_index("ix_session_restorations_original_session_id", "session_restorations", ["original_session_id"])
    op.create_index("ix_session_restorations_new_window_id", "session_restorations", ["new_window_id"])


def downgrade() -> None:
    """Drop all sync tables, children first."""
    op.drop_table("session_restorations")
    op.drop_table("session_tabs")
    op.drop_table("session_windows")
    op.drop_table("sessions")
    op.drop_table("events")
    op.drop_table("sync_markers")
    op.drop_table("users")
