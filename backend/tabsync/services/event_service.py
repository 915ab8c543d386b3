"""Read side of the event log plus the explicit retention operation."""

import logging
from typing import List
from typing import Optional

from sqlalchemy import distinct
from sqlalchemy import func
from sqlalchemy.orm import Query
from sqlalchemy.orm import Session

from tabsync.config import get_settings
from tabsync.crud import crud
from tabsync.models.sync import Event
from tabsync.schemas.events import EventFilters
from tabsync.schemas.events import EventOut
from tabsync.schemas.events import EventPage
from tabsync.schemas.events import EventStats
from tabsync.schemas.events import InstanceSummary

logger = logging.getLogger(__name__)

_settings = get_settings()

_MS_PER_DAY = 86_400_000


def _to_out(row: Event) -> EventOut:
    return EventOut(
        id=row.id,
        event_type=row.event_type,
        document_id=row.document_id,
        timestamp=row.timestamp,
        instance_id=row.instance_id,
        tab_id=row.tab_id,
        window_id=row.window_id,
        url=row.url,
        title=row.title,
        navigation_type=row.navigation_type,
        from_address_bar=row.from_address_bar,
        transition_type=row.transition_type,
        transition_qualifiers=row.transition_qualifiers,
        start_time=row.start_time,
        end_time=row.end_time,
        duration_ms=row.duration_ms,
        was_active=row.was_active,
        was_window_focused=row.was_window_focused,
        user_was_active=row.user_was_active,
        tab_count=row.tab_count,
        window_count=row.window_count,
        group_id=row.group_id,
        group_name=row.group_name,
        group_color=row.group_color,
        original_session_id=row.original_session_id,
        new_window_id=row.new_window_id,
        metadata=row.event_metadata,
    )


def _apply_filters(query: Query, user_id: int, filters: EventFilters) -> Query:
    query = query.filter(Event.user_id == user_id)
    if filters.instance_id:
        query = query.filter(Event.instance_id == filters.instance_id)
    if filters.event_types:
        query = query.filter(Event.event_type.in_([t.value for t in filters.event_types]))
    if filters.from_timestamp is not None:
        query = query.filter(Event.timestamp >= filters.from_timestamp)
    if filters.to_timestamp is not None:
        query = query.filter(Event.timestamp <= filters.to_timestamp)
    return query


class EventService:
    @staticmethod
    def query_events(db: Session, user_id: int, filters: EventFilters) -> EventPage:
        """Return one page of events, newest first, with the filtered total."""

        limit = max(1, min(filters.limit, _settings.event_query_max_limit))

        total = _apply_filters(db.query(func.count(Event.id)), user_id, filters).scalar() or 0
        rows = (
            _apply_filters(db.query(Event), user_id, filters)
            .order_by(Event.timestamp.desc(), Event.id.desc())
            .offset(filters.offset)
            .limit(limit)
            .all()
        )

        return EventPage(
            total=total,
            count=len(rows),
            offset=filters.offset,
            limit=limit,
            events=[_to_out(row) for row in rows],
        )

    @staticmethod
    def get_stats(db: Session, user_id: int, instance_id: Optional[str] = None) -> EventStats:
        query = db.query(
            func.count(Event.id),
            func.count(distinct(Event.event_type)),
            # Floor division buckets timestamps into UTC days
            func.count(distinct(Event.timestamp // _MS_PER_DAY)),
            func.min(Event.timestamp),
            func.max(Event.timestamp),
        ).filter(Event.user_id == user_id)
        if instance_id is not None:
            query = query.filter(Event.instance_id == instance_id)

        total, unique_types, active_days, first_ts, last_ts = query.one()

        return EventStats(
            total_events=total or 0,
            unique_event_types=unique_types or 0,
            active_days=active_days or 0,
            first_event_timestamp=first_ts,
            last_event_timestamp=last_ts,
            events_by_type=crud.count_events_by_type(db, user_id, instance_id),
        )

    @staticmethod
    def list_instances(db: Session, user_id: int) -> List[InstanceSummary]:
        """Return one summary per instance that has events, most recent first."""

        last_ts = func.max(Event.timestamp)
        rows = (
            db.query(Event.instance_id, func.count(Event.id), func.min(Event.timestamp), last_ts)
            .filter(Event.user_id == user_id)
            .group_by(Event.instance_id)
            .order_by(last_ts.desc())
            .all()
        )
        return [
            InstanceSummary(instance_id=instance_id, event_count=count, first_event_at=first, last_event_at=last)
            for instance_id, count, first, last in rows
        ]

    @staticmethod
    def delete_old_events(db: Session, user_id: int, older_than: int) -> int:
        """Delete the user's events with ``timestamp < older_than``.

        Sync markers are left untouched; a client never re-uploads pruned
        history because its marker is still past it.
        """

        try:
            deleted = (
                db.query(Event)
                .filter(Event.user_id == user_id, Event.timestamp < older_than)
                .delete(synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("[EVENTS] Retention delete failed user=%s", user_id)
            raise

        logger.info("[EVENTS] Deleted %d events older than %d user=%s", deleted, older_than, user_id)
        return deleted
