"""Marker-based incremental sync.

A client identifies itself by an *instance id* (one per browser install).
The server keeps one :class:`~tabsync.models.sync.SyncMarker` per
``(user, instance)`` holding the highest event timestamp it has accepted;
clients read it, upload everything newer, and the marker moves forward.

Uploads are idempotent per ``(instance_id, document_id)``.  Each event is
inserted inside its own SAVEPOINT: duplicates and row-level failures are
counted and skipped, while any other store error rolls back the whole
upload, marker included.
"""

import logging
import time
from typing import List
from typing import Optional
from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tabsync.config import get_settings
from tabsync.crud import crud
from tabsync.exceptions import SOFT_ITEM_ERRORS
from tabsync.exceptions import BatchTooLargeError
from tabsync.models.sync import EVENT_DOCUMENT_CONSTRAINT
from tabsync.schemas.sync import EventIn
from tabsync.schemas.sync import RestorationMetadata
from tabsync.schemas.sync import SyncMarkerOut
from tabsync.schemas.sync import SyncResult
from tabsync.schemas.sync import SyncStats
from tabsync.services import restorations
from tabsync.utils.log import short_id

logger = logging.getLogger(__name__)

_settings = get_settings()

# SQLite reports the column list instead of the constraint name.
_DOCUMENT_CONFLICT_MARKERS = (EVENT_DOCUMENT_CONSTRAINT, "events.document_id")


def _is_document_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return any(marker in message for marker in _DOCUMENT_CONFLICT_MARKERS)


def _describe_failure(event: EventIn, exc: Exception) -> str:
    ref = event.document_id or f"{event.event_type.value}@{event.timestamp}"
    return f"{ref}: {exc.__class__.__name__}: {exc}"


class SyncService:
    """Facade over marker reads, event ingestion and per-instance stats."""

    # ------------------------------------------------------------------
    # Marker
    # ------------------------------------------------------------------

    @staticmethod
    def get_marker(db: Session, user_id: int, instance_id: str) -> SyncMarkerOut:
        """Return the marker for *instance_id*, creating it on first contact.

        ``eventCountToSync`` counts stored events newer than the marker.  On
        first contact the marker is 0, so every stored event is counted.
        """

        logger.info("[SYNC:MARKER] Fetching marker instance=%s user=%s", short_id(instance_id), user_id)

        try:
            marker = crud.get_marker(db, user_id, instance_id)
            first_sync = False

            if marker is None:
                savepoint = db.begin_nested()
                try:
                    marker = crud.create_marker(db, user_id, instance_id)
                    savepoint.commit()
                    first_sync = True
                except IntegrityError:
                    # A concurrent first contact won the insert; use its row.
                    savepoint.rollback()
                    marker = crud.get_marker(db, user_id, instance_id)
                    if marker is None:
                        raise
                    logger.info("[SYNC:MARKER] Concurrent marker creation instance=%s", short_id(instance_id))

            pending = crud.count_events(db, user_id, instance_id, newer_than=marker.last_event_timestamp)
            result = SyncMarkerOut(
                instance_id=instance_id,
                last_event_timestamp=marker.last_event_timestamp,
                last_session_id=marker.last_session_id,
                first_sync=first_sync,
                event_count_to_sync=pending,
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("[SYNC:MARKER] Failed to fetch marker instance=%s", short_id(instance_id))
            raise

        if first_sync:
            logger.info("[SYNC:MARKER] Created marker for new instance=%s", short_id(instance_id))
        return result

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    @staticmethod
    def process_events(
        db: Session,
        user_id: int,
        instance_id: str,
        events: Sequence[EventIn],
        restoration_metadata: Optional[Sequence[RestorationMetadata]] = None,
    ) -> SyncResult:
        """Ingest one upload batch atomically and advance the marker.

        Raises :class:`BatchTooLargeError` before touching the database when
        the batch exceeds ``MAX_EVENTS_PER_BATCH``.  Store errors other than
        per-row failures propagate after the transaction is rolled back.
        """

        events = list(events)
        limit = _settings.max_events_per_batch
        if len(events) > limit:
            logger.warning(
                "[SYNC:EVENTS] Rejecting batch of %d events instance=%s (limit %d)",
                len(events),
                short_id(instance_id),
                limit,
            )
            raise BatchTooLargeError(len(events), limit)

        started = time.monotonic()
        logger.info(
            "[SYNC:EVENTS] Processing %d events instance=%s user=%s",
            len(events),
            short_id(instance_id),
            user_id,
        )

        processed = 0
        duplicates = 0
        errors: List[str] = []

        try:
            for event in events:
                if event.document_id and crud.event_exists(db, instance_id, event.document_id):
                    duplicates += 1
                    logger.debug("[SYNC:DEDUP] Skipping duplicate document=%s", event.document_id)
                    continue

                savepoint = db.begin_nested()
                try:
                    db.add(crud.build_event_row(user_id, instance_id, event))
                    db.flush()
                    savepoint.commit()
                except IntegrityError as exc:
                    savepoint.rollback()
                    if event.document_id and _is_document_conflict(exc):
                        # Inserted by a concurrent upload after the lookup above
                        duplicates += 1
                        continue
                    errors.append(_describe_failure(event, exc))
                    logger.error("[SYNC:EVENTS] Event rejected: %s", errors[-1])
                    continue
                except SOFT_ITEM_ERRORS as exc:
                    savepoint.rollback()
                    errors.append(_describe_failure(event, exc))
                    logger.error("[SYNC:EVENTS] Event rejected: %s", errors[-1])
                    continue

                processed += 1

            mappings = 0
            if restoration_metadata:
                mappings = restorations.handle_restorations(db, user_id, instance_id, restoration_metadata)

            if events:
                SyncService._advance_marker(db, user_id, instance_id, max(e.timestamp for e in events))

            db.commit()
        except Exception:
            db.rollback()
            logger.exception(
                "[SYNC:EVENTS] Batch failed, rolled back instance=%s after %d events",
                short_id(instance_id),
                processed + duplicates + len(errors),
            )
            raise

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "[SYNC:EVENTS] Done instance=%s processed=%d duplicates=%d errors=%d restorations=%d in %dms",
            short_id(instance_id),
            processed,
            duplicates,
            len(errors),
            mappings,
            elapsed_ms,
        )

        message = f"Processed with {len(errors)} errors" if errors else "Events synced successfully"
        return SyncResult(
            instance_id=instance_id,
            events_received=len(events),
            events_processed=processed,
            duplicate_count=duplicates,
            restoration_mappings=mappings,
            error_count=len(errors),
            errors=errors,
            message=message,
        )

    @staticmethod
    def _advance_marker(db: Session, user_id: int, instance_id: str, batch_max: int) -> None:
        """Move the marker to *batch_max*.

        By default the marker follows the batch even backwards, so a client
        that re-uploads older history rewinds it.  With
        ``SYNC_MARKER_MONOTONIC`` the marker never decreases.
        """

        marker = crud.get_marker(db, user_id, instance_id)
        if marker is None:
            crud.create_marker(db, user_id, instance_id, batch_max)
            return

        previous = marker.last_event_timestamp
        if _settings.sync_marker_monotonic:
            marker.last_event_timestamp = max(previous, batch_max)
        else:
            marker.last_event_timestamp = batch_max
            if batch_max < previous:
                logger.warning(
                    "[SYNC:MARKER] Marker moved backwards instance=%s %d -> %d",
                    short_id(instance_id),
                    previous,
                    batch_max,
                )
        db.flush()

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    @staticmethod
    def get_sync_stats(db: Session, user_id: int, instance_id: str) -> SyncStats:
        marker = crud.get_marker(db, user_id, instance_id)
        return SyncStats(
            has_marker=marker is not None,
            last_event_timestamp=marker.last_event_timestamp if marker is not None else 0,
            total_events=crud.count_events(db, user_id, instance_id),
            events_by_type=crud.count_events_by_type(db, user_id, instance_id),
        )
