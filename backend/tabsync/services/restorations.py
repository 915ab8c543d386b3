"""Restoration reconciliation.

When a previously captured session is reopened the browser emits fresh
``tab-created`` / ``window-created`` events for the new window.  Recording a
mapping ``original_session_id → new_window_id`` lets consumers attribute
those events to the restore instead of counting the session's tabs twice.

Mappings are append-only facts: the same session may legitimately be
restored several times, so nothing here deduplicates.
"""

import logging
from typing import Iterable
from typing import List
from typing import Optional

from sqlalchemy.orm import Session

from tabsync.crud import crud
from tabsync.exceptions import SOFT_ITEM_ERRORS
from tabsync.models.sync import SessionRestoration
from tabsync.schemas.sync import RestorationMetadata

logger = logging.getLogger(__name__)


def handle_restorations(
    db: Session,
    user_id: int,
    instance_id: str,
    restorations: Iterable[RestorationMetadata],
) -> int:
    """Insert one mapping per entry and return how many were stored.

    Must be called inside the caller's transaction – every insert runs in
    its own SAVEPOINT so a bad entry is rolled back on its own.
    """

    count = 0
    for restoration in restorations:
        savepoint = db.begin_nested()
        try:
            crud.create_restoration(
                db,
                user_id=user_id,
                instance_id=instance_id,
                original_session_id=restoration.original_session_id,
                new_window_id=restoration.new_window_id,
                restored_at=restoration.restored_at,
            )
            savepoint.commit()
        except SOFT_ITEM_ERRORS as exc:
            savepoint.rollback()
            logger.error(
                "[SYNC:RESTORE] Failed to create restoration mapping session=%s window=%s: %s",
                restoration.original_session_id,
                restoration.new_window_id,
                exc,
            )
            continue

        count += 1
        logger.debug(
            "[SYNC:RESTORE] Restoration mapping created session=%s window=%s",
            restoration.original_session_id,
            restoration.new_window_id,
        )

    return count


def list_restorations(
    db: Session,
    user_id: int,
    *,
    instance_id: Optional[str] = None,
    original_session_id: Optional[str] = None,
) -> List[SessionRestoration]:
    """Return restoration mappings, newest first."""

    return crud.get_restorations(
        db,
        user_id,
        instance_id=instance_id,
        original_session_id=original_session_id,
    )


def resolve_restored_window(
    db: Session,
    user_id: int,
    instance_id: str,
    window_id: int,
) -> Optional[SessionRestoration]:
    """Return the latest mapping whose restore produced *window_id*, if any."""

    rows = crud.get_restorations(db, user_id, instance_id=instance_id, new_window_id=window_id)
    return rows[0] if rows else None
