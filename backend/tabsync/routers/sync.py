"""Marker-based sync API router.

Browser instances read their marker, upload the events recorded since, and
the server advances the marker.  All logic lives in
:class:`~tabsync.services.sync_service.SyncService`; handlers only resolve
the caller and the instance id.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from sqlalchemy.orm import Session

from tabsync.database import get_db
from tabsync.dependencies.auth import get_current_user
from tabsync.dependencies.instance import optional_instance_id
from tabsync.dependencies.instance import reconcile_instance_id
from tabsync.models.models import User
from tabsync.schemas.base import success
from tabsync.schemas.sync import RestorationOut
from tabsync.schemas.sync import SyncEventsRequest
from tabsync.services import restorations
from tabsync.services.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


@router.get("/marker/{instance_id}")
def get_sync_marker(
    instance_id: str,
    header_instance_id: Optional[str] = Depends(optional_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return the instance's marker, creating it on first contact."""

    instance_id = reconcile_instance_id(header_instance_id, instance_id)
    return success(SyncService.get_marker(db, current_user.id, instance_id))


@router.post("/events")
def sync_events(
    payload: SyncEventsRequest,
    header_instance_id: Optional[str] = Depends(optional_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Ingest one batch of events and advance the marker."""

    instance_id = reconcile_instance_id(header_instance_id, payload.instance_id)
    if payload.from_timestamp:
        logger.debug("[SYNC:EVENTS] Client sync window starts at %d", payload.from_timestamp)

    result = SyncService.process_events(
        db,
        current_user.id,
        instance_id,
        payload.events,
        payload.restoration_metadata,
    )
    return success(result)


@router.get("/stats/{instance_id}")
def get_sync_stats(
    instance_id: str,
    header_instance_id: Optional[str] = Depends(optional_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    instance_id = reconcile_instance_id(header_instance_id, instance_id)
    return success(SyncService.get_sync_stats(db, current_user.id, instance_id))


@router.get("/restorations")
def list_restorations(
    instance_id: Optional[str] = Query(None, alias="instanceId"),
    original_session_id: Optional[str] = Query(None, alias="originalSessionId"),
    header_instance_id: Optional[str] = Depends(optional_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List restoration mappings, newest first."""

    if instance_id is not None:
        instance_id = reconcile_instance_id(header_instance_id, instance_id)

    rows = restorations.list_restorations(
        db,
        current_user.id,
        instance_id=instance_id,
        original_session_id=original_session_id,
    )
    return success([RestorationOut.model_validate(row) for row in rows])
