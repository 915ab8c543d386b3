"""Router for querying the event log."""

from typing import List
from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from sqlalchemy.orm import Session

from tabsync.database import get_db
from tabsync.dependencies.auth import get_current_user
from tabsync.dependencies.instance import optional_instance_id
from tabsync.dependencies.instance import reconcile_instance_id
from tabsync.models.enums import EventType
from tabsync.models.models import User
from tabsync.schemas.base import success
from tabsync.schemas.events import EventFilters
from tabsync.services.event_service import EventService

router = APIRouter(tags=["events"])


@router.get("")
def query_events(
    instance_id: Optional[str] = Query(None, alias="instanceId"),
    event_types: Optional[List[EventType]] = Query(None, alias="eventType"),
    from_timestamp: Optional[int] = Query(None, alias="from"),
    to_timestamp: Optional[int] = Query(None, alias="to"),
    limit: int = 100,
    offset: int = Query(0, ge=0),
    header_instance_id: Optional[str] = Depends(optional_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if instance_id is not None:
        instance_id = reconcile_instance_id(header_instance_id, instance_id)

    filters = EventFilters(
        instance_id=instance_id,
        event_types=event_types,
        from_timestamp=from_timestamp,
        to_timestamp=to_timestamp,
        limit=limit,
        offset=offset,
    )
    return success(EventService.query_events(db, current_user.id, filters))


@router.get("/stats")
def get_event_stats(
    instance_id: Optional[str] = Query(None, alias="instanceId"),
    header_instance_id: Optional[str] = Depends(optional_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if instance_id is not None:
        instance_id = reconcile_instance_id(header_instance_id, instance_id)
    return success(EventService.get_stats(db, current_user.id, instance_id))


@router.get("/instances")
def list_instances(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success(EventService.list_instances(db, current_user.id))


@router.delete("")
def delete_old_events(
    older_than: int = Query(..., alias="olderThan", ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Retention: drop events recorded before ``olderThan`` (epoch millis)."""

    deleted = EventService.delete_old_events(db, current_user.id, older_than)
    return success({"deleted": deleted})
