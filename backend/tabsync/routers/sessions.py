"""Router for captured browser sessions."""

import logging
from typing import Any
from typing import List
from typing import Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import status
from sqlalchemy.orm import Session

from tabsync.database import get_db
from tabsync.dependencies.auth import get_current_user
from tabsync.dependencies.instance import optional_instance_id
from tabsync.dependencies.instance import reconcile_instance_id
from tabsync.dependencies.instance import require_instance_id
from tabsync.models.models import User
from tabsync.schemas.base import success
from tabsync.schemas.sessions import SessionCreate
from tabsync.schemas.sessions import SessionUpdate
from tabsync.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session {session_id} not found")


@router.get("")
def list_sessions(
    limit: int = 50,
    offset: int = 0,
    instance_id: Optional[str] = Query(None, alias="instanceId"),
    header_instance_id: Optional[str] = Depends(optional_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if instance_id is not None:
        instance_id = reconcile_instance_id(header_instance_id, instance_id)
    sessions = SessionService.list_sessions(
        db,
        current_user.id,
        limit=limit,
        offset=offset,
        instance_id=instance_id,
    )
    return success(sessions)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreate,
    instance_id: str = Depends(require_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Save a snapshot of the caller's windows and tabs."""

    return success(SessionService.create_session(db, current_user.id, instance_id, payload))


@router.post("/batch", status_code=status.HTTP_201_CREATED)
def batch_create_sessions(
    sessions: List[Any] = Body(..., embed=True),
    instance_id: str = Depends(require_instance_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create several snapshots; each item succeeds or fails on its own."""

    return success(SessionService.batch_create_sessions(db, current_user.id, instance_id, sessions))


@router.get("/{session_id}")
def get_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    detail = SessionService.get_session(db, current_user.id, session_id)
    if detail is None:
        raise _not_found(session_id)
    return success(detail)


@router.put("/{session_id}")
def update_session(
    session_id: str,
    payload: SessionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not SessionService.update_session(db, current_user.id, session_id, payload):
        raise _not_found(session_id)
    return success({"sessionId": session_id})


@router.delete("/{session_id}")
def delete_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not SessionService.delete_session(db, current_user.id, session_id):
        raise _not_found(session_id)
    return success({"sessionId": session_id})
