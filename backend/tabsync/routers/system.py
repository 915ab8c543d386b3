"""Unauthenticated liveness endpoint."""

import logging
from typing import Any
from typing import Dict

from fastapi import APIRouter
from fastapi import Depends
from fastapi import status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tabsync.config import get_settings
from tabsync.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])

_settings = get_settings()


@router.get("/health", status_code=status.HTTP_200_OK)
def health(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Report whether the store answers a trivial query."""

    db_ok = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check database probe failed: %s", exc)
        db_ok = False

    return {
        "status": "ok" if db_ok else "degraded",
        "database": db_ok,
        "authDisabled": _settings.auth_disabled,
    }
