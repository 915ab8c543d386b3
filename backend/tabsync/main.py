# --------------------------------------------------------------------------
# LOGGING CONFIGURATION
# --------------------------------------------------------------------------
#
# - Default log level: INFO
# - Override at runtime with LOG_LEVEL (e.g. LOG_LEVEL=WARNING for CI)
#
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from tabsync.config import get_settings
from tabsync.constants import API_PREFIX
from tabsync.constants import AUTH_PREFIX
from tabsync.constants import EVENTS_PREFIX
from tabsync.constants import SESSIONS_PREFIX
from tabsync.constants import SYNC_PREFIX
from tabsync.database import initialize_database
from tabsync.exceptions import BatchTooLargeError
from tabsync.exceptions import InstanceIdError
from tabsync.exceptions import TabSyncError
from tabsync.routers.auth import router as auth_router
from tabsync.routers.events import router as events_router
from tabsync.routers.sessions import router as sessions_router
from tabsync.routers.sync import router as sync_router
from tabsync.routers.system import router as system_router
from tabsync.utils.log import configure_logging

_settings = get_settings()

configure_logging(_settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Deployments run alembic; create_all keeps dev databases usable.
    initialize_database()
    logger.info("tabsync started (auth_disabled=%s)", _settings.auth_disabled)
    yield


app = FastAPI(title="tabsync", redirect_slashes=True, lifespan=lifespan)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@app.exception_handler(InstanceIdError)
async def instance_id_error_handler(request: Request, exc: InstanceIdError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(BatchTooLargeError)
async def batch_too_large_handler(request: Request, exc: BatchTooLargeError):
    return JSONResponse(status_code=status.HTTP_413_CONTENT_TOO_LARGE, content={"detail": str(exc)})


@app.exception_handler(TabSyncError)
async def tabsync_error_handler(request: Request, exc: TabSyncError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Store failures that aborted a transaction; nothing was persisted."""

    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Database error",
            "message": exc.__class__.__name__,
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(sync_router, prefix=f"{API_PREFIX}{SYNC_PREFIX}")
app.include_router(sessions_router, prefix=f"{API_PREFIX}{SESSIONS_PREFIX}")
app.include_router(events_router, prefix=f"{API_PREFIX}{EVENTS_PREFIX}")
app.include_router(auth_router, prefix=f"{API_PREFIX}{AUTH_PREFIX}")
app.include_router(system_router, prefix=API_PREFIX)


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8001")))
