"""Session snapshot store.

A snapshot is a tree ``session → windows → tabs`` written in one
transaction.  Order is carried explicitly (``window_order`` / ``tab_index``)
so a snapshot always comes back in the order it was captured.
"""

import logging
import secrets
import string
from typing import Any
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tabsync.config import get_settings
from tabsync.crud import crud
from tabsync.models.models import SessionSnapshot
from tabsync.models.models import SessionTab
from tabsync.models.models import SessionWindow
from tabsync.schemas.sessions import BatchCreateResult
from tabsync.schemas.sessions import SessionCreate
from tabsync.schemas.sessions import SessionDetail
from tabsync.schemas.sessions import SessionSummary
from tabsync.schemas.sessions import SessionTabOut
from tabsync.schemas.sessions import SessionUpdate
from tabsync.schemas.sessions import SessionWindowOut
from tabsync.utils.log import short_id
from tabsync.utils.time import epoch_millis

logger = logging.getLogger(__name__)

_settings = get_settings()

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_session_id() -> str:
    """Return ``session-<epoch_ms>-<9 base36 chars>``."""

    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"session-{epoch_millis()}-{suffix}"


def _to_summary(row: SessionSnapshot) -> SessionSummary:
    return SessionSummary(
        session_id=row.session_id,
        instance_id=row.instance_id,
        name=row.name,
        description=row.description,
        tags=list(row.tags or []),
        captured_at=row.captured_at,
        tab_count=row.tab_count,
        window_count=row.window_count,
    )


def _to_detail(row: SessionSnapshot) -> SessionDetail:
    windows = [
        SessionWindowOut(
            window_id=window.window_id,
            focused=window.focused,
            incognito=window.incognito,
            type=window.type,
            tabs=[
                SessionTabOut(
                    tab_id=tab.tab_id,
                    url=tab.url,
                    title=tab.title,
                    index=tab.tab_index,
                    active=tab.active,
                    pinned=tab.pinned,
                    group_id=tab.group_id,
                    fav_icon_url=tab.fav_icon_url,
                )
                for tab in window.tabs
            ],
        )
        for window in row.windows
    ]
    return SessionDetail(**_to_summary(row).model_dump(), windows=windows)


class SessionService:
    """CRUD for captured browser sessions."""

    @staticmethod
    def create_session(db: Session, user_id: int, instance_id: str, data: SessionCreate) -> SessionSummary:
        """Persist *data* with all of its windows and tabs.

        Stored counts are recomputed from the tree; client-reported totals
        are only compared against them.
        """

        windows_in = data.windows or []
        tab_count = sum(len(window.tabs) for window in windows_in)
        window_count = len(windows_in)

        if data.total_tabs is not None and data.total_tabs != tab_count:
            logger.warning(
                "[SESSION] Client reported %d tabs, snapshot has %d instance=%s",
                data.total_tabs,
                tab_count,
                short_id(instance_id),
            )
        if data.total_windows is not None and data.total_windows != window_count:
            logger.warning(
                "[SESSION] Client reported %d windows, snapshot has %d instance=%s",
                data.total_windows,
                window_count,
                short_id(instance_id),
            )

        row = SessionSnapshot(
            user_id=user_id,
            session_id=generate_session_id(),
            instance_id=instance_id,
            name=data.name,
            description=data.description,
            tags=list(data.tags or []),
            captured_at=epoch_millis(),
            tab_count=tab_count,
            window_count=window_count,
        )

        for window_order, window_in in enumerate(windows_in):
            window = SessionWindow(
                window_id=window_in.id if window_in.id is not None else window_order,
                focused=window_in.focused,
                incognito=window_in.incognito,
                type=window_in.type,
                window_order=window_order,
            )
            for position, tab_in in enumerate(window_in.tabs):
                window.tabs.append(
                    SessionTab(
                        tab_id=tab_in.id if tab_in.id is not None else 0,
                        url=tab_in.url,
                        title=tab_in.title,
                        tab_index=tab_in.index if tab_in.index is not None else position,
                        active=tab_in.active,
                        pinned=tab_in.pinned,
                        group_id=tab_in.group_id,
                        fav_icon_url=tab_in.fav_icon_url,
                    )
                )
            row.windows.append(window)

        try:
            db.add(row)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("[SESSION] Failed to save session instance=%s", short_id(instance_id))
            raise

        logger.info(
            "[SESSION] Saved %s windows=%d tabs=%d instance=%s",
            row.session_id,
            window_count,
            tab_count,
            short_id(instance_id),
        )
        return _to_summary(row)

    @staticmethod
    def get_session(db: Session, user_id: int, session_id: str) -> Optional[SessionDetail]:
        row = crud.get_session(db, user_id, session_id, with_tree=True)
        if row is None:
            return None
        return _to_detail(row)

    @staticmethod
    def list_sessions(
        db: Session,
        user_id: int,
        *,
        limit: int = 50,
        offset: int = 0,
        instance_id: Optional[str] = None,
    ) -> List[SessionSummary]:
        limit = max(1, min(limit, _settings.session_list_max_limit))
        offset = max(0, offset)
        rows = crud.get_sessions(db, user_id, skip=offset, limit=limit, instance_id=instance_id)
        return [_to_summary(row) for row in rows]

    @staticmethod
    def update_session(db: Session, user_id: int, session_id: str, data: SessionUpdate) -> bool:
        """Apply the fields present in *data*; return False if not found."""

        row = crud.get_session(db, user_id, session_id)
        if row is None:
            return False

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return True

        try:
            for field, value in changes.items():
                if field == "tags":
                    value = list(value or [])
                setattr(row, field, value)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("[SESSION] Failed to update %s", session_id)
            raise

        logger.info("[SESSION] Updated %s fields=%s", session_id, sorted(changes))
        return True

    @staticmethod
    def delete_session(db: Session, user_id: int, session_id: str) -> bool:
        """Delete a snapshot with its windows and tabs; False if not found."""

        row = crud.get_session(db, user_id, session_id)
        if row is None:
            return False

        try:
            db.delete(row)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("[SESSION] Failed to delete %s", session_id)
            raise

        logger.info("[SESSION] Deleted %s", session_id)
        return True

    @staticmethod
    def batch_create_sessions(
        db: Session,
        user_id: int,
        instance_id: str,
        sessions: Iterable[Any],
    ) -> BatchCreateResult:
        """Create each item independently.

        Items may be raw mappings or :class:`SessionCreate` instances.  A
        failing item is counted and reported; sessions created before it
        stay committed.
        """

        result = BatchCreateResult()
        for position, item in enumerate(sessions):
            try:
                data = item if isinstance(item, SessionCreate) else SessionCreate.model_validate(item)
                summary = SessionService.create_session(db, user_id, instance_id, data)
            except (ValidationError, SQLAlchemyError, ValueError, TypeError) as exc:
                result.failed += 1
                result.errors.append(f"Session {position + 1}: {_error_text(exc)}")
                logger.error("[SESSION] Batch item %d failed: %s", position + 1, exc)
                continue

            result.created += 1
            result.session_ids.append(summary.session_id)

        logger.info(
            "[SESSION] Batch done created=%d failed=%d instance=%s",
            result.created,
            result.failed,
            short_id(instance_id),
        )
        return result


def _error_text(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        first: Mapping[str, Any] = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return str(exc)
