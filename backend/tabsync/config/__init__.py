"""Centralised configuration helper.

This module eliminates scattered ``os.getenv`` calls behind one
:func:`get_settings` accessor.  Each call re-reads the process environment
(after loading the project ``.env`` file through *python-dotenv*); modules
that need settings take their own snapshot at import time as ``_settings``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# ``_REPO_ROOT`` points to the top-level repository directory (one level
# **above** the "backend" directory).  This file lives at
# ``backend/tabsync/config/__init__.py``.

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _truthy(value: str | None) -> bool:  # noqa: D401 – small helper
    """Return *True* when *value* looks like an affirmative string."""

    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:  # noqa: D401 – simple data container
    """Lightweight settings container populated from environment variables."""

    # Runtime flags -----------------------------------------------------
    testing: bool
    auth_disabled: bool

    # Secrets -----------------------------------------------------------
    jwt_secret: str

    # Database ---------------------------------------------------------
    database_url: str

    # Misc
    log_level: str

    # Sync behaviour ----------------------------------------------------
    sync_marker_monotonic: bool
    max_events_per_batch: int

    # Query limits ------------------------------------------------------
    event_query_max_limit: int
    session_list_max_limit: int

    @property
    def resolved_database_url(self) -> str:
        """Return the configured URL or the mode-dependent SQLite default."""

        if self.database_url:
            return self.database_url
        return "sqlite:///:memory:" if self.testing else "sqlite:///./tabsync.db"

    # Helper for tests to override values at runtime -------------------
    def override(self, **kwargs: Any) -> None:  # pragma: no cover – test util
        for key, value in kwargs.items():
            if not hasattr(self, key):  # pragma: no cover – safety
                raise AttributeError(f"Settings has no attribute '{key}'")
            setattr(self, key, value)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def _load_settings() -> Settings:  # noqa: D401 – helper
    """Populate :class:`Settings` from environment variables."""

    # Load environment file based on NODE_ENV
    node_env = os.getenv("NODE_ENV", "development")

    if node_env == "test":
        env_path = _REPO_ROOT / ".env.test"
        if not env_path.exists():
            env_path = _REPO_ROOT / ".env"  # Fallback to main .env
    else:
        env_path = _REPO_ROOT / ".env"

    if env_path.exists():
        # An explicitly exported TESTING flag wins over the file so the
        # test-suite cannot be pointed at a real database by accident.
        current_testing = os.getenv("TESTING")
        load_dotenv(env_path, override=True)
        if current_testing:
            os.environ["TESTING"] = current_testing

    testing = _truthy(os.getenv("TESTING"))

    return Settings(
        testing=testing,
        auth_disabled=_truthy(os.getenv("AUTH_DISABLED")) or testing,
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret"),
        database_url=os.getenv("DATABASE_URL", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        sync_marker_monotonic=_truthy(os.getenv("SYNC_MARKER_MONOTONIC")),
        max_events_per_batch=int(os.getenv("MAX_EVENTS_PER_BATCH", "5000")),
        event_query_max_limit=int(os.getenv("EVENT_QUERY_MAX_LIMIT", "1000")),
        session_list_max_limit=int(os.getenv("SESSION_LIST_MAX_LIMIT", "100")),
    )


# ------------------------------------------------------------------
# Runtime validation – fail fast when *required* secrets are missing.
# ------------------------------------------------------------------


def _validate_required(settings: Settings) -> None:  # noqa: D401 – helper
    """Abort startup when mandatory configuration is missing."""

    if settings.testing or settings.auth_disabled:
        return

    weak = settings.jwt_secret.strip() in {"", "dev-secret"} or len(settings.jwt_secret) < 16
    if weak:
        raise RuntimeError(
            "CRITICAL: JWT_SECRET must be set to a value of at least 16 characters "
            "(and not 'dev-secret') when authentication is enabled.\n"
            "Set it in your .env file or deployment environment."
        )


def get_settings() -> Settings:  # noqa: D401 – public accessor
    """Return :class:`Settings` instance loaded from environment."""

    settings = _load_settings()
    _validate_required(settings)
    return settings


__all__ = [
    "Settings",
    "get_settings",
]
