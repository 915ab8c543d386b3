"""Logging helpers shared by the app entry point and the services."""

from __future__ import annotations

import logging
from typing import Iterable
from typing import Optional

# Modules that log every request at INFO; kept at WARNING unless the
# operator explicitly asks for DEBUG.
_NOISY_LOGGERS = ("uvicorn.access",)


def configure_logging(level_name: str, noisy: Iterable[str] = _NOISY_LOGGERS) -> int:
    """Configure the root logger from a level name and return the level."""

    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")

    if level > logging.DEBUG:
        for name in noisy:
            logging.getLogger(name).setLevel(logging.WARNING)
    return level


def short_id(value: Optional[str], length: int = 8) -> str:
    """Truncate an identifier for log output."""

    if not value:
        return "none"
    return value[:length]


__all__ = ["configure_logging", "short_id"]
