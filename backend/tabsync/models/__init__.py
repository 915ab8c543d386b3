"""Database models for the application."""

from .models import SessionSnapshot
from .models import SessionTab
from .models import SessionWindow
from .models import User
from .sync import Event
from .sync import SessionRestoration
from .sync import SyncMarker

__all__ = [
    "Event",
    "SessionRestoration",
    "SessionSnapshot",
    "SessionTab",
    "SessionWindow",
    "SyncMarker",
    "User",
]
