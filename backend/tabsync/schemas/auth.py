from datetime import datetime
from typing import Optional

from tabsync.schemas.base import CamelModel


class TokenUser(CamelModel):
    id: int
    email: str = ""
    name: str = ""
    expires_in: str


class TokenValidation(CamelModel):
    valid: bool
    user: Optional[TokenUser] = None
    error: Optional[str] = None


class UserActivity(CamelModel):
    """A user row plus how much it has synced."""

    id: int
    email: str
    display_name: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    instance_count: int = 0
    event_count: int = 0
    last_event_at: Optional[int] = None
