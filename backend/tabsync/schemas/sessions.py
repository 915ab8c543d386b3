from typing import List
from typing import Optional

from pydantic import Field

from tabsync.schemas.base import CamelModel


# Snapshot input – mirrors the browser's windows/tabs API objects
class SessionTabIn(CamelModel):
    id: Optional[int] = None
    url: str
    title: Optional[str] = None
    index: Optional[int] = None
    active: bool = False
    pinned: bool = False
    group_id: Optional[int] = None
    fav_icon_url: Optional[str] = None


class SessionWindowIn(CamelModel):
    id: Optional[int] = None
    focused: bool = False
    incognito: bool = False
    type: Optional[str] = None
    tabs: List[SessionTabIn] = Field(default_factory=list)


class SessionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    tags: Optional[List[str]] = None
    windows: Optional[List[SessionWindowIn]] = None
    total_tabs: Optional[int] = Field(None, ge=0)
    total_windows: Optional[int] = Field(None, ge=0)


class SessionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    tags: Optional[List[str]] = None


# Snapshot output
class SessionTabOut(CamelModel):
    tab_id: int
    url: str
    title: Optional[str] = None
    index: int
    active: bool
    pinned: bool
    group_id: Optional[int] = None
    fav_icon_url: Optional[str] = None


class SessionWindowOut(CamelModel):
    window_id: int
    focused: bool
    incognito: bool
    type: Optional[str] = None
    tabs: List[SessionTabOut] = Field(default_factory=list)


class SessionSummary(CamelModel):
    session_id: str
    instance_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    captured_at: int
    tab_count: int
    window_count: int


class SessionDetail(SessionSummary):
    windows: List[SessionWindowOut] = Field(default_factory=list)


class BatchCreateResult(CamelModel):
    created: int = 0
    failed: int = 0
    session_ids: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
