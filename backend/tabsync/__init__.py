"""tabsync – marker-based sync backend for browser activity and sessions."""

__version__ = "0.1.0"
