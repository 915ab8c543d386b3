"""Shared route prefixes."""

# API
API_PREFIX = "/api/v1"

SYNC_PREFIX = "/sync"
SESSIONS_PREFIX = "/sessions"
EVENTS_PREFIX = "/events"
AUTH_PREFIX = "/auth"
