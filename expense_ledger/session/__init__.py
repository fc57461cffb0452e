"""Session lifecycle package."""

from expense_ledger.session.lifecycle import (
    ADMIN_IDENTITY,
    CreationError,
    InvalidCredentials,
    MalformedSessionState,
    SessionError,
    SessionLifecycle,
)
from expense_ledger.session.store import (
    CookieTokenMirror,
    DurableSessionStore,
    JsonFileSessionStore,
    MemorySessionStore,
    TokenMirror,
    utc_now,
)

__all__ = [
    "ADMIN_IDENTITY",
    "CreationError",
    "InvalidCredentials",
    "MalformedSessionState",
    "SessionError",
    "SessionLifecycle",
    "CookieTokenMirror",
    "DurableSessionStore",
    "JsonFileSessionStore",
    "MemorySessionStore",
    "TokenMirror",
    "utc_now",
]
