"""
Session Persistence

Two places hold the session, and they must agree:

1. The durable record (identity, token, expiry) survives restarts.
2. The token mirror is a short-lived, cookie-like copy of the token with a
   renewable max-age.

DESIGN DECISION: The mirror is a projection of the durable record. The
session lifecycle rewrites it from the durable token on every restore and
renewal and never reads it back to make a decision.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from http.cookies import SimpleCookie
from pathlib import Path
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DurableSessionStore(ABC):
    """Raw storage for the serialized durable session record."""

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the stored text, or None when nothing is stored."""
        pass

    @abstractmethod
    def write(self, text: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the record; clearing an empty store is a no-op."""
        pass


class JsonFileSessionStore(DurableSessionStore):
    """Durable record kept as a JSON file on disk."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[str]:
        if not self._path.exists():
            return None
        return self._path.read_text(encoding="utf-8")

    def write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(text, encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class MemorySessionStore(DurableSessionStore):
    """Durable record kept in process; stands in for the file in tests."""

    def __init__(self, text: Optional[str] = None):
        self.text = text

    def read(self) -> Optional[str]:
        return self.text

    def write(self, text: str) -> None:
        self.text = text

    def clear(self) -> None:
        self.text = None


class TokenMirror(ABC):
    """Short-lived copy of the session token."""

    @abstractmethod
    def set(self, token: str, max_age: timedelta) -> None:
        pass

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the token unless it is absent or past its max-age."""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class CookieTokenMirror(TokenMirror):
    """
    Token mirror shaped like an HTTP cookie.

    ``header()`` renders the ``Set-Cookie`` value a web front end would
    send; after ``clear()`` it renders an immediate-expiry cookie.
    """

    def __init__(self, name: str = "ledger_token", clock: Clock = utc_now):
        self._name = name
        self._clock = clock
        self._cookie: SimpleCookie = SimpleCookie()
        self._expires_at: Optional[datetime] = None

    def set(self, token: str, max_age: timedelta) -> None:
        self._cookie = SimpleCookie()
        self._cookie[self._name] = token
        morsel = self._cookie[self._name]
        morsel["max-age"] = str(int(max_age.total_seconds()))
        morsel["path"] = "/"
        morsel["samesite"] = "Strict"
        self._expires_at = self._clock() + max_age

    def get(self) -> Optional[str]:
        if self._name not in self._cookie or self._expires_at is None:
            return None
        if self._clock() >= self._expires_at:
            return None
        return self._cookie[self._name].value

    def clear(self) -> None:
        self._cookie = SimpleCookie()
        self._cookie[self._name] = ""
        self._cookie[self._name]["max-age"] = "0"
        self._cookie[self._name]["path"] = "/"
        self._expires_at = None

    def header(self) -> str:
        """The ``Set-Cookie`` header value for the current state."""
        if self._name not in self._cookie:
            return ""
        return self._cookie[self._name].OutputString()
