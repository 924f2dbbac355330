"""Process-local key-value cache with per-entry expiry."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""

    def delete(self, key: str) -> None:
        """Drop a cached value if present."""


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(tz=UTC)


@dataclass
class CacheEntry:
    key: str
    value: object
    expires_at: datetime


class InMemoryCache(Cache):
    """In-memory cache; entries are never served past their own expiry."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                self._entries.pop(key, None)
                return None
            return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL."""
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        """Remove a cached value."""
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
