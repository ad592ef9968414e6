"""In-memory result cache with age-based liveness and explicit sweeping."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any

from .events import EventHooks, EventName

DEFAULT_MAX_AGE_SECONDS = 3600.0


@dataclass(frozen=True)
class CacheEntry:
    key: str
    created_at: float
    payload: Any


@dataclass(frozen=True)
class CacheStats:
    size: int
    keys: list[str]
    oldest_entry_age_seconds: float | None


class ResultCache:
    """Process-wide store of assembled fetch results keyed by request key.

    ``get`` treats entries older than ``max_age_seconds`` as absent but leaves
    them in place; removal is the job of ``sweep`` or ``clear``.
    """

    def __init__(
        self,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
        events: EventHooks | None = None,
    ) -> None:
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._events = events or EventHooks()
        self._entries: dict[str, CacheEntry] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Any | None:
        """Return the payload for a live entry, or None."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)

        if entry is not None and now - entry.created_at < self.max_age_seconds:
            self._events.emit(EventName.CACHE_HIT, key=key)
            return entry.payload

        self._events.emit(EventName.CACHE_MISS, key=key, expired=entry is not None)
        return None

    def peek(self, key: str) -> Any | None:
        """Like ``get`` but without emitting hit/miss events."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is not None and now - entry.created_at < self.max_age_seconds:
            return entry.payload
        return None

    def set(self, key: str, payload: Any) -> CacheEntry:
        entry = CacheEntry(key=key, created_at=self._clock(), payload=payload)
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self) -> int:
        """Remove every entry and return how many were removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def sweep(self, max_age: float | None = None) -> int:
        """Remove entries older than ``max_age`` seconds and return the count."""
        limit = self.max_age_seconds if max_age is None else max_age
        now = self._clock()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if now - entry.created_at > limit]
            for key in stale:
                del self._entries[key]
            remaining = len(self._entries)

        self._events.emit(EventName.SWEEP_COMPLETED, removed=len(stale), remaining=remaining)
        return len(stale)

    def stats(self) -> CacheStats:
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())

        oldest = min((entry.created_at for entry in entries), default=None)
        return CacheStats(
            size=len(entries),
            keys=[entry.key for entry in entries],
            oldest_entry_age_seconds=None if oldest is None else now - oldest,
        )
