"""In-memory fixed-window counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from reqlimit.adapters.rate_limit.base import AbstractCounterStore
from reqlimit.core.errors import StoreAppError

# Expired entries are swept from the whole map once every this many increments
SWEEP_EVERY = 1024


@dataclass
class _CounterEntry:
    count: int
    expires_at: float | None


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store mirroring Redis INCR/EXPIRE semantics in process memory.

    An entry's expiry is set only when the increment creates it, so each key
    counts within a fixed window that starts at its first request. Expired
    entries are dropped when their key is next seen, and by a full sweep every
    ``sweep_every`` increments so identities that never return are reclaimed.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_every: int = SWEEP_EVERY,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_every: Increments between full sweeps of expired entries.

        Raises:
            ValueError: If sweep_every is invalid.
        """
        if sweep_every < 1:
            raise ValueError("sweep_every must be >= 1")

        self._clock = clock
        self._sweep_every = sweep_every
        self._lock = threading.RLock()
        self._entries: dict[str, _CounterEntry] = {}
        self._increments_since_sweep = 0
        self._closed = False

    def entry_count(self) -> int:
        """Number of entries held, including expired ones not yet dropped."""
        with self._lock:
            return len(self._entries)

    def _live_entry(self, key: str, now: float) -> _CounterEntry | None:
        """Return the entry for key, dropping it when its TTL has passed."""
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at is not None and now >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _sweep_expired(self, now: float) -> None:
        """Drop every expired entry. Caller holds the lock."""
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.expires_at is not None and now >= entry.expires_at
        ]
        for key in expired:
            del self._entries[key]
        self._increments_since_sweep = 0

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreAppError(code="store_closed", message="Counter store is closed")

    def increment_and_expire(self, key: str, ttl_seconds: int) -> int:
        now = self._clock()

        with self._lock:
            self._ensure_open()

            self._increments_since_sweep += 1
            if self._increments_since_sweep >= self._sweep_every:
                self._sweep_expired(now)

            entry = self._live_entry(key, now)
            if entry is None:
                entry = _CounterEntry(count=0, expires_at=None)
                self._entries[key] = entry

            entry.count += 1
            if entry.count == 1:
                entry.expires_at = now + ttl_seconds
            return entry.count

    def ttl(self, key: str) -> float | None:
        """Seconds left before ``key`` expires, or None when absent."""
        now = self._clock()
        with self._lock:
            entry = self._live_entry(key, now)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - now

    def ping(self) -> bool:
        with self._lock:
            self._ensure_open()
        return True

    def close(self) -> None:
        with self._lock:
            self._entries.clear()
            self._closed = True
