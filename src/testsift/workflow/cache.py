"""Thread-safe TTL cache for collaborator calls.

Owned by (or injected into) a WorkflowOrchestrator; there is no module
level instance.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from ..logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _Entry:
    value: Any
    stored_at: float
    ttl: float

    def fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class TTLCache:
    """Key-value cache with a TTL per entry.

    Reads are lock-free on the fast path. A miss takes the key's own lock,
    so concurrent misses on one key fetch once while other keys proceed.
    Failed fetches are not cached.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._stats_lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _count(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self.hits += 1
            else:
                self.misses += 1

    def peek(self, key: str) -> Optional[Any]:
        """Cached value if still fresh, without fetching."""
        entry = self._entries.get(key)
        if entry is not None and entry.fresh(self._clock()):
            return entry.value
        return None

    def get_or_fetch(self, key: str, fetch: Callable[[], T], ttl: float) -> T:
        """Return the cached value for ``key`` or call ``fetch`` and store it.

        A ``ttl`` of 0 or less bypasses the cache entirely.
        """
        if ttl <= 0:
            return fetch()

        entry = self._entries.get(key)
        if entry is not None and entry.fresh(self._clock()):
            self._count(hit=True)
            return entry.value

        with self._lock_for(key):
            # another thread may have filled it while we waited
            entry = self._entries.get(key)
            if entry is not None and entry.fresh(self._clock()):
                self._count(hit=True)
                return entry.value

            self._count(hit=False)
            if entry is not None:
                logger.debug(f"Cache entry expired: {key}")
                del self._entries[key]
            value = fetch()
            self._entries[key] = _Entry(value, self._clock(), ttl)
            return value

    def invalidate(self, key: str) -> None:
        with self._lock_for(key):
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._locks_guard:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        with self._stats_lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}
