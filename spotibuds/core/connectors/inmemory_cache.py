"""
In-memory cache implementations.

- InMemoryCache: process-local media tier (sliding expiry, priorities, size limit)
- MemoryDistributedCache: async stand-in for the distributed tier (CACHE_BACKEND=memory, tests)
"""

import fnmatch
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from spotibuds.common.logging import get_logger
from spotibuds.core.interfaces import CachePriority

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """Cache entry with optional sliding expiration."""
    value: bytes
    size: int
    priority: CachePriority
    sliding_ttl: Optional[float]
    last_access: float

    def is_expired(self, now: float) -> bool:
        """Check if entry is expired."""
        if self.sliding_ttl is None:
            return False
        return now - self.last_access > self.sliding_ttl


class InMemoryCache:
    """
    Process-local cache for media bytes.

    Implements LocalCacheProtocol. Each read refreshes the entry's sliding
    expiry. When the total of size hints would exceed ``size_limit``,
    expired entries go first, then the lowest priority, least recently
    used ones. Entries larger than the limit are not stored.
    """

    def __init__(
        self,
        size_limit: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._size_limit = size_limit
        self._clock = clock
        self._total_size = 0

    def get(self, key: str) -> Optional[bytes]:
        """Get value by key."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            now = self._clock()
            if entry.is_expired(now):
                self._remove(key)
                return None
            entry.last_access = now
            self._store.move_to_end(key)
            return entry.value

    def set(
        self,
        key: str,
        value: bytes,
        sliding_ttl: Optional[int] = None,
        size: Optional[int] = None,
        priority: CachePriority = CachePriority.NORMAL,
    ) -> None:
        """Set value with sliding TTL in seconds, size hint and eviction priority."""
        size = len(value) if size is None else size
        with self._lock:
            if key in self._store:
                self._remove(key)

            if self._size_limit is not None and size > self._size_limit:
                logger.debug("Entry larger than local cache limit, not stored", data={
                    "key": key,
                    "size": size,
                    "size_limit": self._size_limit,
                })
                return

            now = self._clock()
            self._make_room(size, now)
            self._store[key] = CacheEntry(
                value=value,
                size=size,
                priority=CachePriority(priority),
                sliding_ttl=sliding_ttl,
                last_access=now,
            )
            self._total_size += size

    def delete(self, key: str) -> None:
        """Delete key."""
        with self._lock:
            if key in self._store:
                self._remove(key)

    def exists(self, key: str) -> bool:
        """Check if key exists and not expired (does not refresh expiry)."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._remove(key)
                return False
            return True

    def clear(self) -> None:
        """Clear all cache."""
        with self._lock:
            self._store.clear()
            self._total_size = 0

    def keys(self) -> List[str]:
        """Get all non-expired keys."""
        with self._lock:
            self._purge_expired(self._clock())
            return list(self._store.keys())

    def size(self) -> int:
        """Get number of entries."""
        return len(self.keys())

    @property
    def total_size(self) -> int:
        """Sum of size hints of stored entries."""
        return self._total_size

    def _remove(self, key: str) -> None:
        entry = self._store.pop(key)
        self._total_size -= entry.size

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, e in self._store.items() if e.is_expired(now)]
        for key in expired:
            self._remove(key)

    def _make_room(self, incoming: int, now: float) -> None:
        if self._size_limit is None:
            return
        if self._total_size + incoming <= self._size_limit:
            return

        self._purge_expired(now)

        # OrderedDict keeps least recently used first, so a stable sort on
        # priority yields lowest priority, oldest access first.
        candidates = sorted(
            (k for k, e in self._store.items() if e.priority < CachePriority.NEVER_REMOVE),
            key=lambda k: self._store[k].priority,
        )
        for key in candidates:
            if self._total_size + incoming <= self._size_limit:
                break
            self._remove(key)


class MemoryDistributedCache:
    """
    Async dict-backed distributed cache.

    Implements DistributedCacheProtocol without a server; entries use
    absolute TTLs like Redis. Shared only within one process.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: Dict[str, tuple[bytes, Optional[float]]] = {}
        self._clock = clock

    def _live(self, key: str) -> Optional[bytes]:
        item = self._store.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    async def get(self, key: str) -> Optional[bytes]:
        return self._live(key)

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._store[key] = (bytes(value), expires_at)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def scan_keys(self, pattern: str) -> List[str]:
        return [
            key for key in list(self._store)
            if fnmatch.fnmatchcase(key, pattern) and self._live(key) is not None
        ]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._store.clear()
