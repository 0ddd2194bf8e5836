"""
Cache Protocols - Interfaces for the two media cache tiers.

Implementations:
- RedisCache (spotibuds.core.connectors.redis_cache): distributed tier
- MemoryDistributedCache (spotibuds.core.connectors.inmemory_cache): distributed tier stand-in
- InMemoryCache (spotibuds.core.connectors.inmemory_cache): process-local tier
"""

from enum import IntEnum
from typing import Protocol, Optional, List, runtime_checkable


class CachePriority(IntEnum):
    """Eviction priority of a process-local entry (lowest is evicted first)."""
    LOW = 0
    NORMAL = 1
    HIGH = 2
    NEVER_REMOVE = 3


@runtime_checkable
class DistributedCacheProtocol(Protocol):
    """Shared cache reachable by every server instance."""

    async def get(self, key: str) -> Optional[bytes]:
        """Get value by key, None when absent."""
        ...

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        """Set value with optional TTL in seconds."""
        ...

    async def delete(self, key: str) -> None:
        """Delete key."""
        ...

    async def scan_keys(self, pattern: str) -> List[str]:
        """List keys matching a glob pattern."""
        ...

    async def ping(self) -> bool:
        """Check connectivity."""
        ...


@runtime_checkable
class LocalCacheProtocol(Protocol):
    """In-memory cache private to one server instance."""

    def get(self, key: str) -> Optional[bytes]:
        """Get value by key, refreshing its sliding expiry."""
        ...

    def set(
        self,
        key: str,
        value: bytes,
        sliding_ttl: Optional[int] = None,
        size: Optional[int] = None,
        priority: CachePriority = CachePriority.NORMAL,
    ) -> None:
        """Set value with sliding TTL in seconds, size hint and eviction priority."""
        ...

    def delete(self, key: str) -> None:
        """Delete key."""
        ...

    def keys(self) -> List[str]:
        """Get all non-expired keys."""
        ...
