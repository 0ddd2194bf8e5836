"""
RedisCache - Redis-based distributed cache tier.

Stores raw bytes (no JSON) under a namespacing prefix. Connection and
command failures surface as CacheError so callers decide whether a
failure is a miss.
"""

from typing import List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from spotibuds.common.logging import get_logger
from spotibuds.core.errors import CacheError

logger = get_logger(__name__)


class RedisCache:
    """
    Redis-based cache implementation.

    Implements DistributedCacheProtocol for production use.
    Requires Redis server.
    """

    def __init__(
        self,
        url: str,
        prefix: str = "spotibuds:",
        socket_timeout: float = 2.0,
        client: Optional[aioredis.Redis] = None,
    ):
        """
        Initialize Redis cache.

        Args:
            url: Redis connection URL (redis://host:port/db)
            prefix: Key prefix for namespacing
            socket_timeout: Connect and command timeout in seconds
            client: Pre-built client (tests)
        """
        self.client = client or aioredis.from_url(
            url,
            decode_responses=False,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
        )
        self.prefix = prefix
        logger.info("Redis cache initialized", data={"prefix": prefix})

    def _key(self, key: str) -> str:
        """Add prefix to key."""
        return f"{self.prefix}{key}"

    def _strip(self, raw) -> str:
        key = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        return key[len(self.prefix):] if key.startswith(self.prefix) else key

    async def get(self, key: str) -> Optional[bytes]:
        """Get value by key."""
        try:
            return await self.client.get(self._key(key))
        except (RedisError, OSError) as e:
            raise CacheError("Redis get failed", data={"key": key}, cause=e) from e

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        """Set value with optional TTL in seconds."""
        try:
            if ttl:
                await self.client.setex(self._key(key), ttl, value)
            else:
                await self.client.set(self._key(key), value)
        except (RedisError, OSError) as e:
            raise CacheError("Redis set failed", data={"key": key}, cause=e) from e

    async def delete(self, key: str) -> None:
        """Delete key."""
        try:
            await self.client.delete(self._key(key))
        except (RedisError, OSError) as e:
            raise CacheError("Redis delete failed", data={"key": key}, cause=e) from e

    async def scan_keys(self, pattern: str) -> List[str]:
        """Get all keys matching a glob pattern (SCAN, not KEYS)."""
        try:
            return [
                self._strip(raw)
                async for raw in self.client.scan_iter(match=self._key(pattern), count=500)
            ]
        except (RedisError, OSError) as e:
            raise CacheError("Redis scan failed", data={"pattern": pattern}, cause=e) from e

    async def ping(self) -> bool:
        """Check Redis connection."""
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self.client.aclose()
