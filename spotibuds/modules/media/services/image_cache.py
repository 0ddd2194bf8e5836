"""
Two-tier image cache.

Lookup order for a source URL:
    1. process-local tier
    2. distributed tier (hit is promoted into the local tier)
    3. origin blob store (result populates both tiers in the background)

Distributed-tier failures are treated as misses. Background population is
fire-and-forget: its failures are logged and counted, never retried, and
never reach the response.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from spotibuds.common.logging import get_logger
from spotibuds.common.monitoring import (
    media_cache_lookups_total,
    media_cache_population_failures_total,
    origin_fetches_total,
)
from spotibuds.core.errors import NotFoundError
from spotibuds.core.interfaces import (
    BlobStoreProtocol,
    CachePriority,
    DistributedCacheProtocol,
    LocalCacheProtocol,
)
from spotibuds.modules.media.source import (
    BlobLocation,
    image_content_type,
    parse_source_url,
    source_hash,
)

logger = get_logger(__name__)

IMAGE_CACHE_CONTROL = "public, max-age=86400, stale-while-revalidate=604800"

DISTRIBUTED_TTL_S = 6 * 3600
LOCAL_PROMOTE_TTL_S = 30 * 60
LOCAL_FILL_TTL_S = 60 * 60


@dataclass
class MediaPayload:
    """Image bytes plus the HTTP metadata to serve them with."""
    content: bytes
    content_type: str
    etag: str
    source: str  # local, distributed, origin
    headers: Dict[str, str] = field(default_factory=dict)


class ImageCache:
    """Resolves image bytes through the local tier, the distributed tier, then origin."""

    def __init__(
        self,
        blob_store: BlobStoreProtocol,
        distributed: DistributedCacheProtocol,
        local: LocalCacheProtocol,
        key_prefix: str = "image_",
        distributed_ttl: int = DISTRIBUTED_TTL_S,
        local_promote_ttl: int = LOCAL_PROMOTE_TTL_S,
        local_fill_ttl: int = LOCAL_FILL_TTL_S,
        single_flight: bool = False,
    ):
        self.blob_store = blob_store
        self.distributed = distributed
        self.local = local
        self.key_prefix = key_prefix
        self.distributed_ttl = distributed_ttl
        self.local_promote_ttl = local_promote_ttl
        self.local_fill_ttl = local_fill_ttl
        self.single_flight = single_flight

        self._pending: Set[asyncio.Task] = set()
        self._in_flight: Dict[str, asyncio.Future] = {}

    def cache_key(self, source_url: str) -> str:
        return f"{self.key_prefix}{source_hash(source_url)}"

    @staticmethod
    def etag(source_url: str) -> str:
        return f'"{source_hash(source_url)}"'

    async def get_image(self, source_url: str) -> MediaPayload:
        """
        Resolve image bytes for a source URL.

        Raises:
            ClientInputError: URL missing or malformed (before any cache/store call)
            NotFoundError: Origin fetch failed for any reason
        """
        location = parse_source_url(source_url)
        cache_key = self.cache_key(source_url)

        content = self.local.get(cache_key)
        if content is not None:
            media_cache_lookups_total.labels(tier="local", result="hit").inc()
            return self._payload(source_url, location, content, "local")
        media_cache_lookups_total.labels(tier="local", result="miss").inc()

        content = await self._distributed_get(cache_key)
        if content is not None:
            self.local.set(
                cache_key,
                content,
                sliding_ttl=self.local_promote_ttl,
                size=len(content),
                priority=CachePriority.HIGH,
            )
            return self._payload(source_url, location, content, "distributed")

        if self.single_flight:
            content = await self._fetch_shared(cache_key, location)
        else:
            content = await self._fetch_origin(cache_key, location)
        return self._payload(source_url, location, content, "origin")

    def _payload(self, source_url: str, location: BlobLocation, content: bytes, source: str) -> MediaPayload:
        etag = self.etag(source_url)
        return MediaPayload(
            content=content,
            content_type=image_content_type(location.key),
            etag=etag,
            source=source,
            headers={
                "Cache-Control": IMAGE_CACHE_CONTROL,
                "Access-Control-Allow-Origin": "*",
                "ETag": etag,
            },
        )

    async def _distributed_get(self, cache_key: str) -> Optional[bytes]:
        try:
            content = await self.distributed.get(cache_key)
        except Exception as e:
            media_cache_lookups_total.labels(tier="distributed", result="error").inc()
            logger.debug("Distributed cache unavailable, treating as miss", data={
                "key": cache_key,
                "error_type": type(e).__name__,
            })
            return None

        result = "hit" if content is not None else "miss"
        media_cache_lookups_total.labels(tier="distributed", result=result).inc()
        return content

    async def _fetch_origin(self, cache_key: str, location: BlobLocation) -> bytes:
        try:
            content = await self.blob_store.download_all(location.container, location.key)
        except Exception as e:
            origin_fetches_total.labels(kind="image", status="failure").inc()
            raise NotFoundError(
                "Image not found",
                data={"container": location.container, "key": location.key},
                cause=e,
            ) from e

        origin_fetches_total.labels(kind="image", status="success").inc()
        content = bytes(content)
        self._schedule_population(cache_key, content)
        return content

    async def _fetch_shared(self, cache_key: str, location: BlobLocation) -> bytes:
        """Concurrent misses on one key share a single origin fetch."""
        future = self._in_flight.get(cache_key)
        if future is not None:
            try:
                return await asyncio.shield(future)
            except asyncio.CancelledError:
                # The fetching request went away; our own task is still live
                if not future.cancelled():
                    raise
                logger.debug("Shared image fetch cancelled, refetching", data={"key": cache_key})
                return await self._fetch_shared(cache_key, location)

        future = asyncio.get_running_loop().create_future()
        self._in_flight[cache_key] = future
        try:
            content = await self._fetch_origin(cache_key, location)
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unobserved failure does not warn at GC
            future.exception()
            raise
        except BaseException:
            future.cancel()
            raise
        else:
            future.set_result(content)
            return content
        finally:
            self._in_flight.pop(cache_key, None)

    def _schedule_population(self, cache_key: str, content: bytes) -> None:
        task = asyncio.create_task(self._populate(cache_key, content))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _populate(self, cache_key: str, content: bytes) -> None:
        try:
            await self.distributed.set(cache_key, content, ttl=self.distributed_ttl)
        except Exception as e:
            media_cache_population_failures_total.labels(tier="distributed").inc()
            logger.warning("Background distributed cache write failed", data={
                "key": cache_key,
                "error_type": type(e).__name__,
            })

        try:
            self.local.set(
                cache_key,
                content,
                sliding_ttl=self.local_fill_ttl,
                size=len(content),
                priority=CachePriority.NORMAL,
            )
        except Exception as e:
            media_cache_population_failures_total.labels(tier="local").inc()
            logger.warning("Background local cache write failed", data={
                "key": cache_key,
                "error_type": type(e).__name__,
            })

    @property
    def pending_population(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for scheduled background population to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def cache_status(self, sample_size: int = 20) -> dict:
        """
        Count and sample of image keys in the distributed tier.

        Raises:
            CacheError: Distributed tier unreachable
        """
        keys = await self.distributed.scan_keys(f"{self.key_prefix}*")
        return {
            "total_image_keys": len(keys),
            "sample_keys": sorted(keys)[:sample_size],
            "ping": await self.distributed.ping(),
            "local_image_keys": len(self._local_keys()),
            "pending_population": self.pending_population,
        }

    async def clear(self) -> dict:
        """
        Delete every image key from both tiers.

        Raises:
            CacheError: Distributed tier unreachable
        """
        keys = await self.distributed.scan_keys(f"{self.key_prefix}*")
        for key in keys:
            await self.distributed.delete(key)

        local_keys = self._local_keys()
        for key in local_keys:
            self.local.delete(key)

        logger.info("Image cache cleared", data={
            "distributed": len(keys),
            "local": len(local_keys),
        })
        return {"distributed_deleted": len(keys), "local_deleted": len(local_keys)}

    def _local_keys(self) -> List[str]:
        return [k for k in self.local.keys() if k.startswith(self.key_prefix)]


