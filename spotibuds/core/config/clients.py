"""
Client Factory - Create connectors based on configuration.

Uses factory pattern for dependency injection.
"""

from typing import Optional

from spotibuds.common.logging import get_logger
from spotibuds.core.errors import ConfigurationError
from spotibuds.core.interfaces import (
    BlobStoreProtocol,
    DistributedCacheProtocol,
    DocumentStoreProtocol,
)
from .settings import BlobBackend, CacheBackend, Settings, get_settings

logger = get_logger(__name__)


def create_distributed_cache(
    settings: Optional[Settings] = None,
    backend: Optional[CacheBackend] = None,
) -> DistributedCacheProtocol:
    """
    Factory for the distributed cache tier.

    Example:
        cache = create_distributed_cache()  # Uses settings
        cache = create_distributed_cache(backend=CacheBackend.MEMORY)
    """
    settings = settings or get_settings()
    backend = backend or settings.cache_backend

    if backend == CacheBackend.REDIS:
        from ..connectors.redis_cache import RedisCache
        if not settings.redis_url:
            raise ConfigurationError("Redis URL required for redis backend")
        return RedisCache(url=settings.redis_url)

    elif backend == CacheBackend.MEMORY:
        from ..connectors.inmemory_cache import MemoryDistributedCache
        return MemoryDistributedCache()

    raise ConfigurationError(f"Unknown cache backend: {backend}")


def create_local_cache(settings: Optional[Settings] = None):
    """Process-local media tier sized from settings."""
    from ..connectors.inmemory_cache import InMemoryCache
    settings = settings or get_settings()
    return InMemoryCache(size_limit=settings.local_cache_size_limit_bytes)


def create_blob_store(
    settings: Optional[Settings] = None,
    backend: Optional[BlobBackend] = None,
) -> BlobStoreProtocol:
    """Factory for blob storage."""
    settings = settings or get_settings()
    backend = backend or settings.blob_backend

    if backend == BlobBackend.S3:
        from ..connectors.s3_blob_store import S3BlobStore
        return S3BlobStore(
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
        )

    elif backend == BlobBackend.MEMORY:
        from ..connectors.memory_blob_store import MemoryBlobStore
        return MemoryBlobStore()

    raise ConfigurationError(f"Unknown blob backend: {backend}")


def create_document_store(settings: Optional[Settings] = None) -> DocumentStoreProtocol:
    """
    Factory for the document store.

    Raises:
        ConfigurationError: MONGO_URL is not set
    """
    settings = settings or get_settings()
    if not settings.mongo_url:
        raise ConfigurationError("MONGO_URL is not configured")

    from ..connectors.mongo_store import MongoDocumentStore
    return MongoDocumentStore(
        url=settings.mongo_url,
        database=settings.mongo_database,
        server_selection_timeout=settings.mongo_server_selection_timeout,
    )
