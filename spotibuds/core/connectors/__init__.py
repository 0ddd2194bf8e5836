"""
Connectors - Implementations of the external collaborator protocols.

- redis_cache.py: Redis distributed cache tier (production)
- inmemory_cache.py: process-local tier, plus an in-memory distributed tier
- s3_blob_store.py: S3-compatible blob storage (production)
- memory_blob_store.py: dict-backed blob storage (local dev, tests)
- mongo_store.py: MongoDB document store
"""

from .inmemory_cache import InMemoryCache, MemoryDistributedCache
from .memory_blob_store import MemoryBlobStore

__all__ = [
    "InMemoryCache",
    "MemoryDistributedCache",
    "MemoryBlobStore",
]
