"""
Interfaces - Protocols for DI.

Components receive these capabilities at construction, so tests can pass fakes.
"""

from .cache_protocol import (
    CachePriority,
    DistributedCacheProtocol,
    LocalCacheProtocol,
)
from .storage_protocol import (
    ByteRange,
    BlobStoreProtocol,
    DocumentStoreProtocol,
)

__all__ = [
    "CachePriority",
    "DistributedCacheProtocol",
    "LocalCacheProtocol",
    "ByteRange",
    "BlobStoreProtocol",
    "DocumentStoreProtocol",
]
