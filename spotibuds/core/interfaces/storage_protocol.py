"""
Storage Protocols - Interfaces for the blob store and the document store.

Implementations:
- S3BlobStore / MemoryBlobStore (spotibuds.core.connectors)
- MongoDocumentStore (spotibuds.core.connectors.mongo_store)
"""

from typing import (
    Any,
    AsyncIterator,
    Dict,
    List,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)


# Inclusive byte window [start, end]
ByteRange = Tuple[int, int]


@runtime_checkable
class BlobStoreProtocol(Protocol):
    """Object storage addressed by container + key."""

    async def get_length(self, container: str, key: str) -> int:
        """Total object size in bytes."""
        ...

    async def download_all(self, container: str, key: str) -> bytes:
        """Full object contents."""
        ...

    async def download_range(self, container: str, key: str, byte_range: ByteRange) -> bytes:
        """Exactly the inclusive byte window of the object."""
        ...

    def stream(
        self,
        container: str,
        key: str,
        byte_range: Optional[ByteRange] = None,
        chunk_size: int = 64 * 1024,
    ) -> AsyncIterator[bytes]:
        """Iterate the object (or a byte window of it) in chunks."""
        ...


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """Collections of documents keyed by an opaque string id."""

    async def ping(self, timeout: Optional[float] = None) -> bool:
        """Liveness command bounded by a timeout in seconds."""
        ...

    def collection(self, name: str) -> Any:
        """Handle to a named collection."""
        ...

    async def find(self, collection: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        ...

    async def find_one(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def insert(self, collection: str, document: Dict[str, Any]) -> str:
        ...

    async def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> bool:
        ...

    async def delete(self, collection: str, doc_id: str) -> bool:
        ...
