"""
MemoryBlobStore - dict-backed blob storage (BLOB_BACKEND=memory).

No persistence - data lost on restart. Used for local development and tests.
"""

from typing import AsyncIterator, Dict, Optional, Tuple

from spotibuds.core.errors import NotFoundError
from spotibuds.core.interfaces import ByteRange


class MemoryBlobStore:
    """Implements BlobStoreProtocol over an in-process dict."""

    def __init__(self, objects: Optional[Dict[Tuple[str, str], bytes]] = None):
        self._objects: Dict[Tuple[str, str], bytes] = dict(objects or {})

    def put(self, container: str, key: str, data: bytes) -> None:
        self._objects[(container, key)] = bytes(data)

    def _lookup(self, container: str, key: str) -> bytes:
        try:
            return self._objects[(container, key)]
        except KeyError:
            raise NotFoundError(
                "Blob not found", data={"container": container, "key": key}
            ) from None

    async def get_length(self, container: str, key: str) -> int:
        return len(self._lookup(container, key))

    async def download_all(self, container: str, key: str) -> bytes:
        return self._lookup(container, key)

    async def download_range(self, container: str, key: str, byte_range: ByteRange) -> bytes:
        start, end = byte_range
        return self._lookup(container, key)[start:end + 1]

    async def stream(
        self,
        container: str,
        key: str,
        byte_range: Optional[ByteRange] = None,
        chunk_size: int = 64 * 1024,
    ) -> AsyncIterator[bytes]:
        data = self._lookup(container, key)
        if byte_range is not None:
            start, end = byte_range
            data = data[start:end + 1]
        for offset in range(0, len(data), chunk_size):
            yield data[offset:offset + chunk_size]
