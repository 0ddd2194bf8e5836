"""
S3BlobStore - S3-compatible blob storage (BLOB_BACKEND=s3).

Supports AWS S3, MinIO and other S3-compatible storage. A container maps
to a bucket, a blob key to an object key. boto3 is blocking, so every call
runs in a worker thread.
"""

from functools import partial
from typing import Any, AsyncIterator, Callable, Optional

import boto3
from anyio import to_thread
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from spotibuds.common.logging import get_logger
from spotibuds.core.errors import BlobStoreError, NotFoundError
from spotibuds.core.interfaces import ByteRange

logger = get_logger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


async def _run_sync(func: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Any:
    return await to_thread.run_sync(partial(func, *args, **kwargs))


def _range_header(byte_range: ByteRange) -> str:
    start, end = byte_range
    return f"bytes={start}-{end}"


class S3BlobStore:
    """Blob store over an S3 client."""

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        client: Any = None,
    ):
        """
        Initialize S3 blob store.

        Args:
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            region: AWS region (optional, uses boto3 default if not set).
            client: Pre-built boto3 S3 client (tests).
        """
        if client is None:
            kwargs: dict = {"config": BotoConfig(retries={"max_attempts": 2, "mode": "standard"})}
            if region:
                kwargs["region_name"] = region
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **kwargs)
        self._s3 = client

    def _translate(self, exc: Exception, container: str, key: str) -> Exception:
        data = {"container": container, "key": key}
        if isinstance(exc, ClientError):
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return NotFoundError("Blob not found", data=data, cause=exc)
        return BlobStoreError("Blob store request failed", data=data, cause=exc)

    async def get_length(self, container: str, key: str) -> int:
        """Total object size from a HEAD request."""
        try:
            head = await _run_sync(self._s3.head_object, Bucket=container, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, container, key) from e
        return int(head["ContentLength"])

    async def _get_body(self, container: str, key: str, byte_range: Optional[ByteRange]):
        kwargs: dict = {"Bucket": container, "Key": key}
        if byte_range is not None:
            kwargs["Range"] = _range_header(byte_range)
        try:
            response = await _run_sync(self._s3.get_object, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, container, key) from e
        return response["Body"]

    async def download_all(self, container: str, key: str) -> bytes:
        """Full object contents."""
        body = await self._get_body(container, key, None)
        try:
            data = await _run_sync(body.read)
        finally:
            await _run_sync(body.close)
        logger.debug("S3 read", data={"container": container, "key": key, "bytes": len(data)})
        return data

    async def download_range(self, container: str, key: str, byte_range: ByteRange) -> bytes:
        """Exactly the inclusive byte window of the object."""
        body = await self._get_body(container, key, byte_range)
        try:
            return await _run_sync(body.read)
        finally:
            await _run_sync(body.close)

    async def stream(
        self,
        container: str,
        key: str,
        byte_range: Optional[ByteRange] = None,
        chunk_size: int = 64 * 1024,
    ) -> AsyncIterator[bytes]:
        """Iterate the object (or a byte window of it) in chunks."""
        body = await self._get_body(container, key, byte_range)
        try:
            while True:
                chunk = await _run_sync(body.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await _run_sync(body.close)
