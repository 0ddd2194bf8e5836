"""
Range-aware audio streaming.

Every request goes to the origin (no cache tier); seeking is served with
HTTP byte ranges read straight from the blob store.
"""

import re
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional, Tuple

from spotibuds.common.logging import get_logger
from spotibuds.common.monitoring import origin_fetches_total
from spotibuds.core.errors import (
    ClientInputError,
    NotFoundError,
    RangeNotSatisfiableError,
)
from spotibuds.core.interfaces import BlobStoreProtocol, ByteRange
from spotibuds.modules.media.source import audio_content_type, parse_source_url

logger = get_logger(__name__)

AUDIO_CACHE_CONTROL = "public, max-age=3600"

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")

AUDIO_BASE_HEADERS = {
    "Accept-Ranges": "bytes",
    "Cache-Control": AUDIO_CACHE_CONTROL,
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Range, Content-Range, Content-Length",
    "Access-Control-Expose-Headers": "Content-Range, Content-Length, Accept-Ranges",
}


@dataclass
class AudioResponse:
    """Status, headers and body iterator of an audio reply."""
    status_code: int
    content_type: str
    body: AsyncIterator[bytes]
    headers: Dict[str, str] = field(default_factory=dict)


def parse_range_header(range_header: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Parse ``bytes=<start>-<end>`` into (start, end).

    Either side may be empty and then counts as 0. Returns None when the
    header is absent or not of that form (multi-range included).
    """
    if not range_header:
        return None
    match = _RANGE_RE.match(range_header.strip())
    if match is None:
        return None
    start = int(match.group(1)) if match.group(1) else 0
    end = int(match.group(2)) if match.group(2) else 0
    return start, end


def resolve_range(requested: Tuple[int, int], content_length: int) -> ByteRange:
    """
    Clamp a requested window to the object.

    ``end`` becomes ``content_length - 1`` when it is 0 or past the object.

    Raises:
        RangeNotSatisfiableError: Window is empty or starts past the object
    """
    start, end = requested
    if end == 0 or end >= content_length:
        end = content_length - 1
    if start >= content_length or start > end:
        raise RangeNotSatisfiableError(
            "Requested range not satisfiable",
            content_length=content_length,
            data={"start": start, "end": end, "content_length": content_length},
        )
    return start, end


async def _prime(iterator: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Pull the first chunk now so origin errors surface before headers are sent."""
    try:
        first = await iterator.__anext__()
    except StopAsyncIteration:
        first = None

    async def chained() -> AsyncIterator[bytes]:
        try:
            if first is not None:
                yield first
            async for chunk in iterator:
                yield chunk
        finally:
            # Releases the origin body when the client goes away mid-stream
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    return chained()


class AudioStreamer:
    """Serves audio blobs honouring byte-range requests."""

    def __init__(self, blob_store: BlobStoreProtocol, chunk_size: int = 64 * 1024):
        self.blob_store = blob_store
        self.chunk_size = chunk_size

    async def get_audio(self, source_url: str, range_header: Optional[str] = None) -> AudioResponse:
        """
        Build the audio reply for a source URL.

        Raises:
            ClientInputError: URL missing or malformed
            RangeNotSatisfiableError: Range outside of the object
            NotFoundError: Origin error of any kind
        """
        location = parse_source_url(source_url)
        content_type = audio_content_type(location.key)
        requested = parse_range_header(range_header)

        try:
            content_length = await self.blob_store.get_length(location.container, location.key)
        except Exception as e:
            origin_fetches_total.labels(kind="audio", status="failure").inc()
            raise NotFoundError(
                "Audio not found",
                data={"container": location.container, "key": location.key},
                cause=e,
            ) from e

        headers = dict(AUDIO_BASE_HEADERS)

        if requested is None:
            byte_range = None
            status_code = 200
            kind = "audio"
            headers["Content-Length"] = str(content_length)
        else:
            byte_range = resolve_range(requested, content_length)
            start, end = byte_range
            length = end - start + 1
            status_code = 206
            kind = "audio_range"
            headers["Content-Range"] = f"bytes {start}-{end}/{content_length}"
            headers["Content-Length"] = str(length)

        try:
            body = await _prime(self.blob_store.stream(
                location.container,
                location.key,
                byte_range=byte_range,
                chunk_size=self.chunk_size,
            ))
        except (ClientInputError, RangeNotSatisfiableError):
            raise
        except Exception as e:
            origin_fetches_total.labels(kind=kind, status="failure").inc()
            raise NotFoundError(
                "Audio not found",
                data={"container": location.container, "key": location.key},
                cause=e,
            ) from e

        origin_fetches_total.labels(kind=kind, status="success").inc()
        logger.debug("Audio stream opened", data={
            "key": location.key,
            "status": status_code,
            "range": headers.get("Content-Range"),
        })
        return AudioResponse(
            status_code=status_code,
            content_type=content_type,
            body=body,
            headers=headers,
        )
