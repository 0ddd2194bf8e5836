"""
Source URL handling for media requests.

A source URL points at a blob: the first path segment is the container, the
remaining segments form the object key, e.g.
``https://media.example.net/songs/42/cover/a1b2.jpg`` -> (songs, 42/cover/a1b2.jpg).
"""

import hashlib
import posixpath
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from spotibuds.core.errors import ClientInputError

IMAGE_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}

AUDIO_CONTENT_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class BlobLocation:
    """Container + object key of a media blob."""
    container: str
    key: str


def parse_source_url(url: str | None) -> BlobLocation:
    """
    Split a source URL into container and object key.

    Raises:
        ClientInputError: URL missing, not absolute, or with fewer than two path segments
    """
    if not url or not url.strip():
        raise ClientInputError("URL parameter is required")

    try:
        parts = urlsplit(url.strip())
    except ValueError as e:
        raise ClientInputError("URL could not be parsed", data={"url": url}, cause=e) from e

    if not parts.scheme or not parts.netloc:
        raise ClientInputError("URL must be absolute (scheme and host)", data={"url": url})

    segments = [unquote(s) for s in parts.path.split("/") if s]
    if len(segments) < 2:
        raise ClientInputError(
            "URL path must contain a container and an object key",
            data={"url": url, "segments": len(segments)},
        )

    return BlobLocation(container=segments[0], key="/".join(segments[1:]))


def _content_type(name: str, table: dict[str, str]) -> str:
    extension = posixpath.splitext(name)[1].lower()
    return table.get(extension, DEFAULT_CONTENT_TYPE)


def image_content_type(name: str) -> str:
    """MIME type of an image file name (case-insensitive extension)."""
    return _content_type(name, IMAGE_CONTENT_TYPES)


def audio_content_type(name: str) -> str:
    """MIME type of an audio file name (case-insensitive extension)."""
    return _content_type(name, AUDIO_CONTENT_TYPES)


def source_hash(url: str) -> str:
    """Deterministic hash of a source URL (cache keys, ETags)."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:32]
