"""
Media module.

- source.py - Source URL parsing, content types, hashing
- services/ - ImageCache (two tiers + origin), AudioStreamer (byte ranges)
"""

from .source import BlobLocation, parse_source_url
from .services import AudioResponse, AudioStreamer, ImageCache, MediaPayload

__all__ = [
    "BlobLocation",
    "parse_source_url",
    "AudioResponse",
    "AudioStreamer",
    "ImageCache",
    "MediaPayload",
]
