"""Service container handed to the routers through ``app.state``."""

from dataclasses import dataclass

from fastapi import Request

from spotibuds.core.config import Settings
from spotibuds.core.db import ConnectionGuard
from spotibuds.core.interfaces import (
    BlobStoreProtocol,
    DistributedCacheProtocol,
    LocalCacheProtocol,
)
from spotibuds.modules.media import AudioStreamer, ImageCache


@dataclass
class Services:
    """Long-lived collaborators shared by every request."""
    settings: Settings
    guard: ConnectionGuard
    image_cache: ImageCache
    audio_streamer: AudioStreamer
    distributed: DistributedCacheProtocol
    local: LocalCacheProtocol
    blob_store: BlobStoreProtocol


def get_services(request: Request) -> Services:
    return request.app.state.services
