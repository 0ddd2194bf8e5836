from .audio_streamer import AudioResponse, AudioStreamer
from .image_cache import ImageCache, MediaPayload

__all__ = ["AudioResponse", "AudioStreamer", "ImageCache", "MediaPayload"]
