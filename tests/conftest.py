"""
Pytest configuration for spotibuds media API tests.

Defines markers, instrumented fakes for the external collaborators, and
an httpx client bound to an app wired with in-memory connectors.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from spotibuds.api import Services
from spotibuds.core.config import BlobBackend, CacheBackend, Settings
from spotibuds.core.connectors import InMemoryCache, MemoryBlobStore, MemoryDistributedCache
from spotibuds.core.db import ConnectionGuard
from spotibuds.core.errors import CacheError
from spotibuds.main import create_app
from spotibuds.modules.media import AudioStreamer, ImageCache


# =============================================================================
# Pytest Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "asyncio: Async tests")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests (requires services like Redis)")


# =============================================================================
# Instrumented fakes
# =============================================================================

class CountingDistributedCache(MemoryDistributedCache):
    """In-memory distributed tier that counts round trips."""

    def __init__(self):
        super().__init__()
        self.get_calls = 0
        self.set_calls = 0

    async def get(self, key: str) -> Optional[bytes]:
        self.get_calls += 1
        return await super().get(key)

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        self.set_calls += 1
        await super().set(key, value, ttl)


class FailingDistributedCache:
    """Distributed tier whose every call fails like an unreachable Redis."""

    def __init__(self):
        self.calls = 0

    async def get(self, key: str) -> Optional[bytes]:
        self.calls += 1
        raise CacheError("Redis get failed", data={"key": key}, cause=ConnectionError("refused"))

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        self.calls += 1
        raise CacheError("Redis set failed", data={"key": key}, cause=ConnectionError("refused"))

    async def delete(self, key: str) -> None:
        raise CacheError("Redis delete failed", cause=ConnectionError("refused"))

    async def scan_keys(self, pattern: str) -> List[str]:
        raise CacheError("Redis scan failed", cause=ConnectionError("refused"))

    async def ping(self) -> bool:
        return False


class RecordingBlobStore(MemoryBlobStore):
    """Blob store that records every origin call."""

    def __init__(self, objects: Optional[Dict[Tuple[str, str], bytes]] = None):
        super().__init__(objects)
        self.calls: List[Tuple[str, str, str, Any]] = []

    async def get_length(self, container: str, key: str) -> int:
        self.calls.append(("get_length", container, key, None))
        return await super().get_length(container, key)

    async def download_all(self, container: str, key: str) -> bytes:
        self.calls.append(("download_all", container, key, None))
        return await super().download_all(container, key)

    async def download_range(self, container: str, key: str, byte_range) -> bytes:
        self.calls.append(("download_range", container, key, byte_range))
        return await super().download_range(container, key, byte_range)

    def stream(self, container: str, key: str, byte_range=None, chunk_size: int = 64 * 1024):
        self.calls.append(("stream", container, key, byte_range))
        return super().stream(container, key, byte_range=byte_range, chunk_size=chunk_size)


class FakeDocumentStore:
    """
    Dict-backed document store.

    ``ping_result``/``ping_error`` steer liveness; ``failures`` is a queue
    of exceptions raised by the next reads, one per call.
    """

    def __init__(self, collections: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.collections = {name: list(docs) for name, docs in (collections or {}).items()}
        self.ping_result = True
        self.ping_error: Optional[BaseException] = None
        self.failures: List[BaseException] = []
        self.read_calls = 0
        self.closed = False

    async def ping(self, timeout: Optional[float] = None) -> bool:
        if self.ping_error is not None:
            raise self.ping_error
        return self.ping_result

    def collection(self, name: str) -> Any:
        return self.collections.setdefault(name, [])

    def _maybe_fail(self) -> None:
        self.read_calls += 1
        if self.failures:
            raise self.failures.pop(0)

    async def find(self, collection: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        self._maybe_fail()
        return list(self.collections.get(collection, []))

    async def find_one(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self._maybe_fail()
        for doc in self.collections.get(collection, []):
            if doc.get("id") == doc_id:
                return doc
        return None

    async def insert(self, collection: str, document: Dict[str, Any]) -> str:
        self.collection(collection).append(dict(document))
        return str(document.get("id"))

    async def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> bool:
        for doc in self.collections.get(collection, []):
            if doc.get("id") == doc_id:
                doc.update(changes)
                return True
        return False

    async def delete(self, collection: str, doc_id: str) -> bool:
        docs = self.collections.get(collection, [])
        for doc in docs:
            if doc.get("id") == doc_id:
                docs.remove(doc)
                return True
        return False

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Shared Fixtures
# =============================================================================

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4
AUDIO_BYTES = bytes(i % 251 for i in range(10_000))

IMAGE_URL = "https://media.spotibuds.test/images/albums/42/cover.png"
AUDIO_URL = "https://media.spotibuds.test/audio/songs/42/track.mp3"


@pytest.fixture
def test_settings() -> Settings:
    """Settings wired to in-memory backends with no retry delay."""
    return Settings(
        cache_backend=CacheBackend.MEMORY,
        blob_backend=BlobBackend.MEMORY,
        mongo_url=None,
        retry_max_attempts=3,
        retry_base_delay=0.0,
        health_refresh_interval=0,
        expose_error_details=False,
        cors_allowed_origins=["*"],
    )


@pytest.fixture
def blob_store() -> RecordingBlobStore:
    store = RecordingBlobStore()
    store.put("images", "albums/42/cover.png", PNG_BYTES)
    store.put("audio", "songs/42/track.mp3", AUDIO_BYTES)
    return store


@pytest.fixture
def distributed_cache() -> CountingDistributedCache:
    return CountingDistributedCache()


@pytest.fixture
def local_cache() -> InMemoryCache:
    return InMemoryCache(size_limit=10 * 1024 * 1024)


@pytest.fixture
def document_store() -> FakeDocumentStore:
    return FakeDocumentStore({
        "artists": [{"id": "a1", "name": "Nina Simone"}],
        "albums": [{"id": "al1", "title": "Pastel Blues", "artistId": "a1"}],
        "songs": [{"id": "s1", "title": "Sinnerman", "albumId": "al1"}],
        "playlists": [],
    })


@pytest.fixture
def image_cache(blob_store, distributed_cache, local_cache) -> ImageCache:
    return ImageCache(blob_store, distributed_cache, local_cache)


@pytest_asyncio.fixture
async def services(test_settings, blob_store, distributed_cache, local_cache, document_store):
    """Services container over fakes, with a connected guard."""
    guard = ConnectionGuard(lambda: document_store, ping_timeout=1.0)
    await guard.connect()

    image_cache = ImageCache(blob_store, distributed_cache, local_cache)
    yield Services(
        settings=test_settings,
        guard=guard,
        image_cache=image_cache,
        audio_streamer=AudioStreamer(blob_store, chunk_size=4096),
        distributed=distributed_cache,
        local=local_cache,
        blob_store=blob_store,
    )
    await image_cache.drain()


@pytest_asyncio.fixture
async def client(services):
    """httpx client bound to the app over ASGI."""
    app = create_app(services=services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
