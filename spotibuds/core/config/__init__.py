"""
Config - Application configuration.

- settings.py: Settings dataclass from environment
- clients.py: Connector factories
"""

from .settings import Settings, CacheBackend, BlobBackend, get_settings, reset_settings
from .clients import (
    create_distributed_cache,
    create_local_cache,
    create_blob_store,
    create_document_store,
)

__all__ = [
    # Settings
    "Settings",
    "CacheBackend",
    "BlobBackend",
    "get_settings",
    "reset_settings",
    # Factories
    "create_distributed_cache",
    "create_local_cache",
    "create_blob_store",
    "create_document_store",
]
