"""
Settings - Application configuration using dataclasses.

Environment variables:
- CACHE_BACKEND: redis, memory
- REDIS_URL: Redis connection URL
- BLOB_BACKEND: s3, memory
- S3_ENDPOINT_URL / S3_REGION: S3-compatible blob storage
- MONGO_URL / MONGO_DATABASE: Document store
- RETRY_MAX_ATTEMPTS / RETRY_BASE_DELAY: Document store retry policy
- LOG_LEVEL / LOG_JSON: Logging
- CORS_ALLOWED_ORIGINS: Comma separated origins, "*" for any
"""

import os
from enum import Enum
from typing import List, Optional, Type, TypeVar
from dataclasses import dataclass, field

from spotibuds.core.errors import ConfigurationError

BackendT = TypeVar("BackendT", bound=Enum)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


def _env_choice(enum_cls: Type[BackendT], name: str, default: str) -> BackendT:
    value = os.getenv(name, default).strip().lower()
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"Unknown {name}: {value!r} (expected one of {allowed})",
            data={"variable": name, "value": value},
        ) from e


class CacheBackend(str, Enum):
    """Distributed cache backend options."""
    REDIS = "redis"
    MEMORY = "memory"


class BlobBackend(str, Enum):
    """Blob storage backend options."""
    S3 = "s3"
    MEMORY = "memory"


@dataclass
class Settings:
    """Application settings from environment."""

    # Server
    host: str = field(
        default_factory=lambda: os.getenv("HOST", "0.0.0.0")
    )
    port: int = field(
        default_factory=lambda: int(os.getenv("PORT", "8080"))
    )
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "production")
    )
    cors_allowed_origins: List[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")
            if origin.strip()
        ]
    )
    expose_error_details: bool = field(
        default_factory=lambda: _env_bool("EXPOSE_ERROR_DETAILS")
    )

    # Distributed cache
    cache_backend: CacheBackend = field(
        default_factory=lambda: _env_choice(CacheBackend, "CACHE_BACKEND", "redis")
    )
    redis_url: str = field(
        default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0")
    )
    image_cache_prefix: str = field(
        default_factory=lambda: os.getenv("IMAGE_CACHE_PREFIX", "image_")
    )
    distributed_cache_ttl: int = field(
        default_factory=lambda: int(os.getenv("DISTRIBUTED_CACHE_TTL", str(6 * 3600)))
    )

    # Process-local cache
    local_cache_size_limit_mb: int = field(
        default_factory=lambda: int(os.getenv("LOCAL_CACHE_SIZE_LIMIT_MB", "50"))
    )
    local_cache_promote_ttl: int = field(
        default_factory=lambda: int(os.getenv("LOCAL_CACHE_PROMOTE_TTL", "1800"))
    )
    local_cache_fill_ttl: int = field(
        default_factory=lambda: int(os.getenv("LOCAL_CACHE_FILL_TTL", "3600"))
    )
    image_single_flight: bool = field(
        default_factory=lambda: _env_bool("IMAGE_SINGLE_FLIGHT")
    )

    # Blob storage
    blob_backend: BlobBackend = field(
        default_factory=lambda: _env_choice(BlobBackend, "BLOB_BACKEND", "s3")
    )
    s3_endpoint_url: Optional[str] = field(
        default_factory=lambda: os.getenv("S3_ENDPOINT_URL") or None
    )
    s3_region: Optional[str] = field(
        default_factory=lambda: os.getenv("S3_REGION") or None
    )
    stream_chunk_size: int = field(
        default_factory=lambda: int(os.getenv("STREAM_CHUNK_SIZE", str(64 * 1024)))
    )

    # Document store
    mongo_url: Optional[str] = field(
        default_factory=lambda: os.getenv("MONGO_URL") or None
    )
    mongo_database: str = field(
        default_factory=lambda: os.getenv("MONGO_DATABASE", "spotibuds")
    )
    mongo_ping_timeout: float = field(
        default_factory=lambda: float(os.getenv("MONGO_PING_TIMEOUT", "10"))
    )
    mongo_server_selection_timeout: float = field(
        default_factory=lambda: float(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT", "30"))
    )
    health_refresh_interval: float = field(
        default_factory=lambda: float(os.getenv("HEALTH_REFRESH_INTERVAL", "30"))
    )

    # Retry policy
    retry_max_attempts: int = field(
        default_factory=lambda: int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    )
    retry_base_delay: float = field(
        default_factory=lambda: float(os.getenv("RETRY_BASE_DELAY", "1.0"))
    )

    # Logging
    log_level: Optional[str] = field(
        default_factory=lambda: os.getenv("LOG_LEVEL") or None
    )
    log_file: Optional[str] = field(
        default_factory=lambda: os.getenv("LOG_FILE") or None
    )

    @property
    def local_cache_size_limit_bytes(self) -> int:
        return self.local_cache_size_limit_mb * 1024 * 1024


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (tests, reloads)."""
    global _settings
    _settings = None
