"""
API - FastAPI routers.

- media.py: /api/media (image, audio, cache diagnostics)
- catalog.py: read-only /api/{artists,albums,songs,playlists}
- health.py: /, /health, /health/*, /diagnostics/mongodb, /metrics
- errors.py: exception handlers
"""

from .catalog import CATALOG_COLLECTIONS, create_catalog_router
from .dependencies import Services, get_services
from .errors import register_exception_handlers
from .health import router as health_router
from .media import router as media_router

__all__ = [
    "CATALOG_COLLECTIONS",
    "create_catalog_router",
    "Services",
    "get_services",
    "register_exception_handlers",
    "health_router",
    "media_router",
]
