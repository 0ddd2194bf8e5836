"""
Health check and metrics endpoints for observability.

- /                    - Service banner
- /health              - Basic liveness check
- /health/mongodb      - Document store health (cached flag + live ping)
- /diagnostics/mongodb - Connection guard state in detail
- /health/ready        - Readiness check (document store, cache, memory)
- /metrics             - Prometheus metrics
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import psutil
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from spotibuds import __version__
from spotibuds.common.logging import get_logger
from spotibuds.common.monitoring import render_latest
from .catalog import CATALOG_COLLECTIONS
from .dependencies import Services, get_services

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_start_time = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    uptime_seconds: float
    version: str = __version__
    details: Optional[Dict[str, Any]] = None


class ReadinessStatus(BaseModel):
    """Readiness check response model."""
    ready: bool
    timestamp: str
    checks: Dict[str, Dict[str, Any]]


def get_memory_health() -> Dict[str, Any]:
    """Check memory usage."""
    try:
        mem = psutil.virtual_memory()
        status = "healthy" if mem.percent < 85 else "degraded" if mem.percent < 95 else "critical"

        return {
            "status": status,
            "total_mb": round(mem.total / (1024**2), 2),
            "available_mb": round(mem.available / (1024**2), 2),
            "used_percent": round(mem.percent, 1),
        }
    except Exception as e:
        logger.error(f"Memory health check failed: {e}")
        return {
            "status": "unknown",
            "error": str(e),
        }


async def get_cache_health(services: Services) -> Dict[str, Any]:
    """Check the distributed cache tier."""
    try:
        reachable = await services.distributed.ping()
    except Exception as e:
        logger.error(f"Cache health check failed: {e}")
        return {"status": "unhealthy", "error": type(e).__name__}

    return {
        "status": "healthy" if reachable else "unhealthy",
        "backend": services.settings.cache_backend.value,
        "local_entries": len(services.local.keys()),
    }


def get_store_health(services: Services) -> Dict[str, Any]:
    """Document store health from the guard's cached flag."""
    connected = services.guard.is_connected()
    return {
        "status": "healthy" if connected else "unhealthy",
        "connected": connected,
        "last_error": services.guard.last_error,
    }


@router.get("/")
async def root():
    return {
        "service": "Spotibuds Media API",
        "version": __version__,
        "status": "running",
        "timestamp": _now(),
    }


@router.get("/health", response_model=HealthStatus)
async def health_check(services: Services = Depends(get_services)):
    """
    Basic health check endpoint (liveness probe).

    Returns 200 if service is running.
    """
    uptime = time.time() - _start_time

    return HealthStatus(
        status="healthy",
        timestamp=_now(),
        uptime_seconds=round(uptime, 2),
        details={
            "service": "spotibuds-media-api",
            "environment": services.settings.environment,
        }
    )


@router.get("/health/mongodb")
async def mongodb_health(services: Services = Depends(get_services)):
    """
    Document store health.

    503 when the cached flag is down or a fresh ping fails.
    """
    guard = services.guard
    if not guard.is_connected():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "mongodb",
                "connected": False,
                "error": guard.last_error or "not connected",
                "timestamp": _now(),
            },
        )

    if not await guard.test_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "mongodb",
                "connected": True,
                "error": "ping failed",
                "timestamp": _now(),
            },
        )

    return {
        "status": "healthy",
        "database": "mongodb",
        "connected": True,
        "timestamp": _now(),
    }


@router.get("/diagnostics/mongodb")
async def mongodb_diagnostics(services: Services = Depends(get_services)):
    """Guard state, a live probe and per-collection availability."""
    guard = services.guard
    live = await guard.test_connection()

    return {
        "client_available": guard.store is not None,
        "is_connected": guard.is_connected(),
        "live_test": live,
        "collections": {
            name: guard.collection(name) is not None
            for name in CATALOG_COLLECTIONS
        },
        "last_error": guard.last_error,
        "timestamp": _now(),
    }


@router.get("/health/ready", response_model=ReadinessStatus)
async def readiness_check(response: Response, services: Services = Depends(get_services)):
    """
    Readiness check endpoint (readiness probe).

    Checks the document store, the distributed cache and memory.
    Returns 200 if ready, 503 if not ready.
    """
    checks = {
        "mongodb": get_store_health(services),
        "cache": await get_cache_health(services),
        "memory": get_memory_health(),
    }

    all_healthy = all(
        check.get("status") in ("healthy", "degraded")
        for check in checks.values()
    )

    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessStatus(
        ready=all_healthy,
        timestamp=_now(),
        checks=checks,
    )


@router.get("/metrics", response_class=Response)
async def metrics():
    """Prometheus exposition of the service counters."""
    content, content_type = render_latest()
    return Response(content=content, media_type=content_type)
