"""
Media endpoints.

- GET /api/media/image?url=  - Two-tier cached image bytes (ETag, 304)
- GET /api/media/audio?url=  - Audio bytes, Range aware (200/206/416)
- GET /api/media/cache/status - Image keys in the distributed tier
- GET /api/media/cache/clear  - Drop image keys from both tiers
- GET /api/media/test         - Router liveness
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from spotibuds.common.logging import get_logger
from spotibuds.core.errors import CacheError
from .dependencies import Services, get_services

logger = get_logger(__name__)
router = APIRouter(prefix="/api/media", tags=["media"])


def _etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = [tag.strip() for tag in if_none_match.split(",")]
    return "*" in candidates or etag in candidates or f"W/{etag}" in candidates


@router.get("/image")
async def get_image(
    request: Request,
    url: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    payload = await services.image_cache.get_image(url)

    if _etag_matches(request.headers.get("if-none-match"), payload.etag):
        return Response(status_code=304, headers=payload.headers)

    response = Response(
        content=payload.content,
        media_type=payload.content_type,
        headers=payload.headers,
    )
    response.headers["X-Cache-Source"] = payload.source
    return response


@router.get("/audio")
async def get_audio(
    url: Optional[str] = Query(None),
    range_header: Optional[str] = Header(None, alias="Range"),
    services: Services = Depends(get_services),
):
    audio = await services.audio_streamer.get_audio(url, range_header)
    return StreamingResponse(
        audio.body,
        status_code=audio.status_code,
        headers=audio.headers,
        media_type=audio.content_type,
    )


@router.get("/cache/status")
async def cache_status(services: Services = Depends(get_services)):
    """Count and sample of cached image keys."""
    try:
        status = await services.image_cache.cache_status()
    except CacheError as e:
        return JSONResponse(
            status_code=503,
            content=e.to_dict(include_details=services.settings.expose_error_details),
        )
    return {"status": "ok", **status}


@router.get("/cache/clear")
async def cache_clear(services: Services = Depends(get_services)):
    try:
        cleared = await services.image_cache.clear()
    except CacheError as e:
        return JSONResponse(
            status_code=503,
            content=e.to_dict(include_details=services.settings.expose_error_details),
        )
    return {"status": "cleared", **cleared}


@router.get("/test")
async def media_test():
    return {
        "message": "Media controller is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
