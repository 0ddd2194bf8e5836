#!/usr/bin/env python3
"""
Spotibuds Media API - Main Entry Point

Builds the FastAPI application: media, catalog and health routers, CORS and
correlation middleware, and the lifespan that owns the shared connectors.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spotibuds import __version__
from spotibuds.api import (
    CATALOG_COLLECTIONS,
    Services,
    create_catalog_router,
    health_router,
    media_router,
    register_exception_handlers,
)
from spotibuds.common.logging import CorrelationMiddleware, get_logger, setup_logging
from spotibuds.core.config import (
    Settings,
    create_blob_store,
    create_distributed_cache,
    create_document_store,
    create_local_cache,
    get_settings,
)
from spotibuds.core.db import ConnectionGuard
from spotibuds.modules.media import AudioStreamer, ImageCache

logger = get_logger(__name__)


def build_services(settings: Settings) -> Services:
    """Wire the connectors and media services from settings."""
    distributed = create_distributed_cache(settings)
    local = create_local_cache(settings)
    blob_store = create_blob_store(settings)

    image_cache = ImageCache(
        blob_store=blob_store,
        distributed=distributed,
        local=local,
        key_prefix=settings.image_cache_prefix,
        distributed_ttl=settings.distributed_cache_ttl,
        local_promote_ttl=settings.local_cache_promote_ttl,
        local_fill_ttl=settings.local_cache_fill_ttl,
        single_flight=settings.image_single_flight,
    )
    audio_streamer = AudioStreamer(blob_store, chunk_size=settings.stream_chunk_size)
    guard = ConnectionGuard(
        lambda: create_document_store(settings),
        ping_timeout=settings.mongo_ping_timeout,
    )

    return Services(
        settings=settings,
        guard=guard,
        image_cache=image_cache,
        audio_streamer=audio_streamer,
        distributed=distributed,
        local=local,
        blob_store=blob_store,
    )


async def shutdown_services(services: Services) -> None:
    await services.image_cache.drain()
    await services.guard.stop()

    close = getattr(services.distributed, "close", None)
    if close is not None:
        await close()


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use (defaults to environment)
        services: Pre-built services; when given the lifespan does not
            build or tear anything down
    """
    settings = settings or (services.settings if services else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is not None:
            yield
            return

        built = build_services(settings)
        app.state.services = built
        await built.guard.connect()
        built.guard.start_refresher(settings.health_refresh_interval)
        logger.info("Spotibuds Media API started", data={
            "environment": settings.environment,
            "cache_backend": settings.cache_backend.value,
            "blob_backend": settings.blob_backend.value,
            "mongodb_connected": built.guard.is_connected(),
        })
        try:
            yield
        finally:
            await shutdown_services(built)
            logger.info("Spotibuds Media API stopped")

    app = FastAPI(
        title="Spotibuds Media API",
        version=__version__,
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Content-Length", "Accept-Ranges", "ETag"],
    )
    app.add_middleware(CorrelationMiddleware)

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(media_router)
    for collection in CATALOG_COLLECTIONS:
        app.include_router(create_catalog_router(collection))

    return app


def main():
    """Console entry point."""
    load_dotenv(Path.cwd() / ".env")
    settings = get_settings()
    setup_logging(level=settings.log_level, log_file=settings.log_file, component="api")

    logger.info("Starting Spotibuds Media API...", data={
        "host": settings.host,
        "port": settings.port,
    })
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
