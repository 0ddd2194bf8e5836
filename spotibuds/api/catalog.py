"""
Read-only catalog endpoints.

One router per collection (artists, albums, songs, playlists). Every read
goes through the connection guard first, then the retry executor.
"""

from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends

from spotibuds.common.logging import get_logger
from spotibuds.common.monitoring import store_unavailable_total
from spotibuds.core.db import RetryFailure, execute_with_retry, is_timeout
from spotibuds.core.errors import (
    NotFoundError,
    ServiceUnavailableError,
    SpotibudsError,
    UnclassifiedError,
)
from spotibuds.core.interfaces import DocumentStoreProtocol
from .dependencies import Services, get_services

logger = get_logger(__name__)

CATALOG_COLLECTIONS = ("artists", "albums", "songs", "playlists")


async def read_with_retry(
    services: Services,
    collection: str,
    operation: Callable[[DocumentStoreProtocol], Awaitable[Any]],
) -> Any:
    """
    Run a store read behind the guard and the retry executor.

    Raises:
        ServiceUnavailableError: Guard unhealthy, or every attempt failed
        UnclassifiedError: Non-retryable store failure
    """
    store = services.guard.require_connected()
    settings = services.settings

    try:
        outcome = await execute_with_retry(
            lambda: operation(store),
            max_retries=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
        )
    except SpotibudsError:
        raise
    except Exception as e:
        raise UnclassifiedError(
            "Internal server error",
            data={"collection": collection},
            cause=e,
        ) from e

    if isinstance(outcome, RetryFailure):
        if is_timeout(outcome.error):
            reason = ServiceUnavailableError.TIMEOUT
            message = "Service unavailable - database operation timed out"
        else:
            reason = ServiceUnavailableError.RETRIES_EXHAUSTED
            message = "Service unavailable - database retries exhausted"
        store_unavailable_total.labels(reason=reason).inc()
        raise ServiceUnavailableError(
            message,
            reason=reason,
            data={"collection": collection, "attempts": outcome.attempts},
            cause=outcome.error,
        )

    return outcome.value


def create_catalog_router(collection: str) -> APIRouter:
    """GET list and GET by id for one collection."""
    router = APIRouter(prefix=f"/api/{collection}", tags=[collection])
    entity = collection[:-1].capitalize()

    @router.get("")
    async def list_documents(services: Services = Depends(get_services)):
        return await read_with_retry(
            services, collection, lambda store: store.find(collection)
        )

    @router.get("/{doc_id}")
    async def get_document(doc_id: str, services: Services = Depends(get_services)):
        document = await read_with_retry(
            services, collection, lambda store: store.find_one(collection, doc_id)
        )
        if document is None:
            raise NotFoundError(
                f"{entity} not found",
                data={"collection": collection, "id": doc_id},
            )
        return document

    return router
