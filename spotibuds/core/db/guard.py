"""
Connection guard for the document store.

Holds one cached health flag. The flag is set by a bounded ping at startup
and refreshed by a background probe loop; request paths only ever read the
flag. The live probe (test_connection) is reserved for diagnostics and
never changes the flag.
"""

import asyncio
from typing import Any, Callable, Optional

from spotibuds.common.logging import get_logger
from spotibuds.common.monitoring import store_unavailable_total
from spotibuds.core.errors import ServiceUnavailableError
from spotibuds.core.interfaces import DocumentStoreProtocol

logger = get_logger(__name__)

DEFAULT_PING_TIMEOUT_S = 10.0


class ConnectionGuard:
    """Tracks whether the document store connection is currently usable."""

    def __init__(
        self,
        store_factory: Callable[[], DocumentStoreProtocol],
        ping_timeout: float = DEFAULT_PING_TIMEOUT_S,
    ):
        """
        Args:
            store_factory: Builds the store handle; may raise
            ping_timeout: Upper bound in seconds for each liveness ping
        """
        self._store_factory = store_factory
        self.ping_timeout = ping_timeout
        self._store: Optional[DocumentStoreProtocol] = None
        self._healthy = False
        self._last_error: Optional[str] = None
        self._refresher: Optional[asyncio.Task] = None

    @property
    def store(self) -> Optional[DocumentStoreProtocol]:
        """Live store handle, or None when it could not be obtained."""
        return self._store

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    async def _ping(self) -> bool:
        if self._store is None:
            return False
        result = await asyncio.wait_for(
            self._store.ping(timeout=self.ping_timeout), self.ping_timeout
        )
        return bool(result)

    async def connect(self) -> bool:
        """
        Obtain the store handle and ping it once.

        Never raises: any failure leaves the guard unhealthy.
        """
        try:
            if self._store is None:
                self._store = self._store_factory()
            self._healthy = await self._ping()
            self._last_error = None if self._healthy else "ping returned not ok"
        except Exception as e:
            self._healthy = False
            self._last_error = type(e).__name__
            logger.warning("Document store connection failed", data={
                "error_type": type(e).__name__,
                "error": str(e),
            })

        logger.info("Document store guard initialized", data={"connected": self._healthy})
        return self._healthy

    def is_connected(self) -> bool:
        """Cached health flag; never probes."""
        return self._healthy

    async def test_connection(self) -> bool:
        """Fresh liveness probe; does not change the cached flag."""
        try:
            return await self._ping()
        except Exception as e:
            logger.warning("Document store live probe failed", data={
                "error_type": type(e).__name__,
            })
            return False

    async def refresh(self) -> bool:
        """Re-probe and update the cached flag."""
        if self._store is None:
            return await self.connect()

        healthy = await self.test_connection()
        if healthy != self._healthy:
            logger.info("Document store health changed", data={"connected": healthy})
        self._healthy = healthy
        self._last_error = None if healthy else "ping failed"
        return healthy

    def collection(self, name: str) -> Any:
        """Collection handle, or None while the guard is unhealthy."""
        if not self._healthy or self._store is None:
            return None
        return self._store.collection(name)

    def require_connected(self) -> DocumentStoreProtocol:
        """
        Fail fast before touching the store.

        Raises:
            ServiceUnavailableError: The cached health flag is false
        """
        if not self._healthy or self._store is None:
            store_unavailable_total.labels(
                reason=ServiceUnavailableError.CONNECTION_FAILED
            ).inc()
            raise ServiceUnavailableError(
                "Service unavailable - database connection failed",
                reason=ServiceUnavailableError.CONNECTION_FAILED,
            )
        return self._store

    def start_refresher(self, interval: float) -> None:
        """Refresh the health flag every ``interval`` seconds (0 disables)."""
        if interval <= 0 or self._refresher is not None:
            return
        self._refresher = asyncio.create_task(self._refresh_loop(interval))

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh()
            except Exception as e:
                logger.error("Document store health refresh failed", data={"error": str(e)})

    async def stop(self) -> None:
        """Stop the refresher and close the store handle."""
        if self._refresher is not None:
            self._refresher.cancel()
            try:
                await self._refresher
            except asyncio.CancelledError:
                pass
            self._refresher = None

        close = getattr(self._store, "close", None)
        if close is not None:
            await close()
