"""Correlation ID middleware for request tracing."""

import uuid
import logging
import contextvars

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send


REQUEST_ID_HEADER = "x-request-id"
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Context variable for correlation ID (thread-safe, async-safe)
correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Context variable for the request path being served
request_path_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_path", default=None
)


def generate_correlation_id() -> str:
    """Generate unique correlation ID."""
    return str(uuid.uuid4())[:8]


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str | None):
    """Set correlation ID in context."""
    correlation_id_var.set(cid)


def get_request_path() -> str | None:
    """Get current request path from context."""
    return request_path_var.get()


def set_request_path(path: str | None):
    """Set request path in context."""
    request_path_var.set(path)


class CorrelationMiddleware:
    """
    ASGI middleware that sets correlation ID for each HTTP request.

    Reuses the caller's X-Request-ID when present, otherwise generates one.
    The ID is echoed back in the X-Correlation-ID response header.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        cid = None
        for name, value in scope.get("headers", []):
            if name.decode("latin-1").lower() == REQUEST_ID_HEADER:
                cid = value.decode("latin-1").strip()[:64] or None
                break
        cid = cid or generate_correlation_id()

        cid_token = correlation_id_var.set(cid)
        path_token = request_path_var.set(scope.get("path"))

        async def send_with_correlation(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[CORRELATION_ID_HEADER] = cid
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation)
        finally:
            # Clear context after request
            correlation_id_var.reset(cid_token)
            request_path_var.reset(path_token)


class CorrelationLogFilter(logging.Filter):
    """
    Logging filter that adds correlation_id and request_path to log records.

    Use with standard logging to auto-inject context vars.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.request_path = get_request_path()
        return True
