"""
Custom error classes with structured logging and error propagation.

All errors include correlation context and structured data for observability.
Each HTTP-facing error carries the status code the API layer responds with.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any

from spotibuds.common.logging import get_logger
from spotibuds.common.logging.correlation import get_correlation_id

logger = get_logger(__name__)


class SpotibudsError(Exception):
    """
    Base error class for all application errors.

    Automatically logs errors with correlation context when raised.
    """

    status_code: int = 500
    log_level: str = "error"

    def __init__(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        """
        Initialize error with structured context.

        Args:
            message: Human-readable error message (safe to show to clients)
            data: Structured data for observability
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.data = data or {}
        self.cause = cause
        self.correlation_id = get_correlation_id()

        self._log_error()

    def _log_error(self):
        """Log error with structured data."""
        log_data = {
            "error_type": self.__class__.__name__,
            "correlation_id": self.correlation_id,
            **self.data,
        }

        if self.cause:
            log_data["cause"] = str(self.cause)

        if self.log_level == "warning":
            logger.warning(self.message, data=log_data)
        else:
            logger.error(
                self.message,
                data=log_data,
                exc_info=self.cause if self.cause is not None else None,
            )

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        """Convert error to a response body.

        Internal details (structured data, cause text) are only included
        when ``include_details`` is set.
        """
        body: Dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
            "correlation_id": self.correlation_id,
        }
        if include_details:
            body["data"] = self.data
            body["cause"] = str(self.cause) if self.cause else None
        return body


# Client errors
class ClientInputError(SpotibudsError):
    """Malformed or missing request input (400)."""
    status_code = 400
    log_level = "warning"


class NotFoundError(SpotibudsError):
    """Object absent at origin, or entity absent in store (404)."""
    status_code = 404
    log_level = "warning"


class RequestRejectedError(SpotibudsError):
    """Request refused by routing (unknown path, wrong method)."""
    log_level = "warning"

    def __init__(self, message: str, status_code: int, **kwargs):
        self.status_code = status_code
        super().__init__(message, **kwargs)


class RangeNotSatisfiableError(SpotibudsError):
    """Byte range outside of the object (416)."""
    status_code = 416
    log_level = "warning"

    def __init__(self, message: str, content_length: int, **kwargs):
        self.content_length = content_length
        super().__init__(message, **kwargs)


# Document store errors
class ServiceUnavailableError(SpotibudsError):
    """
    Document store unreachable (503).

    ``reason`` is one of CONNECTION_FAILED, TIMEOUT, RETRIES_EXHAUSTED.
    """
    status_code = 503

    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    RETRIES_EXHAUSTED = "retries_exhausted"

    def __init__(self, message: str, reason: str = CONNECTION_FAILED, **kwargs):
        self.reason = reason
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message, **kwargs)

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        body = super().to_dict(include_details)
        body["reason"] = self.reason
        body["timestamp"] = self.timestamp
        return body


class TransientStoreError(SpotibudsError):
    """Retryable document store failure (connection reset, timeout)."""
    status_code = 503
    log_level = "warning"


class RetryExhausted(SpotibudsError):
    """All attempts of a retried operation failed."""
    status_code = 503

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Operation failed after {attempts} attempts",
            data={"attempts": attempts},
            cause=last_error,
        )


# Infrastructure errors
class ConfigurationError(SpotibudsError):
    """Error in configuration."""
    pass


class CacheError(SpotibudsError):
    """Error accessing a cache tier."""
    log_level = "warning"


class BlobStoreError(SpotibudsError):
    """Error communicating with blob storage."""
    pass


class UnclassifiedError(SpotibudsError):
    """Anything not covered by the taxonomy (500)."""
    pass
