"""Bounded retry with linear backoff for document store operations.

The executor returns an explicit outcome instead of a nullable result, so
"every attempt failed" and "nothing was attempted" can never be mistaken
for a legitimate value.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from pymongo.errors import (
    AutoReconnect,
    ConnectionFailure,
    NetworkTimeout,
    ServerSelectionTimeoutError,
)

from spotibuds.common.logging import get_logger
from spotibuds.common.monitoring import store_retry_attempts_total
from spotibuds.core.errors import RetryExhausted, TransientStoreError

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_S = 1.0

RETRYABLE_TYPES: tuple[type[BaseException], ...] = (
    ConnectionRefusedError,
    ConnectionResetError,
    ConnectionAbortedError,
    TimeoutError,
    asyncio.TimeoutError,
    TransientStoreError,
    AutoReconnect,
    ConnectionFailure,
    NetworkTimeout,
    ServerSelectionTimeoutError,
)


def is_retryable(error: BaseException) -> bool:
    """Connection refused/reset, or any error mentioning a timeout."""
    if isinstance(error, RETRYABLE_TYPES):
        return True
    return "timeout" in str(error).lower()


def is_timeout(error: Optional[BaseException]) -> bool:
    if error is None:
        return False
    if isinstance(error, (TimeoutError, asyncio.TimeoutError, NetworkTimeout)):
        return True
    return "timeout" in str(error).lower()


@dataclass(frozen=True)
class RetrySuccess(Generic[T]):
    """Operation produced a value after ``attempts`` tries."""

    value: T
    attempts: int

    ok = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class RetryFailure:
    """No value was produced.

    ``exhausted`` is True when every attempt failed with a retryable error
    (``error`` is the last one); False when no attempt was made at all.
    """

    error: Optional[BaseException]
    attempts: int
    exhausted: bool

    ok = False

    def unwrap(self) -> Any:
        raise RetryExhausted(self.attempts, self.error)


RetryOutcome = Union[RetrySuccess[T], RetryFailure]


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY_S,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> RetryOutcome[T]:
    """
    Run ``operation`` up to ``max_retries`` times in total.

    Retryable failures wait ``attempts * base_delay`` seconds before the
    next attempt; non-retryable failures propagate immediately.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_retries: Total attempt bound
        base_delay: Delay unit in seconds (linear backoff, no jitter)
        sleep: Awaitable sleep function

    Returns:
        RetrySuccess with the value, or RetryFailure
    """
    attempts = 0
    last_error: Optional[BaseException] = None

    while attempts < max_retries:
        try:
            value = await operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            attempts += 1
            last_error = e

            if attempts >= max_retries:
                store_retry_attempts_total.labels(outcome="exhausted").inc()
                logger.error("Store operation failed, retries exhausted", data={
                    "attempts": attempts,
                    "error_type": type(e).__name__,
                })
                return RetryFailure(error=e, attempts=attempts, exhausted=True)

            delay = attempts * base_delay
            store_retry_attempts_total.labels(outcome="retried").inc()
            logger.warning(
                "Store operation failed (attempt %d/%d), retrying in %.1fs",
                attempts, max_retries, delay,
                data={"error_type": type(e).__name__},
            )
            await sleep(delay)
            continue

        if attempts:
            store_retry_attempts_total.labels(outcome="succeeded_after_retry").inc()
        return RetrySuccess(value=value, attempts=attempts + 1)

    return RetryFailure(error=last_error, attempts=attempts, exhausted=False)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY_S,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Raising form of execute_with_retry.

    Raises:
        RetryExhausted: If no attempt produced a value.
    """
    outcome = await execute_with_retry(operation, max_retries, base_delay, sleep)
    return outcome.unwrap()
