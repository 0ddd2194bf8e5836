"""
Tests for the document store retry executor.

Covers:
- Exhaustion after exactly max_retries attempts with linear delays
- Short-circuit on first success
- Non-retryable errors propagate immediately
- Explicit failure outcome when nothing was attempted
"""

import asyncio

import pytest
from pymongo.errors import AutoReconnect, OperationFailure

from spotibuds.core.db import (
    RetryFailure,
    RetrySuccess,
    execute_with_retry,
    is_retryable,
    is_timeout,
    with_retry,
)
from spotibuds.core.errors import RetryExhausted, TransientStoreError


class RecordingSleep:
    """Awaitable sleep that records requested delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FlakyOperation:
    """Raises the queued errors in order, then returns ``value``."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


@pytest.mark.unit
class TestRetryClassification:
    """Which errors the executor retries."""

    @pytest.mark.parametrize("error", [
        ConnectionRefusedError("refused"),
        ConnectionResetError("reset"),
        TimeoutError(),
        asyncio.TimeoutError(),
        AutoReconnect("primary stepped down"),
        TransientStoreError("socket closed"),
        RuntimeError("operation exceeded time limit: Timeout after 30s"),
    ])
    def test_retryable_errors(self, error):
        assert is_retryable(error)

    @pytest.mark.parametrize("error", [
        ValueError("bad id"),
        KeyError("x"),
        OperationFailure("not authorized"),
    ])
    def test_non_retryable_errors(self, error):
        assert not is_retryable(error)

    def test_is_timeout(self):
        assert is_timeout(TimeoutError())
        assert is_timeout(RuntimeError("Server selection timeout"))
        assert not is_timeout(ConnectionResetError("reset"))
        assert not is_timeout(None)


@pytest.mark.unit
class TestExecuteWithRetry:
    """Attempt counting and backoff."""

    @pytest.mark.asyncio
    async def test_exhaustion_attempts_exactly_max_retries(self):
        """Always-retryable failure.

        ЧТО ПРОВЕРЯЕМ:
            3 attempts, delays 1s then 2s, explicit exhausted failure
        """
        sleep = RecordingSleep()
        operation = FlakyOperation([ConnectionResetError("reset")] * 10)

        outcome = await execute_with_retry(operation, max_retries=3, base_delay=1.0, sleep=sleep)

        assert isinstance(outcome, RetryFailure)
        assert outcome.exhausted is True
        assert outcome.attempts == 3
        assert isinstance(outcome.error, ConnectionResetError)
        assert operation.calls == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_short_circuit_after_one_failure(self):
        """One retryable failure, then success.

        ЧТО ПРОВЕРЯЕМ:
            Value returned after 2 attempts, only the first delay is taken
        """
        sleep = RecordingSleep()
        operation = FlakyOperation([TimeoutError()], value={"id": "a1"})

        outcome = await execute_with_retry(operation, max_retries=3, base_delay=1.0, sleep=sleep)

        assert isinstance(outcome, RetrySuccess)
        assert outcome.value == {"id": "a1"}
        assert outcome.attempts == 2
        assert operation.calls == 2
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_first_attempt_success_has_no_delay(self):
        sleep = RecordingSleep()
        outcome = await execute_with_retry(FlakyOperation([]), sleep=sleep)

        assert outcome.ok
        assert outcome.attempts == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_none_is_a_legitimate_value(self):
        """A None result is a success, not a failure sentinel."""
        outcome = await execute_with_retry(FlakyOperation([], value=None), sleep=RecordingSleep())

        assert isinstance(outcome, RetrySuccess)
        assert outcome.value is None

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_immediately(self):
        sleep = RecordingSleep()
        operation = FlakyOperation([ValueError("bad filter")])

        with pytest.raises(ValueError):
            await execute_with_retry(operation, max_retries=3, sleep=sleep)

        assert operation.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_zero_retries_attempts_nothing(self):
        """max_retries <= 0.

        ЧТО ПРОВЕРЯЕМ:
            No attempt, failure that is not marked exhausted
        """
        operation = FlakyOperation([])

        outcome = await execute_with_retry(operation, max_retries=0, sleep=RecordingSleep())

        assert isinstance(outcome, RetryFailure)
        assert outcome.exhausted is False
        assert outcome.attempts == 0
        assert outcome.error is None
        assert operation.calls == 0

    @pytest.mark.asyncio
    async def test_does_not_hang_with_real_sleep(self):
        operation = FlakyOperation([ConnectionRefusedError()] * 5)

        outcome = await asyncio.wait_for(
            execute_with_retry(operation, max_retries=3, base_delay=0.001),
            timeout=2.0,
        )

        assert not outcome.ok
        assert operation.calls == 3


@pytest.mark.unit
class TestWithRetry:
    """Raising wrapper."""

    @pytest.mark.asyncio
    async def test_returns_value(self):
        value = await with_retry(FlakyOperation([AutoReconnect("x")], value=7), sleep=RecordingSleep())
        assert value == 7

    @pytest.mark.asyncio
    async def test_raises_retry_exhausted_with_last_error(self):
        last = ConnectionResetError("reset #3")
        operation = FlakyOperation([ConnectionResetError("1"), ConnectionResetError("2"), last])

        with pytest.raises(RetryExhausted) as exc_info:
            await with_retry(operation, max_retries=3, sleep=RecordingSleep())

        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is last
        assert exc_info.value.status_code == 503
