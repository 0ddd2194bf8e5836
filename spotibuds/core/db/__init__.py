"""
DB - Document store access policy.

- guard.py: ConnectionGuard (cached health flag, live probe, fail-fast)
- retry.py: execute_with_retry / with_retry (bounded linear backoff)
"""

from .guard import ConnectionGuard
from .retry import (
    RetryFailure,
    RetryOutcome,
    RetrySuccess,
    execute_with_retry,
    is_retryable,
    is_timeout,
    with_retry,
)

__all__ = [
    "ConnectionGuard",
    "RetryFailure",
    "RetryOutcome",
    "RetrySuccess",
    "execute_with_retry",
    "is_retryable",
    "is_timeout",
    "with_retry",
]
