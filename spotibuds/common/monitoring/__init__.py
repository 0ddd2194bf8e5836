"""Prometheus metrics for the media API."""

from .metrics import (
    media_cache_lookups_total,
    media_cache_population_failures_total,
    origin_fetches_total,
    store_retry_attempts_total,
    store_unavailable_total,
    render_latest,
)

__all__ = [
    'media_cache_lookups_total',
    'media_cache_population_failures_total',
    'origin_fetches_total',
    'store_retry_attempts_total',
    'store_unavailable_total',
    'render_latest',
]
