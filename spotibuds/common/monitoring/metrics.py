"""
Service metrics collection using Prometheus.

Tracks:
- Media cache lookups per tier (local, distributed) and result
- Origin (blob store) fetches per media kind
- Background cache population failures
- Document store retry attempts
"""

from prometheus_client import Counter, REGISTRY, generate_latest, CONTENT_TYPE_LATEST

# =============================================================================
# Media Cache Metrics
# =============================================================================

media_cache_lookups_total = Counter(
    'spotibuds_media_cache_lookups_total',
    'Media cache lookups',
    ['tier', 'result']  # tier: local, distributed; result: hit, miss, error
)

media_cache_population_failures_total = Counter(
    'spotibuds_media_cache_population_failures_total',
    'Background cache population failures',
    ['tier']
)

origin_fetches_total = Counter(
    'spotibuds_origin_fetches_total',
    'Blob store reads',
    ['kind', 'status']  # kind: image, audio, audio_range; status: success, failure
)

# =============================================================================
# Document Store Metrics
# =============================================================================

store_retry_attempts_total = Counter(
    'spotibuds_store_retry_attempts_total',
    'Document store retry attempts',
    ['outcome']  # retried, exhausted, succeeded_after_retry
)

store_unavailable_total = Counter(
    'spotibuds_store_unavailable_total',
    'Requests rejected because the document store is unavailable',
    ['reason']
)


def render_latest() -> tuple[bytes, str]:
    """Render the default registry in Prometheus exposition format."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
