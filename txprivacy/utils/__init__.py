"""
Explorer I/O utilities.

Exports:
    EsploraAsyncClient: aiohttp client with retries and fallback
    RateLimiter: Minimum-interval throttle with cancellation
    retry_http: tenacity retry decorator for HTTP requests
    enrich_prevouts / needs_enrichment: Rebuild missing input prevouts
"""

from txprivacy.utils.esplora_client import EsploraAsyncClient
from txprivacy.utils.prevout_enrichment import (
    EnrichResult,
    count_missing_prevouts,
    enrich_prevouts,
    needs_enrichment,
)
from txprivacy.utils.rate_limiter import RateLimiter
from txprivacy.utils.retry_decorator import RetryableStatusError, retry_http

__all__ = [
    "EsploraAsyncClient",
    "EnrichResult",
    "count_missing_prevouts",
    "enrich_prevouts",
    "needs_enrichment",
    "RateLimiter",
    "RetryableStatusError",
    "retry_http",
]
