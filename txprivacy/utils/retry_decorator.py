"""
Retry helpers built on tenacity.

Explorer requests are retried on transport failures, HTTP 429 and HTTP 5xx
with exponential backoff (1s, 2s, 4s). A 429 carrying ``Retry-After`` waits
for the advertised time instead, capped at 10 seconds.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp
from tenacity import (
    after_log,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

MAX_RETRY_AFTER_SECONDS = 10.0


class RetryableStatusError(Exception):
    """HTTP status worth retrying (429 or 5xx).

    Attributes:
        status: HTTP status code
        retry_after: Seconds advertised by the server, if any
    """

    def __init__(self, status: int, retry_after: float | None = None):
        self.status = status
        self.retry_after = retry_after
        super().__init__(f"HTTP {status}")


def parse_retry_after(value: str | None) -> float | None:
    """Parse a delta-seconds ``Retry-After`` header; HTTP dates are ignored."""
    if not value:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return float(max(seconds, 0))


class wait_retry_after:
    """Wait strategy honouring ``Retry-After``, else delegating to ``fallback``."""

    def __init__(self, fallback, cap: float = MAX_RETRY_AFTER_SECONDS):
        self.fallback = fallback
        self.cap = cap

    def __call__(self, retry_state) -> float:
        outcome = retry_state.outcome
        exc = outcome.exception() if outcome is not None else None
        if isinstance(exc, RetryableStatusError) and exc.retry_after is not None:
            return min(exc.retry_after, self.cap)
        return self.fallback(retry_state)


RETRYABLE_EXCEPTIONS = (RetryableStatusError, aiohttp.ClientError, asyncio.TimeoutError)


def retry_http(
    max_attempts: int = 4,
    min_wait: float = 1.0,
    max_wait: float = 4.0,
):
    """
    Retry decorator for explorer HTTP requests.

    Retries on:
    - RetryableStatusError (HTTP 429 / 5xx)
    - aiohttp.ClientError (connection and payload errors)
    - asyncio.TimeoutError (per-request timeout)

    Args:
        max_attempts: Total attempts including the first (default: 4)
        min_wait: First backoff delay in seconds (default: 1.0)
        max_wait: Largest backoff delay in seconds (default: 4.0)

    Returns:
        Decorated function with retry logic; the last error is re-raised

    Example:
        @retry_http(max_attempts=4)
        async def fetch_tx(session, url):
            async with session.get(url) as response:
                return await response.json()
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_retry_after(wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait)),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=True,
    )
