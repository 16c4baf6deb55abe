"""Minimum-interval rate limiter for sequential API calls."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

from txprivacy.errors import OperationCancelled

T = TypeVar("T")


class RateLimiter:
    """Enforces a minimum gap between consecutive calls.

    Waits can be interrupted through an ``asyncio.Event``; a set event raises
    ``OperationCancelled`` instead of running the call.

    Example:
        >>> throttle = RateLimiter(200)
        >>> txs = await throttle(api.get_address_txs, address)
    """

    def __init__(self, interval_ms: int = 200, cancel_event: asyncio.Event | None = None):
        self.interval = interval_ms / 1000
        self.cancel_event = cancel_event
        self._last_call: float | None = None

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCancelled("Cancelled while waiting for rate limiter")

    async def wait(self) -> None:
        """Sleep until the interval since the previous call has elapsed."""
        self._check_cancelled()
        if self._last_call is not None:
            remaining = self.interval - (time.monotonic() - self._last_call)
            if remaining > 0:
                if self.cancel_event is None:
                    await asyncio.sleep(remaining)
                else:
                    try:
                        await asyncio.wait_for(self.cancel_event.wait(), timeout=remaining)
                    except asyncio.TimeoutError:
                        pass  # Interval elapsed
                    self._check_cancelled()
        self._last_call = time.monotonic()

    async def __call__(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        await self.wait()
        return await fn(*args, **kwargs)
