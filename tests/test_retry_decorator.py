"""
Tests for the tenacity-based retry helpers.
"""

from unittest.mock import MagicMock

import pytest

from txprivacy.utils.retry_decorator import (
    RetryableStatusError,
    parse_retry_after,
    retry_http,
    wait_retry_after,
)


class TestParseRetryAfter:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("5", 5.0),
            (" 12 ", 12.0),
            ("0", 0.0),
            ("-3", 0.0),
            (None, None),
            ("", None),
            ("Wed, 21 Oct 2015 07:28:00 GMT", None),
        ],
    )
    def test_values(self, value, expected):
        assert parse_retry_after(value) == expected


class TestWaitRetryAfter:
    def _state(self, exc):
        state = MagicMock()
        state.outcome.exception.return_value = exc
        return state

    def test_uses_retry_after(self):
        wait = wait_retry_after(fallback=lambda state: 99.0)

        assert wait(self._state(RetryableStatusError(429, retry_after=3.0))) == 3.0

    def test_caps_retry_after(self):
        wait = wait_retry_after(fallback=lambda state: 99.0)

        assert wait(self._state(RetryableStatusError(429, retry_after=60.0))) == 10.0

    def test_falls_back_without_header(self):
        wait = wait_retry_after(fallback=lambda state: 2.0)

        assert wait(self._state(RetryableStatusError(503))) == 2.0
        assert wait(self._state(ValueError("boom"))) == 2.0


class TestRetryHttp:
    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        calls = []

        @retry_http(max_attempts=4)
        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise RetryableStatusError(503, retry_after=0)
            return "ok"

        assert await flaky() == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_reraises_after_last_attempt(self):
        calls = []

        @retry_http(max_attempts=2)
        async def always_busy():
            calls.append(1)
            raise RetryableStatusError(429, retry_after=0)

        with pytest.raises(RetryableStatusError):
            await always_busy()
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self):
        calls = []

        @retry_http(max_attempts=4)
        async def broken():
            calls.append(1)
            raise ValueError("bad payload")

        with pytest.raises(ValueError):
            await broken()
        assert len(calls) == 1
