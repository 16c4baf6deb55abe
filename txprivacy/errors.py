"""Exception hierarchy for txprivacy.

Rules never raise; only the explorer client, the rate limiter and the
configuration layer do.
"""

from __future__ import annotations

from enum import Enum


class TxPrivacyError(Exception):
    """Base class for every error raised by this package."""


class ApiErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    API_UNAVAILABLE = "API_UNAVAILABLE"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_INPUT = "INVALID_INPUT"


class ApiError(TxPrivacyError):
    """Explorer API failure.

    Attributes:
        code: Failure category
        status: HTTP status when the server answered
    """

    def __init__(self, code: ApiErrorCode, message: str | None = None, status: int | None = None):
        self.code = code
        self.status = status
        super().__init__(message or code.value)


class OperationCancelled(TxPrivacyError):
    """Raised inside a wait when the caller's cancel event is set."""


class ConfigError(TxPrivacyError, ValueError):
    """Invalid configuration value."""
