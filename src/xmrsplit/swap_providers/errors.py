"""Structured errors for swap and payment operations."""

from decimal import Decimal
from typing import Any, Optional

import httpx


class SwapError(Exception):
    """Base class for swap-related errors."""

    code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        retryable: bool = False,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.retryable = retryable
        self.details = details

    def to_dict(self) -> dict:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "retryable": self.retryable,
            "details": self.details if _is_plain(self.details) else str(self.details),
        }


class NetworkError(SwapError):
    """Connection-level failure talking to a provider."""

    code = "NETWORK_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, retryable=True, details=details)


class APIError(SwapError):
    """Provider answered with an HTTP error. 5xx responses are retryable."""

    code = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int,
        details: Any = None,
        retryable: Optional[bool] = None,
    ):
        if retryable is None:
            retryable = status_code >= 500
        super().__init__(message, retryable=retryable, details=details)
        self.status_code = status_code


class ProviderError(SwapError):
    """Provider-specific failure, e.g. the service is offline."""

    code = "PROVIDER_ERROR"

    def __init__(self, message: str, provider: str, retryable: bool = False, details: Any = None):
        super().__init__(message, retryable=retryable, details=details)
        self.provider = provider


class SwapTimeoutError(SwapError):
    code = "TIMEOUT"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, retryable=False, details=details)


class SwapValidationError(SwapError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, retryable=False, details=details)


class InsufficientFundsError(SwapError):
    """Not enough balance to cover an amount."""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, required: Decimal, available: Decimal, message: Optional[str] = None):
        message = message or f"Insufficient funds: need {required}, have {available}"
        super().__init__(
            message,
            retryable=False,
            details={"required": str(required), "available": str(available)},
        )
        self.required = required
        self.available = available


def _is_plain(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool, dict, list))


def parse_swap_error(error: BaseException) -> SwapError:
    """Classify an arbitrary exception as a SwapError."""
    if isinstance(error, SwapError):
        return error

    if isinstance(error, httpx.TimeoutException):
        return SwapTimeoutError(f"Request timeout: {error}", details=str(error))

    if isinstance(error, httpx.TransportError):
        return NetworkError("Network request failed. Check your connection.", details=str(error))

    message = str(error) or type(error).__name__
    lowered = message.lower()

    if "timeout" in lowered:
        return SwapTimeoutError(message, details=type(error).__name__)

    if any(word in lowered for word in ("network", "connection", "unreachable")):
        return NetworkError(message, details=type(error).__name__)

    return SwapError(message, details=type(error).__name__)


def get_error_message(error: BaseException) -> str:
    """Human-readable message for an error."""
    if isinstance(error, SwapError):
        return error.message
    return str(error) or "An unexpected error occurred"


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, SwapError):
        return error.retryable
    return isinstance(error, httpx.TransportError)
