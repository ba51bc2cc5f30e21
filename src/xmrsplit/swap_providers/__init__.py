"""Swap providers for converting coins into XMR."""

from xmrsplit.swap_providers.aggregator import RouteAggregator
from xmrsplit.swap_providers.base import (
    ProviderOrder,
    ProviderQuote,
    SwapProvider,
    SwapStatusInfo,
    normalize_status,
)
from xmrsplit.swap_providers.errors import (
    APIError,
    InsufficientFundsError,
    NetworkError,
    ProviderError,
    SwapError,
    SwapTimeoutError,
    SwapValidationError,
    get_error_message,
    is_retryable,
    parse_swap_error,
)
from xmrsplit.swap_providers.factory import create_aggregator, get_aggregator

__all__ = [
    "RouteAggregator",
    "ProviderOrder",
    "ProviderQuote",
    "SwapProvider",
    "SwapStatusInfo",
    "normalize_status",
    # Errors
    "APIError",
    "InsufficientFundsError",
    "NetworkError",
    "ProviderError",
    "SwapError",
    "SwapTimeoutError",
    "SwapValidationError",
    "get_error_message",
    "is_retryable",
    "parse_swap_error",
    # Factory
    "create_aggregator",
    "get_aggregator",
]
