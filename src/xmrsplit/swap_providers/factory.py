"""Factory for swap providers and the route aggregator."""

import logging
from typing import Optional

import httpx

from xmrsplit.config import Settings, get_settings
from xmrsplit.swap_providers.aggregator import RouteAggregator
from xmrsplit.swap_providers.btcswapxmr import BTCSwapXMRProvider
from xmrsplit.swap_providers.changenow import ChangeNowProvider
from xmrsplit.swap_providers.ghostswap import GhostSwapProvider

logger = logging.getLogger(__name__)

_aggregator: Optional[RouteAggregator] = None


def create_providers(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list:
    """Build the provider set from settings."""
    settings = settings or get_settings()

    if not settings.changenow_api_key:
        logger.warning("CHANGENOW_API_KEY not set - ChangeNOW requests may be rejected")
    logger.info(
        f"ChangeNOW mode: {'SANDBOX' if settings.use_changenow_sandbox else 'PRODUCTION'}"
    )

    return [
        BTCSwapXMRProvider(
            settings.btcswapxmr_api_url,
            dry_run=settings.dry_run,
            order_ttl=settings.swap_order_ttl,
            transport=transport,
        ),
        ChangeNowProvider(
            settings.changenow_base_url,
            api_key=settings.changenow_api_key,
            dry_run=settings.dry_run,
            order_ttl=settings.swap_order_ttl,
            transport=transport,
        ),
        GhostSwapProvider(settings.ghostswap_api_url, transport=transport),
    ]


def create_aggregator(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RouteAggregator:
    return RouteAggregator(create_providers(settings, transport))


def get_aggregator() -> RouteAggregator:
    """Process-wide aggregator built from current settings."""
    global _aggregator
    if _aggregator is None:
        _aggregator = create_aggregator()
    return _aggregator


def set_aggregator(aggregator: Optional[RouteAggregator]) -> None:
    global _aggregator
    _aggregator = aggregator
