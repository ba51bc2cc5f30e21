"""Fiat prices for display."""

from typing import Optional

from xmrsplit.config import get_settings
from xmrsplit.pricing.coingecko import FALLBACK_PRICES, PriceService

_service: Optional[PriceService] = None


def get_price_service() -> PriceService:
    global _service
    if _service is None:
        settings = get_settings()
        _service = PriceService(settings.coingecko_api_url, cache_ttl=settings.price_cache_ttl)
    return _service


def set_price_service(service: Optional[PriceService]) -> None:
    global _service
    _service = service


__all__ = ["FALLBACK_PRICES", "PriceService", "get_price_service", "set_price_service"]
