"""Fiat price endpoint."""

from fastapi import APIRouter, Depends

from xmrsplit.pricing import PriceService, get_price_service

router = APIRouter()


@router.get("/prices")
async def prices(service: PriceService = Depends(get_price_service)):
    """Prices per coin in usd, eur and btc, with the cache age in seconds."""
    data = await service.get_prices()
    return {
        "prices": {
            symbol: {currency: str(value) for currency, value in values.items()}
            for symbol, values in data.items()
        },
        "cacheAge": service.get_cache_age(),
        "fresh": service.is_cache_fresh(),
    }
