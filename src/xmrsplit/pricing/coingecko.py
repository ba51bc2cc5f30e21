"""Fiat pricing via the CoinGecko simple price API.

The free tier allows about 50 calls a minute, so prices are cached for
five minutes. When CoinGecko fails the stale cache is served, and with
no cache at all a fixed set of approximate prices is returned.
"""

import logging
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

import httpx

logger = logging.getLogger(__name__)

COINGECKO_API = "https://api.coingecko.com/api/v3/simple/price"
CACHE_TTL = 300
VS_CURRENCIES = ("usd", "eur", "btc")

# Symbol -> CoinGecko id
COINGECKO_IDS = {
    "XMR": "monero",
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "USDC": "usd-coin",
}

# Used when CoinGecko is unreachable and nothing is cached
FALLBACK_PRICES: dict[str, dict[str, Decimal]] = {
    "XMR": {"usd": Decimal("150"), "eur": Decimal("138"), "btc": Decimal("0.0035")},
    "BTC": {"usd": Decimal("43000"), "eur": Decimal("39560"), "btc": Decimal("1")},
    "ETH": {"usd": Decimal("2200"), "eur": Decimal("2024"), "btc": Decimal("0.051")},
    "SOL": {"usd": Decimal("95"), "eur": Decimal("87"), "btc": Decimal("0.0022")},
    "USDC": {"usd": Decimal("1"), "eur": Decimal("0.92"), "btc": Decimal("0.000023")},
}

# Stablecoin defaults when CoinGecko omits a field
_DEFAULTS = {
    ("USDC", "usd"): Decimal("1"),
    ("USDC", "eur"): Decimal("0.92"),
    ("BTC", "btc"): Decimal("1"),
}

FIAT_SYMBOLS = {"USD": "$", "EUR": "€"}

Prices = dict[str, dict[str, Decimal]]


class PriceService:
    """Cached CoinGecko prices for the supported coins."""

    def __init__(
        self,
        api_url: str = COINGECKO_API,
        cache_ttl: int = CACHE_TTL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.cache_ttl = cache_ttl
        self._transport = transport
        self._prices: Optional[Prices] = None
        self._cache_timestamp: float = 0

    async def get_prices(self) -> Prices:
        """Prices per symbol in usd, eur and btc."""
        if self.is_cache_fresh():
            return self._prices

        try:
            prices = await self._fetch()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch crypto prices: {e}")
            if self._prices is not None:
                logger.warning("Using stale price cache")
                return self._prices
            return {symbol: dict(values) for symbol, values in FALLBACK_PRICES.items()}

        self._prices = prices
        self._cache_timestamp = time.time()
        logger.debug(f"Prices updated: XMR {prices['XMR']}")
        return prices

    async def _fetch(self) -> Prices:
        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            response = await client.get(
                self.api_url,
                params={
                    "ids": ",".join(COINGECKO_IDS.values()),
                    "vs_currencies": ",".join(VS_CURRENCIES),
                },
                headers={"Accept": "application/json"},
            )
        if response.status_code != 200:
            raise ValueError(f"CoinGecko API error: {response.status_code}")

        data = response.json()
        prices: Prices = {}
        for symbol, coin_id in COINGECKO_IDS.items():
            quote = data.get(coin_id) or {}
            prices[symbol] = {
                currency: self._value(quote.get(currency), symbol, currency)
                for currency in VS_CURRENCIES
            }
        return prices

    @staticmethod
    def _value(raw, symbol: str, currency: str) -> Decimal:
        if symbol == "BTC" and currency == "btc":
            return Decimal("1")
        if raw:
            return Decimal(str(raw))
        return _DEFAULTS.get((symbol, currency), Decimal("0"))

    def get_price(self, symbol: str, currency: str = "usd") -> Optional[Decimal]:
        """Cached price, or None when nothing is cached or the price is zero."""
        if self._prices is None:
            return None
        price = self._prices.get(symbol.upper(), {}).get(currency.lower())
        return price or None

    def format_fiat_price(
        self,
        amount: Union[str, Decimal, float],
        currency: str = "USD",
        symbol: str = "XMR",
    ) -> str:
        """Format a coin amount as fiat, e.g. ``$1,234.56``."""
        if self._prices is None:
            return "..."

        currency = currency.upper()
        sign = FIAT_SYMBOLS.get(currency, "")
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            value = Decimal("0")
        if not value.is_finite() or value == 0:
            return f"{sign}0.00"

        price = self.get_price(symbol, currency)
        if price is None:
            return "-"

        fiat = (value * price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{sign}{fiat:,.2f}"

    def is_cache_fresh(self) -> bool:
        if self._prices is None:
            return False
        return time.time() - self._cache_timestamp < self.cache_ttl

    def get_cache_age(self) -> Optional[int]:
        """Cache age in whole seconds, None when nothing is cached."""
        if self._prices is None:
            return None
        return int(time.time() - self._cache_timestamp)

    async def refresh_prices(self) -> Prices:
        """Drop the cache and fetch again."""
        self._prices = None
        self._cache_timestamp = 0
        return await self.get_prices()
