"""Best-route selection across swap providers."""

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from xmrsplit.swap_providers.base import ProviderQuote, SwapProvider

logger = logging.getLogger(__name__)


class RouteAggregator:
    """Aggregates quotes from multiple providers to find the best route."""

    def __init__(self, providers: Optional[list[SwapProvider]] = None):
        self.providers: list[SwapProvider] = providers or []

    def add_provider(self, provider: SwapProvider) -> None:
        self.providers.append(provider)

    def get_provider(self, name: str) -> Optional[SwapProvider]:
        """Look up a provider by name (case-insensitive)."""
        for provider in self.providers:
            if provider.name.lower() == name.lower():
                return provider
        return None

    @property
    def supported_coins(self) -> list[str]:
        coins: list[str] = []
        for provider in self.providers:
            for coin in provider.supported_coins:
                if coin not in coins:
                    coins.append(coin)
        return coins

    async def get_best_quote(
        self,
        from_coin: str,
        to_coin: str,
        amount: Decimal,
    ) -> Optional[ProviderQuote]:
        """
        Get the best available quote across all providers.

        Lowest fee wins; ties go to the highest output.
        """
        logger.info(f"Finding best route: {amount} {from_coin} -> {to_coin}")
        quotes = [q for q in await self.get_all_quotes(from_coin, to_coin, amount) if q.available]

        if not quotes:
            logger.warning(f"No routes found for {amount} {from_coin} -> {to_coin}")
            return None

        best = min(quotes, key=lambda q: (q.fee, -q.to_amount))
        logger.info(
            f"Selected route: {best.provider} - {best.to_amount} {best.to_coin} "
            f"(fee {best.fee} {best.from_coin})"
        )
        return best

    async def get_all_quotes(
        self,
        from_coin: str,
        to_coin: str,
        amount: Decimal,
    ) -> list[ProviderQuote]:
        """Query every provider that supports the pair, concurrently."""
        providers = [p for p in self.providers if p.supports_pair(from_coin, to_coin)]
        if not providers:
            logger.warning(f"No providers support {from_coin}->{to_coin} pair")
            return []

        results = await asyncio.gather(
            *(p.get_quote(from_coin, to_coin, amount) for p in providers),
            return_exceptions=True,
        )

        quotes = []
        errors = []
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                error_msg = f"{provider.name} quote failed: {type(result).__name__}: {result}"
                logger.warning(error_msg)
                errors.append(error_msg)
                continue
            logger.debug(
                f"Quote from {provider.name}: {result.from_amount} {result.from_coin} -> "
                f"{result.to_amount} {result.to_coin} (available: {result.available})"
            )
            quotes.append(result)

        if not quotes and errors:
            logger.error(
                f"No quotes available for {from_coin}->{to_coin}. Errors: {'; '.join(errors)}"
            )
        return quotes
