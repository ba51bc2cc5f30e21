"""GhostSwap placeholder.

GhostSwap appears discontinued. Quotes are reported as unavailable and
orders are refused; the health probe only tells us whether the API is back.
"""

import logging
from decimal import Decimal
from typing import Optional

import httpx

from xmrsplit.swap_providers.base import (
    ProviderOrder,
    ProviderQuote,
    SwapProvider,
    SwapStatusInfo,
)
from xmrsplit.swap_providers.errors import ProviderError
from xmrsplit.swap_providers.simulated import simulated_rate

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT = 3.0

UNAVAILABLE_MESSAGE = "GhostSwap temporarily unavailable. Try ChangeNOW or BTCSwapXMR."

GHOSTSWAP_ALTERNATIVES = [
    {
        "name": "Trocador.app",
        "url": "https://trocador.app/api",
        "features": ["Aggregator", "Best rates", "Multiple providers"],
        "fee": "0.5%",
    },
    {
        "name": "SideShift.ai",
        "url": "https://sideshift.ai/api",
        "features": ["No KYC", "Fast swaps", "XMR support"],
        "fee": "0.5%",
    },
    {
        "name": "Exolix",
        "url": "https://exolix.com/api",
        "features": ["Low fees", "Wide coin support"],
        "fee": "0.3%",
    },
]


class GhostSwapProvider(SwapProvider):
    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, dry_run=False, transport=transport)

    @property
    def name(self) -> str:
        return "GhostSwap"

    @property
    def fee_rate(self) -> Decimal:
        return Decimal("0.002")

    @property
    def estimated_time(self) -> str:
        return "8-15 min"

    @property
    def supported_coins(self) -> list[str]:
        return ["BTC", "ETH", "LTC"]

    async def is_online(self) -> bool:
        """Probe the health endpoint with a short timeout."""
        try:
            async with self._client(HEALTH_TIMEOUT) as client:
                response = await client.get(f"{self.base_url}/health")
        except httpx.HTTPError as e:
            logger.debug(f"GhostSwap health check failed: {e}")
            return False
        if response.status_code == 200:
            logger.info("GhostSwap API responded to health check")
            return True
        return False

    async def get_quote(self, from_coin: str, to_coin: str, amount: Decimal) -> ProviderQuote:
        self._check_pair(from_coin, to_coin)
        await self.is_online()
        return ProviderQuote(
            provider=self.name,
            from_coin=from_coin.upper(),
            to_coin=to_coin.upper(),
            from_amount=amount,
            to_amount=amount * simulated_rate(from_coin) * (1 - self.fee_rate),
            fee=self.fee_for(amount),
            estimated_time=self.estimated_time,
            available=False,
            message=UNAVAILABLE_MESSAGE,
            is_simulated=True,
        )

    async def create_order(
        self,
        from_coin: str,
        to_coin: str,
        amount: Decimal,
        xmr_address: str,
    ) -> ProviderOrder:
        raise ProviderError(
            "GhostSwap service is unavailable. Please use an alternative provider.",
            provider=self.name,
            details={"alternatives": [a["name"] for a in GHOSTSWAP_ALTERNATIVES]},
        )

    async def get_status(self, order_id: str) -> SwapStatusInfo:
        return SwapStatusInfo(
            order_id=order_id,
            status="unavailable",
            message="GhostSwap service offline. Please use alternative providers.",
        )
