"""BTCSwapXMR integration (BTC -> XMR only).

API docs: https://github.com/BTC-Swap-XMR/api-docs
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

import httpx

from xmrsplit.ledger.models import utcnow
from xmrsplit.swap_providers.base import (
    ProviderOrder,
    ProviderQuote,
    SwapProvider,
    SwapStatusInfo,
)
from xmrsplit.swap_providers.errors import SwapError
from xmrsplit.swap_providers.simulated import simulate_order, simulate_quote

logger = logging.getLogger(__name__)


def _expiry(value: Any, ttl_seconds: int) -> datetime:
    """Parse expires_at (unix seconds or milliseconds) as naive UTC."""
    if isinstance(value, (int, float)) and value > 0:
        seconds = value / 1000 if value > 10**11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
    return utcnow() + timedelta(seconds=ttl_seconds)


class BTCSwapXMRProvider(SwapProvider):
    """BTCSwapXMR swap provider. Lowest fee (0.15%), BTC only."""

    def __init__(
        self,
        base_url: str,
        dry_run: bool = False,
        order_ttl: int = 3600,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, dry_run=dry_run, transport=transport)
        self.order_ttl = order_ttl

    @property
    def name(self) -> str:
        return "BTCSwapXMR"

    @property
    def fee_rate(self) -> Decimal:
        return Decimal("0.0015")

    @property
    def estimated_time(self) -> str:
        return "15-30 min"

    @property
    def supported_coins(self) -> list[str]:
        return ["BTC"]

    async def get_quote(self, from_coin: str, to_coin: str, amount: Decimal) -> ProviderQuote:
        self._check_pair(from_coin, to_coin)
        try:
            data = await self._request(
                "POST",
                "/v1/quote",
                json={"from": from_coin.upper(), "to": to_coin.upper(), "amount": float(amount)},
            )
        except SwapError as e:
            self._fallback("quote", e)
            return simulate_quote(
                self.name, from_coin, to_coin, amount, self.fee_rate, self.estimated_time
            )

        to_amount = data.get("to_amount")
        if to_amount is None:
            rate = data.get("rate")
            if rate is None:
                raise SwapError("BTCSwapXMR quote missing to_amount", code="API_ERROR", details=data)
            to_amount = amount * Decimal(str(rate)) * (1 - self.fee_rate)

        return ProviderQuote(
            provider=self.name,
            from_coin=from_coin.upper(),
            to_coin=to_coin.upper(),
            from_amount=amount,
            to_amount=Decimal(str(to_amount)),
            fee=self.fee_for(amount),
            estimated_time=self.estimated_time,
        )

    async def create_order(
        self,
        from_coin: str,
        to_coin: str,
        amount: Decimal,
        xmr_address: str,
    ) -> ProviderOrder:
        self._check_pair(from_coin, to_coin)
        try:
            data = await self._request(
                "POST",
                "/v1/swaps",
                json={
                    "from": "BTC",
                    "to": "XMR",
                    "amount": float(amount),
                    "xmr_address": xmr_address,
                },
            )
        except SwapError as e:
            self._fallback("create swap", e)
            return simulate_order(
                self.name, from_coin, to_coin, amount, xmr_address, self.fee_rate, self.order_ttl
            )

        try:
            order = ProviderOrder(
                order_id=str(data["swap_id"]),
                provider=self.name,
                deposit_address=data["btc_address"],
                withdrawal_address=data.get("xmr_address") or xmr_address,
                from_coin="BTC",
                to_coin="XMR",
                from_amount=Decimal(str(data.get("amount_btc", amount))),
                expected_to_amount=Decimal(str(data.get("amount_xmr", 0))),
                status=data.get("status") or "waiting_deposit",
                expires_at=_expiry(data.get("expires_at"), self.order_ttl),
            )
        except KeyError as e:
            raise SwapError(
                f"BTCSwapXMR swap response missing {e}", code="API_ERROR", details=data
            )

        logger.info(f"BTCSwapXMR swap created: {order.order_id} -> {order.deposit_address}")
        return order

    async def get_status(self, order_id: str) -> SwapStatusInfo:
        data = await self._request("GET", f"/v1/swaps/{order_id}")
        btc_received = data.get("btc_received")
        xmr_sent = data.get("xmr_sent")
        return SwapStatusInfo(
            order_id=str(data.get("swap_id", order_id)),
            status=data.get("status", "unknown"),
            amount_received=Decimal(str(btc_received)) if btc_received is not None else None,
            amount_sent=Decimal(str(xmr_sent)) if xmr_sent is not None else None,
            confirmations=data.get("confirmations"),
        )
