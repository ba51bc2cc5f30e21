"""ChangeNOW exchange integration.

Uses the v2 API (standard flow). The sandbox API is used on testnet or when
CHANGENOW_SANDBOX is set.
API docs: https://documenter.getpostman.com/view/8180765/SVfTPnME
"""

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
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

CHANGENOW_COINS = ["ETH", "USDC", "LTC", "BTC", "SOL"]

# Used when the range endpoint is unreachable
DEFAULT_LIMITS: dict[str, tuple[Decimal, Decimal]] = {
    "ETH": (Decimal("0.01"), Decimal("100")),
    "USDC": (Decimal("10"), Decimal("100000")),
}
GENERIC_LIMITS = (Decimal("0.001"), Decimal("10"))


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class ChangeNowProvider(SwapProvider):
    """ChangeNOW swap provider.

    Supports ETH, USDC, LTC, BTC and SOL into XMR at a 0.25% fee.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        dry_run: bool = False,
        order_ttl: int = 3600,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, dry_run=dry_run, transport=transport)
        self.api_key = api_key
        self.order_ttl = order_ttl

    @property
    def name(self) -> str:
        return "ChangeNOW"

    @property
    def fee_rate(self) -> Decimal:
        return Decimal("0.0025")

    @property
    def estimated_time(self) -> str:
        return "10-20 min"

    @property
    def supported_coins(self) -> list[str]:
        return CHANGENOW_COINS

    @property
    def _headers(self) -> dict[str, str]:
        return {"x-changenow-api-key": self.api_key}

    async def get_range(self, from_coin: str, to_coin: str) -> tuple[Decimal, Decimal]:
        """Minimum and maximum exchange amounts for a pair."""
        try:
            data = await self._request(
                "GET",
                "/exchange/range",
                params={
                    "fromCurrency": from_coin.lower(),
                    "toCurrency": to_coin.lower(),
                    "fromNetwork": "",
                    "toNetwork": "",
                    "flow": "standard",
                },
                headers=self._headers,
            )
        except SwapError as e:
            logger.warning(f"ChangeNOW range lookup failed, using defaults: {e}")
            return DEFAULT_LIMITS.get(from_coin.upper(), GENERIC_LIMITS)

        default_min, default_max = DEFAULT_LIMITS.get(from_coin.upper(), GENERIC_LIMITS)
        min_amount = _decimal(data.get("minAmount"))
        if min_amount is None:
            min_amount = default_min
        max_amount = _decimal(data.get("maxAmount"))
        if max_amount is None:
            # maxAmount is null when the pair has no upper bound
            max_amount = Decimal("Infinity") if "maxAmount" in data else default_max
        return min_amount, max_amount

    async def get_quote(self, from_coin: str, to_coin: str, amount: Decimal) -> ProviderQuote:
        self._check_pair(from_coin, to_coin)
        min_amount, max_amount = await self.get_range(from_coin, to_coin)

        try:
            data = await self._request(
                "GET",
                "/exchange/estimated-amount",
                params={
                    "fromCurrency": from_coin.lower(),
                    "toCurrency": to_coin.lower(),
                    "fromAmount": str(amount),
                    "fromNetwork": "",
                    "toNetwork": "",
                    "flow": "standard",
                    "type": "",
                    "useRateId": "false",
                },
                headers=self._headers,
            )
        except SwapError as e:
            self._fallback("quote", e)
            return simulate_quote(
                self.name, from_coin, to_coin, amount, self.fee_rate,
                self.estimated_time, min_amount, max_amount,
            )

        to_amount = _decimal(data.get("estimatedAmount")) or _decimal(data.get("toAmount"))
        if to_amount is None:
            raise SwapError("ChangeNOW estimate missing toAmount", code="API_ERROR", details=data)

        forecast = data.get("transactionSpeedForecast")
        quote = ProviderQuote(
            provider=self.name,
            from_coin=from_coin.upper(),
            to_coin=to_coin.upper(),
            from_amount=amount,
            to_amount=to_amount,
            fee=self.fee_for(amount),
            estimated_time=f"{forecast} min" if forecast else self.estimated_time,
            min_amount=min_amount,
            max_amount=max_amount,
            message=data.get("warningMessage"),
        )

        if amount < min_amount or amount > max_amount:
            quote.available = False
            quote.message = f"Amount outside min/max range ({min_amount} - {max_amount})"

        logger.debug(f"ChangeNOW quote: {amount} {from_coin} -> {to_amount} {to_coin}")
        return quote

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
                "/exchange",
                json={
                    "fromCurrency": from_coin.lower(),
                    "toCurrency": to_coin.lower(),
                    "fromAmount": str(amount),
                    "address": xmr_address,
                    "flow": "standard",
                    "type": "direct",
                    "rateId": "",
                },
                headers={**self._headers, "Content-Type": "application/json"},
            )
        except SwapError as e:
            self._fallback("create exchange", e)
            return simulate_order(
                self.name, from_coin, to_coin, amount, xmr_address, self.fee_rate, self.order_ttl
            )

        try:
            order = ProviderOrder(
                order_id=str(data["id"]),
                provider=self.name,
                deposit_address=data["payinAddress"],
                withdrawal_address=data.get("payoutAddress") or xmr_address,
                from_coin=str(data.get("fromCurrency", from_coin)).upper(),
                to_coin=str(data.get("toCurrency", to_coin)).upper(),
                from_amount=_decimal(data.get("fromAmount")) or amount,
                expected_to_amount=_decimal(data.get("toAmount")) or Decimal("0"),
                status=data.get("status") or "waiting",
                expires_at=utcnow() + timedelta(seconds=self.order_ttl),
            )
        except KeyError as e:
            raise SwapError(
                f"ChangeNOW exchange response missing {e}", code="API_ERROR", details=data
            )

        logger.info(f"ChangeNOW exchange created: {order.order_id} -> {order.deposit_address}")
        return order

    async def get_status(self, order_id: str) -> SwapStatusInfo:
        data = await self._request(
            "GET",
            "/exchange/by-id",
            params={"id": order_id},
            headers=self._headers,
        )
        return SwapStatusInfo(
            order_id=str(data.get("id", order_id)),
            status=data.get("status", "unknown"),
            deposit_tx_hash=data.get("payinHash"),
            withdrawal_tx_hash=data.get("payoutHash"),
            amount_received=_decimal(data.get("amountSend")),
            amount_sent=_decimal(data.get("amountReceive")),
        )
