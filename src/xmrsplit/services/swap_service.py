"""Swap order execution and tracking.

Creates orders with the chosen provider, stores them, and keeps stored
orders in step with provider status.
"""

import logging
from decimal import Decimal
from typing import Optional

from xmrsplit.ledger import LedgerRepository, SwapOrder, SwapOrderStatus, get_db
from xmrsplit.swap_providers.aggregator import RouteAggregator
from xmrsplit.swap_providers.base import (
    TARGET_COIN,
    ProviderQuote,
    SwapStatusInfo,
    normalize_status,
)
from xmrsplit.swap_providers.errors import SwapError, SwapValidationError
from xmrsplit.utils.monero import validate_monero_address

logger = logging.getLogger(__name__)


class SwapService:
    """Quotes, order creation and order status for swaps into XMR."""

    def __init__(self, aggregator: RouteAggregator, history_limit: int = 50, allow_testnet: bool = False):
        self.aggregator = aggregator
        self.history_limit = history_limit
        self.allow_testnet = allow_testnet

    def get_supported_coins(self) -> list[str]:
        return self.aggregator.supported_coins

    async def get_best_route(
        self,
        from_coin: str,
        amount: Decimal,
        to_coin: str = TARGET_COIN,
    ) -> Optional[ProviderQuote]:
        return await self.aggregator.get_best_quote(from_coin.upper(), to_coin.upper(), amount)

    async def execute_swap(
        self,
        provider_name: str,
        from_coin: str,
        to_coin: str,
        amount: Decimal,
        xmr_address: str,
    ) -> SwapOrder:
        """Create an order with a provider and store it.

        Raises:
            SwapValidationError: Unknown provider, bad pair or bad address
            SwapError: Provider failure (classified by subclass)
        """
        provider = self.aggregator.get_provider(provider_name)
        if provider is None:
            raise SwapValidationError(f"Unsupported provider: {provider_name}")
        if amount <= 0:
            raise SwapValidationError("Amount must be positive")

        validation = validate_monero_address(xmr_address, allow_testnet=self.allow_testnet)
        if not validation.valid:
            raise SwapValidationError(f"invalid_address: {validation.error}")

        logger.info(f"Executing swap: {amount} {from_coin} -> {to_coin} via {provider.name}")
        order = await provider.create_order(from_coin.upper(), to_coin.upper(), amount, xmr_address)

        async with get_db() as session:
            repo = LedgerRepository(session, history_limit=self.history_limit)
            record = await repo.create_swap_order(
                order_id=order.order_id,
                provider=order.provider,
                deposit_address=order.deposit_address,
                withdrawal_address=order.withdrawal_address,
                from_coin=order.from_coin,
                to_coin=order.to_coin,
                from_amount=order.from_amount,
                expected_to_amount=order.expected_to_amount,
                status=_normalized(order.status),
                is_simulated=order.is_simulated,
                expires_at=order.expires_at,
            )

        logger.info(
            f"Swap order created: {record.order_id} ({record.provider}) "
            f"deposit {record.from_amount} {record.from_coin} to {record.deposit_address}"
            + (" [SIMULATED]" if record.is_simulated else "")
        )
        return record

    async def get_swap_status(self, provider_name: str, order_id: str) -> SwapStatusInfo:
        """Fetch provider status and update the stored order if we have it."""
        provider = self.aggregator.get_provider(provider_name)
        if provider is None:
            raise SwapValidationError(f"Unknown provider: {provider_name}")

        async with get_db() as session:
            stored = await LedgerRepository(session).get_swap_order(provider.name, order_id)

        if stored is not None and stored.is_simulated:
            return SwapStatusInfo(
                order_id=order_id,
                status=stored.status,
                message="Simulated order",
            )

        status = await provider.get_status(order_id)

        normalized = status.normalized_status
        if stored is not None and normalized is not None:
            async with get_db() as session:
                repo = LedgerRepository(session, history_limit=self.history_limit)
                record = await repo.get_swap_order(provider.name, order_id)
                if record is not None:
                    await repo.update_swap_order(
                        record,
                        normalized.value,
                        deposit_tx_hash=status.deposit_tx_hash,
                        withdrawal_tx_hash=status.withdrawal_tx_hash,
                    )

        return status

    async def refresh_active_orders(self) -> dict:
        """Refresh every non-terminal stored order. Used by the monitor runner."""
        async with get_db() as session:
            orders = await LedgerRepository(session).get_active_swap_orders()

        updated = 0
        errors = []
        for order in orders:
            try:
                status = await self.get_swap_status(order.provider, order.order_id)
            except SwapError as e:
                errors.append({"order_id": order.order_id, "error": e.message})
                logger.warning(f"Status refresh failed for {order.order_id}: {e}")
                continue
            if status.normalized_status and status.normalized_status.value != order.status:
                updated += 1

        return {"checked": len(orders), "updated": updated, "errors": errors}

    async def expire_stale_swaps(self) -> int:
        """Mark waiting orders past their expiry as expired."""
        async with get_db() as session:
            expired = await LedgerRepository(session).expire_swap_orders()
        for order in expired:
            logger.info(f"Swap order expired: {order.order_id} ({order.provider})")
        return len(expired)

    async def get_history(self) -> list[SwapOrder]:
        async with get_db() as session:
            return await LedgerRepository(session).get_swap_orders(limit=self.history_limit)

    async def clear_history(self) -> int:
        async with get_db() as session:
            return await LedgerRepository(session).clear_swap_orders()


def _normalized(raw_status: str) -> str:
    status = normalize_status(raw_status)
    return (status or SwapOrderStatus.WAITING).value
