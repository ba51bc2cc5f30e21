"""Simulated quotes and orders for dry-run mode.

Only used when dry_run is enabled and a provider call fails. Every result
is flagged is_simulated so it is never mistaken for a real order.
"""

import secrets
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from xmrsplit.ledger.models import utcnow
from xmrsplit.swap_providers.base import ProviderOrder, ProviderQuote

# Approximate XMR received per unit of coin
SIMULATED_XMR_RATES: dict[str, Decimal] = {
    "BTC": Decimal("10"),
    "ETH": Decimal("1.5"),
    "LTC": Decimal("0.5"),
    "SOL": Decimal("0.6"),
    "USDC": Decimal("0.006"),
}

SIMULATED_DEPOSIT_PREFIX = "SIMULATED-"


def simulated_rate(coin: str) -> Decimal:
    return SIMULATED_XMR_RATES.get(coin.upper(), Decimal("1"))


def simulate_quote(
    provider: str,
    from_coin: str,
    to_coin: str,
    amount: Decimal,
    fee_rate: Decimal,
    estimated_time: str,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
) -> ProviderQuote:
    fee = amount * fee_rate
    to_amount = (amount * simulated_rate(from_coin) * (1 - fee_rate)).quantize(
        Decimal("0.000000000001")
    )
    return ProviderQuote(
        provider=provider,
        from_coin=from_coin.upper(),
        to_coin=to_coin.upper(),
        from_amount=amount,
        to_amount=to_amount,
        fee=fee,
        estimated_time=estimated_time,
        min_amount=min_amount,
        max_amount=max_amount,
        is_simulated=True,
    )


def simulate_order(
    provider: str,
    from_coin: str,
    to_coin: str,
    amount: Decimal,
    xmr_address: str,
    fee_rate: Decimal,
    ttl_seconds: int = 3600,
) -> ProviderOrder:
    """Build an order whose deposit address is clearly not payable."""
    order_id = f"sim_{provider.lower()}_{secrets.token_hex(8)}"
    return ProviderOrder(
        order_id=order_id,
        provider=provider,
        deposit_address=f"{SIMULATED_DEPOSIT_PREFIX}{from_coin.upper()}-{order_id}",
        withdrawal_address=xmr_address,
        from_coin=from_coin.upper(),
        to_coin=to_coin.upper(),
        from_amount=amount,
        expected_to_amount=(amount * simulated_rate(from_coin) * (1 - fee_rate)).quantize(
            Decimal("0.000000000001")
        ),
        status="waiting",
        expires_at=utcnow() + timedelta(seconds=ttl_seconds),
        is_simulated=True,
    )
