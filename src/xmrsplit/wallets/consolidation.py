"""Consolidation planning for exact payments.

When the hot wallet cannot cover a payment, pick the wallets to pull the
deficit from: largest balances first, until the deficit is covered.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from xmrsplit.swap_providers.errors import InsufficientFundsError
from xmrsplit.wallets.layout import HOT_WALLET_ID

PLAN_QUANTUM = Decimal("0.00000001")


class WalletBalance(Protocol):
    id: int
    type: str
    balance: Decimal


@dataclass
class ConsolidationPlan:
    """Which wallets to sweep into the hot wallet, and how much from each."""

    source_wallets: list[int]
    transfers: dict[int, Decimal]
    target_wallet: int
    total_amount: str
    required_amount: str
    deficit: Decimal
    hot_balance: Decimal = field(default=Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "source_wallets": self.source_wallets,
            "transfers": {str(k): str(v) for k, v in self.transfers.items()},
            "target_wallet": self.target_wallet,
            "total_amount": self.total_amount,
            "required_amount": self.required_amount,
            "deficit": str(self.deficit),
        }


def _fixed(amount: Decimal) -> str:
    return str(amount.quantize(PLAN_QUANTUM))


def _type_value(wallet_type) -> str:
    return getattr(wallet_type, "value", wallet_type)


def create_consolidation_plan(
    wallets: Iterable[WalletBalance],
    payment_amount: Decimal,
    source_types: tuple[str, ...] = ("cold",),
) -> Optional[ConsolidationPlan]:
    """Plan a consolidation into the hot wallet.

    Args:
        wallets: Wallet records with id, type and balance
        payment_amount: Amount the hot wallet must hold
        source_types: Wallet types allowed as sources

    Returns:
        None if the hot wallet already covers the amount, otherwise the plan

    Raises:
        ValueError: If there is no hot wallet
        InsufficientFundsError: If the source wallets cannot cover the deficit
    """
    wallets = list(wallets)
    payment_amount = Decimal(str(payment_amount))

    hot_wallet = next((w for w in wallets if w.id == HOT_WALLET_ID), None)
    if hot_wallet is None:
        raise ValueError("Hot wallet not found")

    hot_balance = Decimal(str(hot_wallet.balance))
    if hot_balance >= payment_amount:
        return None

    deficit = payment_amount - hot_balance

    candidates = sorted(
        (
            w
            for w in wallets
            if w.id != HOT_WALLET_ID
            and _type_value(w.type) in source_types
            and Decimal(str(w.balance)) > 0
        ),
        key=lambda w: (-Decimal(str(w.balance)), w.id),
    )

    collected = Decimal("0")
    remaining = deficit
    source_wallets: list[int] = []
    transfers: dict[int, Decimal] = {}

    for wallet in candidates:
        if remaining <= 0:
            break
        balance = Decimal(str(wallet.balance))
        source_wallets.append(wallet.id)
        transfers[wallet.id] = min(balance, remaining)
        collected += balance
        remaining -= balance

    if collected < deficit:
        raise InsufficientFundsError(
            required=payment_amount,
            available=hot_balance + collected,
        )

    return ConsolidationPlan(
        source_wallets=source_wallets,
        transfers=transfers,
        target_wallet=HOT_WALLET_ID,
        total_amount=_fixed(hot_balance + collected),
        required_amount=_fixed(payment_amount),
        deficit=deficit,
        hot_balance=hot_balance,
    )
