"""Layout of the five split wallets."""

from decimal import ROUND_DOWN, Decimal
from typing import NamedTuple

from xmrsplit.ledger.models import WalletType
from xmrsplit.utils.monero import XMR_QUANTUM

WALLET_COUNT = 5
HOT_WALLET_ID = 3


class WalletSlot(NamedTuple):
    id: int
    type: WalletType
    label: str
    share: Decimal


WALLET_SLOTS: tuple[WalletSlot, ...] = (
    WalletSlot(1, WalletType.COLD, "Cold Wallet 1", Decimal("0.20")),
    WalletSlot(2, WalletType.COLD, "Cold Wallet 2", Decimal("0.20")),
    WalletSlot(3, WalletType.HOT, "Hot Wallet", Decimal("0.30")),
    WalletSlot(4, WalletType.COLD, "Cold Wallet 4", Decimal("0.20")),
    WalletSlot(5, WalletType.RESERVE, "Reserve Wallet", Decimal("0.10")),
)

WALLET_TYPES: dict[int, WalletType] = {slot.id: slot.type for slot in WALLET_SLOTS}
WALLET_LABELS: dict[int, str] = {slot.id: slot.label for slot in WALLET_SLOTS}
WALLET_DISTRIBUTION: dict[int, Decimal] = {slot.id: slot.share for slot in WALLET_SLOTS}


def wallet_index(wallet_id: int) -> int:
    """Wallet server index (0..4) for a wallet id (1..5)."""
    if wallet_id not in WALLET_TYPES:
        raise ValueError(f"Unknown wallet id: {wallet_id}")
    return wallet_id - 1


def wallet_id_from_index(index: int) -> int:
    if not 0 <= index < WALLET_COUNT:
        raise ValueError(f"Wallet index out of range: {index}")
    return index + 1


def distribute_amount(total: Decimal) -> dict[int, Decimal]:
    """Split an amount across the wallets by their share."""
    total = Decimal(str(total))
    return {
        wallet_id: (total * share).quantize(XMR_QUANTUM, rounding=ROUND_DOWN)
        for wallet_id, share in WALLET_DISTRIBUTION.items()
    }
