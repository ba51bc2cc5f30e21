"""Ledger module for wallets, payments, swap orders and the address book."""

from xmrsplit.ledger.database import close_db, get_db, init_db
from xmrsplit.ledger.models import (
    AddressBookEntry,
    Payment,
    PaymentStatus,
    SwapOrder,
    SwapOrderStatus,
    Wallet,
    WalletType,
    WalletVault,
)
from xmrsplit.ledger.repository import LedgerRepository

__all__ = [
    # Models
    "AddressBookEntry",
    "Payment",
    "SwapOrder",
    "Wallet",
    "WalletVault",
    # Enums
    "PaymentStatus",
    "SwapOrderStatus",
    "WalletType",
    # Database
    "close_db",
    "get_db",
    "init_db",
    "LedgerRepository",
]
