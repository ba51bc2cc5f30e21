"""SQLAlchemy models for wallets, payments, swaps and the address book.

Timestamps are naive UTC. XMR amounts use 12 decimal places (piconero).
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

XMR_NUMERIC = Numeric(24, 12)
COIN_NUMERIC = Numeric(36, 12)


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class WalletType(str, Enum):
    """Role of a wallet within the split."""

    COLD = "cold"
    HOT = "hot"
    RESERVE = "reserve"


class PaymentStatus(str, Enum):
    """Status of an outgoing payment."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class SwapOrderStatus(str, Enum):
    """Normalised status of a provider swap order."""

    WAITING = "waiting"        # Waiting for the user's deposit
    CONFIRMING = "confirming"  # Deposit seen, confirming
    EXCHANGING = "exchanging"  # Provider is swapping
    SENDING = "sending"        # Payout broadcast
    FINISHED = "finished"
    FAILED = "failed"
    REFUNDED = "refunded"
    EXPIRED = "expired"
    UNAVAILABLE = "unavailable"


class Wallet(Base):
    """One of the five split wallets."""

    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)  # 1..5
    address: Mapped[str] = mapped_column(String(106), nullable=False)
    balance: Mapped[Decimal] = mapped_column(XMR_NUMERIC, default=Decimal("0"))
    unlocked_balance: Mapped[Decimal] = mapped_column(XMR_NUMERIC, default=Decimal("0"))
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    balance_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow)


class WalletVault(Base):
    """Encrypted seed phrases for the split wallets.

    A single row. Seeds are a JSON array encrypted with Fernet using a key
    derived from the user's password; password_check lets us verify a
    password without touching the seeds.
    """

    __tablename__ = "wallet_vault"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    salt: Mapped[str] = mapped_column(String(64), nullable=False)
    password_check: Mapped[str] = mapped_column(Text, nullable=False)
    encrypted_seeds: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow, onupdate=utcnow)


class Payment(Base):
    """Record of an outgoing payment from the hot wallet."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    amount: Mapped[Decimal] = mapped_column(XMR_NUMERIC, nullable=False)
    recipient: Mapped[str] = mapped_column(String(106), nullable=False)
    label: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.PENDING.value, nullable=False
    )
    tx_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    from_wallet: Mapped[int] = mapped_column(default=3)
    fee: Mapped[Optional[Decimal]] = mapped_column(XMR_NUMERIC, nullable=True)
    consolidated: Mapped[bool] = mapped_column(Boolean, default=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow, onupdate=utcnow)


class SwapOrder(Base):
    """A swap order placed with an external provider."""

    __tablename__ = "swap_orders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(30), nullable=False)
    deposit_address: Mapped[str] = mapped_column(String(255), nullable=False)
    withdrawal_address: Mapped[str] = mapped_column(String(106), nullable=False)
    from_coin: Mapped[str] = mapped_column(String(10), nullable=False)
    to_coin: Mapped[str] = mapped_column(String(10), nullable=False)
    from_amount: Mapped[Decimal] = mapped_column(COIN_NUMERIC, nullable=False)
    expected_to_amount: Mapped[Decimal] = mapped_column(COIN_NUMERIC, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=SwapOrderStatus.WAITING.value, nullable=False
    )
    deposit_tx_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    withdrawal_tx_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_simulated: Mapped[bool] = mapped_column(Boolean, default=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow, onupdate=utcnow)


class AddressBookEntry(Base):
    """Saved recipient address."""

    __tablename__ = "address_book_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(String(106), unique=True, nullable=False, index=True)
    notes: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow)
    last_used: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)
