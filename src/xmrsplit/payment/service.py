"""Exact payments from the hot wallet.

If the hot wallet cannot cover a payment, the shortfall is pulled in from
the cold and reserve wallets first. Monero keeps freshly received outputs
locked for 10 blocks, so a payment that needed consolidation usually has
to be retried once the consolidated funds unlock.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from xmrsplit.ledger import LedgerRepository, Payment, get_db
from xmrsplit.ledger.models import PaymentStatus as RecordStatus
from xmrsplit.utils.locks import LockTimeoutError, operation_lock
from xmrsplit.utils.monero import (
    ADDRESS_MAX_LENGTH,
    ADDRESS_MIN_LENGTH,
    XMR_QUANTUM,
    estimate_transaction_fee,
    truncate_address,
    validate_monero_address,
)
from xmrsplit.walletrpc.client import WalletServerClient
from xmrsplit.wallets.errors import InsufficientFundsError, WalletError
from xmrsplit.wallets.layout import HOT_WALLET_ID, wallet_index
from xmrsplit.wallets.service import WalletService

logger = logging.getLogger(__name__)

PAYMENT_LOCK = "payments"
PAYMENT_LOCK_TIMEOUT = 10.0


class PaymentStage(str, Enum):
    IDLE = "idle"
    CONSOLIDATING = "consolidating"
    PAYING = "paying"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class PaymentStatus:
    """Where a payment attempt ended up."""

    stage: PaymentStage
    message: str
    tx_id: Optional[str] = None
    error: Optional[str] = None
    consolidation_tx_hashes: list[str] = field(default_factory=list)
    consolidation_needed: bool = False
    payment_id: Optional[int] = None
    fee: Optional[Decimal] = None

    @classmethod
    def failed(cls, message: str, error: str, **kwargs) -> "PaymentStatus":
        return cls(stage=PaymentStage.ERROR, message=message, error=error, **kwargs)


def calculate_required_funds(exact_amount: Decimal, fee_estimate: Optional[Decimal] = None) -> Decimal:
    """Amount plus the estimated network fee."""
    return Decimal(str(exact_amount)) + estimate_transaction_fee(fee_estimate)


class PaymentService:
    """Sends exact payments from the hot wallet and keeps their history."""

    def __init__(
        self,
        wallet_service: WalletService,
        client: WalletServerClient,
        max_amount: Decimal = Decimal("100"),
        history_limit: int = 50,
        allow_testnet: bool = False,
        fee_estimate: Optional[Decimal] = None,
    ):
        self.wallets = wallet_service
        self.client = client
        self.max_amount = max_amount
        self.history_limit = history_limit
        self.allow_testnet = allow_testnet
        self.fee_estimate = estimate_transaction_fee(fee_estimate)

    def validate(self, shop_address: str, exact_amount: Decimal) -> Optional[str]:
        """Return an error message, or None when the request is valid."""
        address = (shop_address or "").strip()
        if not ADDRESS_MIN_LENGTH <= len(address) <= ADDRESS_MAX_LENGTH:
            return f"Address must be {ADDRESS_MIN_LENGTH}-{ADDRESS_MAX_LENGTH} characters"
        validation = validate_monero_address(address, allow_testnet=self.allow_testnet)
        if not validation.valid:
            return validation.error
        if exact_amount <= 0:
            return "Amount must be positive"
        if exact_amount > self.max_amount:
            return f"Amount exceeds the {self.max_amount} XMR limit per payment"
        return None

    async def execute_payment(
        self,
        shop_address: str,
        exact_amount: Decimal,
        label: Optional[str] = None,
    ) -> PaymentStatus:
        """Pay an exact amount to an address, consolidating first if needed.

        Payments are serialised: consolidation and sending must not
        interleave with another payment drawing on the same hot wallet.
        """
        exact_amount = Decimal(str(exact_amount))
        error = self.validate(shop_address, exact_amount)
        if error:
            return PaymentStatus.failed("Invalid payment request", error)

        try:
            async with operation_lock(PAYMENT_LOCK, timeout=PAYMENT_LOCK_TIMEOUT, operation="payment"):
                return await self._execute(shop_address.strip(), exact_amount, label)
        except LockTimeoutError:
            return PaymentStatus.failed("Payment busy", "Another payment is in progress")

    async def _execute(self, address: str, amount: Decimal, label: Optional[str]) -> PaymentStatus:
        if not await self.wallets.wallets_exist():
            return PaymentStatus.failed("No wallets found", "Create wallets first")

        try:
            hot = await self.wallets.refresh_wallet(HOT_WALLET_ID)
        except WalletError as e:
            return PaymentStatus.failed("Balance check failed", e.message)

        required = calculate_required_funds(amount, self.fee_estimate)
        consolidation_hashes: list[str] = []
        consolidated = False

        if hot.unlocked_balance < required:
            logger.info(
                f"Hot wallet has {hot.unlocked_balance} XMR unlocked, need {required}; consolidating"
            )
            try:
                # Plan against fresh balances
                await self.wallets.sync_balances(force=True)
                result = await self.wallets.consolidate_to_hot_wallet(required)
            except InsufficientFundsError as e:
                return PaymentStatus.failed(
                    "Insufficient funds across all wallets",
                    e.message,
                    consolidation_needed=True,
                )
            except WalletError as e:
                return PaymentStatus.failed("Consolidation failed", e.message, consolidation_needed=True)

            if not result.success:
                return PaymentStatus.failed(
                    "Consolidation failed",
                    result.error or "Unknown error",
                    consolidation_tx_hashes=result.tx_hashes,
                    consolidation_needed=True,
                )
            consolidation_hashes = result.tx_hashes
            consolidated = bool(result.tx_hashes)

            try:
                hot = await self.wallets.refresh_wallet(HOT_WALLET_ID)
            except WalletError as e:
                return PaymentStatus.failed("Balance check failed", e.message, consolidation_needed=True)

            if hot.unlocked_balance < required:
                logger.info(
                    f"Consolidation sent ({len(consolidation_hashes)} txs); "
                    f"hot wallet unlocked {hot.unlocked_balance} < {required}"
                )
                return PaymentStatus(
                    stage=PaymentStage.CONSOLIDATING,
                    message=(
                        "Funds moved to the hot wallet. They unlock after 10 confirmations "
                        "(about 20 minutes); retry the payment then."
                    ),
                    consolidation_tx_hashes=consolidation_hashes,
                    consolidation_needed=True,
                )

        logger.info(f"Paying {amount} XMR to {truncate_address(address)}")
        transfer = await self.client.transfer(wallet_index(HOT_WALLET_ID), address, amount)
        if not transfer.success or not transfer.tx_hash:
            return PaymentStatus.failed(
                "Payment failed",
                transfer.error or "Wallet server returned no transaction hash",
                consolidation_tx_hashes=consolidation_hashes,
                consolidation_needed=consolidated,
            )

        payment = await self.save_payment(
            amount=amount,
            recipient=address,
            tx_hash=transfer.tx_hash,
            label=label,
            fee=transfer.fee,
            consolidated=consolidated,
        )
        async with get_db() as session:
            await LedgerRepository(session).mark_wallets_stale([HOT_WALLET_ID])

        logger.info(f"Payment broadcast: {transfer.tx_hash}")
        return PaymentStatus(
            stage=PaymentStage.COMPLETED,
            message="Payment successful",
            tx_id=transfer.tx_hash,
            consolidation_tx_hashes=consolidation_hashes,
            consolidation_needed=consolidated,
            payment_id=payment.id,
            fee=transfer.fee,
        )

    async def get_payment_estimate(self, exact_amount: Decimal) -> dict:
        """Estimate from stored balances whether a payment is possible."""
        wallets = await self.wallets.get_wallets()
        if not wallets:
            return {
                "possible": False,
                "consolidation_needed": False,
                "total_available": Decimal("0"),
                "hot_wallet_balance": Decimal("0"),
                "estimated_fee": Decimal("0"),
            }

        total = sum((w.balance for w in wallets), Decimal("0"))
        hot_balance = next((w.balance for w in wallets if w.id == HOT_WALLET_ID), Decimal("0"))
        required = calculate_required_funds(exact_amount, self.fee_estimate)
        return {
            "possible": total >= required,
            "consolidation_needed": hot_balance < required,
            "total_available": total,
            "hot_wallet_balance": hot_balance,
            "estimated_fee": self.fee_estimate,
        }

    # History

    async def save_payment(
        self,
        amount: Decimal,
        recipient: str,
        tx_hash: Optional[str] = None,
        label: Optional[str] = None,
        fee: Optional[Decimal] = None,
        consolidated: bool = False,
    ) -> Payment:
        async with get_db() as session:
            repo = LedgerRepository(session, history_limit=self.history_limit)
            return await repo.create_payment(
                amount=amount,
                recipient=recipient,
                tx_hash=tx_hash,
                label=label,
                fee=fee,
                from_wallet=HOT_WALLET_ID,
                consolidated=consolidated,
            )

    async def get_history(self) -> list[Payment]:
        async with get_db() as session:
            return await LedgerRepository(session).get_payments(limit=self.history_limit)

    async def get_payment(self, payment_id: int) -> Optional[Payment]:
        async with get_db() as session:
            return await LedgerRepository(session).get_payment(payment_id)

    async def update_status(
        self,
        payment_id: int,
        status: RecordStatus,
        tx_hash: Optional[str] = None,
    ) -> Optional[Payment]:
        async with get_db() as session:
            payment = await LedgerRepository(session).update_payment_status(
                payment_id, status, tx_hash=tx_hash
            )
        if payment is not None:
            logger.info(f"Payment {payment_id} updated to {status.value}")
        return payment

    async def clear_history(self) -> int:
        async with get_db() as session:
            cleared = await LedgerRepository(session).clear_payments()
        logger.info(f"Cleared {cleared} payment records")
        return cleared

    async def get_stats(self) -> dict:
        payments = await self.get_history()
        total_xmr = sum((p.amount for p in payments), Decimal("0"))
        total_fees = sum((p.fee or Decimal("0") for p in payments), Decimal("0"))
        return {
            "total_payments": len(payments),
            "total_xmr": str(total_xmr.quantize(XMR_QUANTUM)),
            "total_fees": str(total_fees.quantize(XMR_QUANTUM)),
            "confirmed": sum(1 for p in payments if p.status == RecordStatus.CONFIRMED.value),
            "pending": sum(1 for p in payments if p.status == RecordStatus.PENDING.value),
            "failed": sum(1 for p in payments if p.status == RecordStatus.FAILED.value),
        }
