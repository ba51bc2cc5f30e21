"""Repository for ledger operations."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from xmrsplit.ledger.models import (
    AddressBookEntry,
    Payment,
    PaymentStatus,
    SwapOrder,
    SwapOrderStatus,
    Wallet,
    WalletVault,
    utcnow,
)

DEFAULT_HISTORY_LIMIT = 50


class LedgerRepository:
    """Repository for all ledger-related database operations."""

    def __init__(self, session: AsyncSession, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.session = session
        self.history_limit = history_limit

    # Wallet operations
    async def get_wallets(self) -> list[Wallet]:
        """Get all split wallets ordered by id."""
        result = await self.session.execute(select(Wallet).order_by(Wallet.id))
        return list(result.scalars().all())

    async def get_wallet(self, wallet_id: int) -> Optional[Wallet]:
        """Get a wallet by id."""
        return await self.session.get(Wallet, wallet_id)

    async def count_wallets(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Wallet))
        return result.scalar_one()

    async def replace_wallets(self, wallets: list[Wallet]) -> list[Wallet]:
        """Drop existing wallet records and store the given ones."""
        await self.session.execute(delete(Wallet))
        self.session.add_all(wallets)
        await self.session.flush()
        return wallets

    async def update_wallet_balance(
        self,
        wallet_id: int,
        balance: Decimal,
        unlocked_balance: Decimal,
    ) -> Wallet:
        """Store a balance fetched from the wallet server."""
        wallet = await self.get_wallet(wallet_id)
        if wallet is None:
            raise ValueError(f"Wallet {wallet_id} not found")
        wallet.balance = balance
        wallet.unlocked_balance = unlocked_balance
        wallet.balance_synced_at = utcnow()
        await self.session.flush()
        return wallet

    async def credit_wallet(self, wallet_id: int, amount: Decimal) -> Wallet:
        """Add amount to the locally tracked wallet balance."""
        wallet = await self.get_wallet(wallet_id)
        if wallet is None:
            raise ValueError(f"Wallet {wallet_id} not found")
        wallet.balance += amount
        await self.session.flush()
        return wallet

    async def mark_wallets_stale(self, wallet_ids: list[int]) -> None:
        """Force the next sync to refetch these balances."""
        for wallet_id in wallet_ids:
            wallet = await self.get_wallet(wallet_id)
            if wallet is not None:
                wallet.balance_synced_at = None
        await self.session.flush()

    async def delete_wallets(self) -> None:
        """Delete all wallet records and the seed vault."""
        await self.session.execute(delete(Wallet))
        await self.session.execute(delete(WalletVault))
        await self.session.flush()

    # Vault operations
    async def get_vault(self) -> Optional[WalletVault]:
        result = await self.session.execute(select(WalletVault).limit(1))
        return result.scalar_one_or_none()

    async def save_vault(self, salt: str, password_check: str, encrypted_seeds: str) -> WalletVault:
        """Store the vault, replacing any previous one."""
        vault = await self.get_vault()
        if vault is None:
            vault = WalletVault(
                salt=salt,
                password_check=password_check,
                encrypted_seeds=encrypted_seeds,
            )
            self.session.add(vault)
        else:
            vault.salt = salt
            vault.password_check = password_check
            vault.encrypted_seeds = encrypted_seeds
        await self.session.flush()
        return vault

    # Payment operations
    async def create_payment(
        self,
        amount: Decimal,
        recipient: str,
        tx_hash: Optional[str] = None,
        label: Optional[str] = None,
        fee: Optional[Decimal] = None,
        from_wallet: int = 3,
        consolidated: bool = False,
        status: PaymentStatus = PaymentStatus.PENDING,
    ) -> Payment:
        """Record a payment and trim history to the newest records."""
        payment = Payment(
            amount=amount,
            recipient=recipient,
            tx_hash=tx_hash,
            label=label,
            fee=fee,
            from_wallet=from_wallet,
            consolidated=consolidated,
            status=status.value,
        )
        self.session.add(payment)
        await self.session.flush()
        await self._trim_history(Payment)
        return payment

    async def get_payments(self, limit: Optional[int] = None) -> list[Payment]:
        """Get payments, newest first."""
        stmt = select(Payment).order_by(Payment.created_at.desc(), Payment.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_payment(self, payment_id: int) -> Optional[Payment]:
        return await self.session.get(Payment, payment_id)

    async def get_payment_by_tx_hash(self, tx_hash: str) -> Optional[Payment]:
        stmt = select(Payment).where(Payment.tx_hash == tx_hash)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_pending_payments(self) -> list[Payment]:
        """Pending payments that have a tx hash to check."""
        stmt = (
            select(Payment)
            .where(
                Payment.status == PaymentStatus.PENDING.value,
                Payment.tx_hash.is_not(None),
            )
            .order_by(Payment.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_payment_status(
        self,
        payment_id: int,
        status: PaymentStatus,
        tx_hash: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Optional[Payment]:
        """Update payment status. Returns None if the payment does not exist."""
        payment = await self.get_payment(payment_id)
        if payment is None:
            return None
        payment.status = status.value
        if tx_hash:
            payment.tx_hash = tx_hash
        if error_message:
            payment.error_message = error_message
        payment.updated_at = utcnow()
        await self.session.flush()
        return payment

    async def clear_payments(self) -> int:
        result = await self.session.execute(delete(Payment))
        await self.session.flush()
        return result.rowcount or 0

    # Swap order operations
    async def create_swap_order(
        self,
        order_id: str,
        provider: str,
        deposit_address: str,
        withdrawal_address: str,
        from_coin: str,
        to_coin: str,
        from_amount: Decimal,
        expected_to_amount: Decimal,
        status: str = SwapOrderStatus.WAITING.value,
        is_simulated: bool = False,
        expires_at: Optional[datetime] = None,
    ) -> SwapOrder:
        """Record a provider order and trim history to the newest records."""
        order = SwapOrder(
            order_id=order_id,
            provider=provider,
            deposit_address=deposit_address,
            withdrawal_address=withdrawal_address,
            from_coin=from_coin.upper(),
            to_coin=to_coin.upper(),
            from_amount=from_amount,
            expected_to_amount=expected_to_amount,
            status=status,
            is_simulated=is_simulated,
            expires_at=expires_at,
        )
        self.session.add(order)
        await self.session.flush()
        await self._trim_history(SwapOrder)
        return order

    async def get_swap_orders(self, limit: Optional[int] = None) -> list[SwapOrder]:
        """Get swap orders, newest first."""
        stmt = select(SwapOrder).order_by(SwapOrder.created_at.desc(), SwapOrder.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_swap_order(self, provider: str, order_id: str) -> Optional[SwapOrder]:
        stmt = select(SwapOrder).where(
            SwapOrder.provider == provider,
            SwapOrder.order_id == order_id,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_active_swap_orders(self) -> list[SwapOrder]:
        """Orders that have not reached a terminal status."""
        stmt = select(SwapOrder).where(
            SwapOrder.status.in_(
                [
                    SwapOrderStatus.WAITING.value,
                    SwapOrderStatus.CONFIRMING.value,
                    SwapOrderStatus.EXCHANGING.value,
                    SwapOrderStatus.SENDING.value,
                ]
            ),
            SwapOrder.is_simulated.is_(False),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_swap_order(
        self,
        order: SwapOrder,
        status: str,
        deposit_tx_hash: Optional[str] = None,
        withdrawal_tx_hash: Optional[str] = None,
    ) -> SwapOrder:
        order.status = status
        if deposit_tx_hash:
            order.deposit_tx_hash = deposit_tx_hash
        if withdrawal_tx_hash:
            order.withdrawal_tx_hash = withdrawal_tx_hash
        order.updated_at = utcnow()
        await self.session.flush()
        return order

    async def expire_swap_orders(self, now: Optional[datetime] = None) -> list[SwapOrder]:
        """Mark waiting orders past their expiry as expired."""
        now = now or utcnow()
        stmt = select(SwapOrder).where(
            SwapOrder.status == SwapOrderStatus.WAITING.value,
            SwapOrder.expires_at.is_not(None),
            SwapOrder.expires_at < now,
        )
        result = await self.session.execute(stmt)
        expired = list(result.scalars().all())
        for order in expired:
            order.status = SwapOrderStatus.EXPIRED.value
            order.updated_at = now
        await self.session.flush()
        return expired

    async def clear_swap_orders(self) -> int:
        result = await self.session.execute(delete(SwapOrder))
        await self.session.flush()
        return result.rowcount or 0

    # Address book operations
    async def get_address_book(self) -> list[AddressBookEntry]:
        result = await self.session.execute(select(AddressBookEntry))
        return list(result.scalars().all())

    async def get_address_book_entry(self, entry_id: int) -> Optional[AddressBookEntry]:
        return await self.session.get(AddressBookEntry, entry_id)

    async def find_address_book_entry(self, address: str) -> Optional[AddressBookEntry]:
        """Find an entry by address, ignoring case."""
        stmt = select(AddressBookEntry).where(
            func.lower(AddressBookEntry.address) == address.strip().lower()
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def add_address_book_entry(
        self,
        label: str,
        address: str,
        notes: Optional[str] = None,
    ) -> AddressBookEntry:
        entry = AddressBookEntry(label=label, address=address, notes=notes)
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def delete_address_book_entry(self, entry_id: int) -> bool:
        entry = await self.get_address_book_entry(entry_id)
        if entry is None:
            return False
        await self.session.delete(entry)
        await self.session.flush()
        return True

    async def clear_address_book(self) -> int:
        result = await self.session.execute(delete(AddressBookEntry))
        await self.session.flush()
        return result.rowcount or 0

    async def _trim_history(self, model) -> None:
        """Keep only the newest history_limit rows of a history table."""
        keep = (
            select(model.id)
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(self.history_limit)
        )
        await self.session.execute(
            delete(model).where(model.id.not_in(keep.scalar_subquery()))
        )
        await self.session.flush()
