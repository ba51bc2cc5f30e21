"""Tests for the ledger module."""

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import make_address, make_tx_hash

from xmrsplit.ledger import database
from xmrsplit.ledger.models import PaymentStatus, SwapOrderStatus, Wallet, utcnow
from xmrsplit.ledger.repository import LedgerRepository


def wallet(wallet_id: int, balance: str = "0") -> Wallet:
    return Wallet(
        id=wallet_id,
        address=make_address(str(wallet_id)),
        balance=Decimal(balance),
        unlocked_balance=Decimal(balance),
        type="hot" if wallet_id == 3 else "cold",
        label=f"Wallet {wallet_id}",
    )


class TestWalletOperations:
    """Tests for wallet records."""

    @pytest.mark.asyncio
    async def test_replace_wallets(self, ledger_repo: LedgerRepository, db_session):
        await ledger_repo.replace_wallets([wallet(i, "1") for i in range(1, 6)])
        await db_session.commit()

        wallets = await ledger_repo.get_wallets()
        assert [w.id for w in wallets] == [1, 2, 3, 4, 5]
        assert all(w.balance == Decimal("1") for w in wallets)
        assert await ledger_repo.count_wallets() == 5

    @pytest.mark.asyncio
    async def test_update_balance_sets_sync_time(self, ledger_repo: LedgerRepository):
        await ledger_repo.replace_wallets([wallet(3)])

        updated = await ledger_repo.update_wallet_balance(3, Decimal("2"), Decimal("1.5"))

        assert updated.balance == Decimal("2")
        assert updated.unlocked_balance == Decimal("1.5")
        assert updated.balance_synced_at is not None

    @pytest.mark.asyncio
    async def test_update_missing_wallet(self, ledger_repo: LedgerRepository):
        with pytest.raises(ValueError):
            await ledger_repo.update_wallet_balance(9, Decimal("1"), Decimal("1"))

    @pytest.mark.asyncio
    async def test_mark_stale(self, ledger_repo: LedgerRepository):
        await ledger_repo.replace_wallets([wallet(1), wallet(3)])
        await ledger_repo.update_wallet_balance(1, Decimal("1"), Decimal("1"))
        await ledger_repo.update_wallet_balance(3, Decimal("1"), Decimal("1"))

        await ledger_repo.mark_wallets_stale([3, 9])

        assert (await ledger_repo.get_wallet(1)).balance_synced_at is not None
        assert (await ledger_repo.get_wallet(3)).balance_synced_at is None

    @pytest.mark.asyncio
    async def test_delete_wallets_drops_vault(self, ledger_repo: LedgerRepository):
        await ledger_repo.replace_wallets([wallet(1)])
        await ledger_repo.save_vault("salt", "check", "seeds")

        await ledger_repo.delete_wallets()

        assert await ledger_repo.get_wallets() == []
        assert await ledger_repo.get_vault() is None


class TestVault:
    @pytest.mark.asyncio
    async def test_single_vault_row(self, ledger_repo: LedgerRepository):
        """Saving again replaces the stored vault."""
        first = await ledger_repo.save_vault("salt1", "check1", "seeds1")
        second = await ledger_repo.save_vault("salt2", "check2", "seeds2")

        assert first.id == second.id
        vault = await ledger_repo.get_vault()
        assert vault.encrypted_seeds == "seeds2"


class TestPaymentHistory:
    """Tests for payment records."""

    @pytest.mark.asyncio
    async def test_history_trimmed(self, db_session):
        repo = LedgerRepository(db_session, history_limit=3)
        for n in range(5):
            await repo.create_payment(Decimal("1"), make_address("S"), tx_hash=make_tx_hash(n))

        payments = await repo.get_payments()

        assert [p.tx_hash for p in payments] == [make_tx_hash(n) for n in (4, 3, 2)]

    @pytest.mark.asyncio
    async def test_pending_requires_tx_hash(self, ledger_repo: LedgerRepository):
        with_hash = await ledger_repo.create_payment(Decimal("1"), make_address("S"), tx_hash=make_tx_hash(1))
        await ledger_repo.create_payment(Decimal("1"), make_address("S"))
        done = await ledger_repo.create_payment(Decimal("1"), make_address("S"), tx_hash=make_tx_hash(2))
        await ledger_repo.update_payment_status(done.id, PaymentStatus.CONFIRMED)

        pending = await ledger_repo.get_pending_payments()

        assert [p.id for p in pending] == [with_hash.id]

    @pytest.mark.asyncio
    async def test_update_status(self, ledger_repo: LedgerRepository):
        payment = await ledger_repo.create_payment(Decimal("1"), make_address("S"))

        updated = await ledger_repo.update_payment_status(
            payment.id, PaymentStatus.FAILED, tx_hash=make_tx_hash(7), error_message="Transaction too old"
        )

        assert updated.status == "failed"
        assert updated.tx_hash == make_tx_hash(7)
        assert updated.error_message == "Transaction too old"
        assert (await ledger_repo.get_payment_by_tx_hash(make_tx_hash(7))).id == payment.id


class TestSwapOrders:
    """Tests for swap order records."""

    async def _order(self, repo, order_id, status=SwapOrderStatus.WAITING, simulated=False, expires_in=None):
        return await repo.create_swap_order(
            order_id=order_id,
            provider="ChangeNOW",
            deposit_address="0xdeposit",
            withdrawal_address=make_address("X"),
            from_coin="eth",
            to_coin="xmr",
            from_amount=Decimal("1"),
            expected_to_amount=Decimal("14"),
            status=status.value,
            is_simulated=simulated,
            expires_at=utcnow() + expires_in if expires_in is not None else None,
        )

    @pytest.mark.asyncio
    async def test_coins_uppercased(self, ledger_repo: LedgerRepository):
        order = await self._order(ledger_repo, "a")

        assert (order.from_coin, order.to_coin) == ("ETH", "XMR")

    @pytest.mark.asyncio
    async def test_active_orders(self, ledger_repo: LedgerRepository):
        """Terminal and simulated orders are not active."""
        await self._order(ledger_repo, "waiting")
        await self._order(ledger_repo, "sending", status=SwapOrderStatus.SENDING)
        await self._order(ledger_repo, "done", status=SwapOrderStatus.FINISHED)
        await self._order(ledger_repo, "sim", simulated=True)

        active = await ledger_repo.get_active_swap_orders()

        assert sorted(o.order_id for o in active) == ["sending", "waiting"]

    @pytest.mark.asyncio
    async def test_expire(self, ledger_repo: LedgerRepository):
        await self._order(ledger_repo, "late", expires_in=timedelta(minutes=-1))
        await self._order(ledger_repo, "open", expires_in=timedelta(minutes=30))
        await self._order(ledger_repo, "no-expiry")

        expired = await ledger_repo.expire_swap_orders()

        assert [o.order_id for o in expired] == ["late"]
        assert (await ledger_repo.get_swap_order("ChangeNOW", "late")).status == "expired"

    @pytest.mark.asyncio
    async def test_update_keeps_existing_hashes(self, ledger_repo: LedgerRepository):
        order = await self._order(ledger_repo, "a")
        await ledger_repo.update_swap_order(order, "confirming", deposit_tx_hash="0xin")

        await ledger_repo.update_swap_order(order, "finished", withdrawal_tx_hash="out")

        assert order.deposit_tx_hash == "0xin"
        assert order.withdrawal_tx_hash == "out"


class TestAddressBookRecords:
    @pytest.mark.asyncio
    async def test_find_ignores_case(self, ledger_repo: LedgerRepository):
        entry = await ledger_repo.add_address_book_entry("Shop", make_address("s"))

        found = await ledger_repo.find_address_book_entry(" " + make_address("S") + " ")

        assert found.id == entry.id

    @pytest.mark.asyncio
    async def test_delete_missing(self, ledger_repo: LedgerRepository):
        assert await ledger_repo.delete_address_book_entry(1) is False


class TestDatabaseUrl:
    def test_plain_sqlite_gets_async_driver(self, tmp_path):
        path = tmp_path / "data" / "xmrsplit.db"

        url = database._async_url(f"sqlite:///{path}")

        assert url == f"sqlite+aiosqlite:///{path}"
        assert path.parent.is_dir()

    def test_memory_and_other_backends_untouched(self):
        assert database._async_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
        assert database._async_url("postgresql+asyncpg://u:p@db/x") == "postgresql+asyncpg://u:p@db/x"

    def test_memory_database_keeps_its_name(self):
        """In-memory databases get the async driver but no file handling."""
        assert database._async_url("sqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
        assert database._file_database("sqlite+aiosqlite:///:memory:") is None
        assert database._file_database("postgresql+asyncpg://u:p@db/x") is None

    def test_file_database_path(self, tmp_path):
        path = tmp_path / "xmrsplit.db"

        assert database._file_database(f"sqlite+aiosqlite:///{path}") == str(path)
