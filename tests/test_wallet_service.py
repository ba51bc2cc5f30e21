"""Tests for split wallet management."""

from datetime import datetime
from decimal import Decimal

import pytest

from conftest import make_seed

from xmrsplit.crypto import InvalidPasswordError
from xmrsplit.ledger import LedgerRepository, get_db
from xmrsplit.wallets import (
    WalletError,
    WalletServerError,
    WalletsExistError,
    WalletsNotFoundError,
)
from xmrsplit.wallets.errors import InsufficientFundsError


class TestCreateWallets:
    """Tests for wallet creation and the seed vault."""

    @pytest.mark.asyncio
    async def test_creates_five_wallets(self, wallet_service, fake_server):
        """Five wallets are created, one per wallet server index."""
        created = await wallet_service.create_wallets("correct horse")

        assert [w.id for w in created.wallets] == [1, 2, 3, 4, 5]
        assert [w.type for w in created.wallets] == ["cold", "cold", "hot", "cold", "reserve"]
        assert created.seeds == [make_seed(i) for i in range(5)]
        assert [b["walletIndex"] for b in fake_server.calls("/api/wallet/create")] == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_create_twice_rejected(self, wallet_service, wallets):
        with pytest.raises(WalletsExistError):
            await wallet_service.create_wallets("correct horse")

    @pytest.mark.asyncio
    async def test_weak_password(self, wallet_service):
        with pytest.raises(WalletError) as exc_info:
            await wallet_service.create_wallets("short")
        assert exc_info.value.code == "weak_password"

    @pytest.mark.asyncio
    async def test_wallet_server_failure(self, wallet_service, fake_server):
        """Nothing is stored when the wallet server cannot create a wallet."""
        fake_server.fail_create = True

        with pytest.raises(WalletServerError):
            await wallet_service.create_wallets("correct horse")
        assert not await wallet_service.wallets_exist()

    @pytest.mark.asyncio
    async def test_seeds_are_stored_encrypted(self, wallet_service, wallets):
        async with get_db() as session:
            vault = await LedgerRepository(session).get_vault()

        assert vault is not None
        assert make_seed(0) not in vault.encrypted_seeds

    @pytest.mark.asyncio
    async def test_reveal_seeds(self, wallet_service, wallets):
        assert await wallet_service.reveal_seeds("correct horse") == wallets.seeds

    @pytest.mark.asyncio
    async def test_reveal_seeds_wrong_password(self, wallet_service, wallets):
        with pytest.raises(InvalidPasswordError):
            await wallet_service.reveal_seeds("wrong horse")

    @pytest.mark.asyncio
    async def test_reveal_seeds_without_vault(self, wallet_service):
        with pytest.raises(WalletsNotFoundError):
            await wallet_service.reveal_seeds("correct horse")

    @pytest.mark.asyncio
    async def test_change_password(self, wallet_service, wallets):
        """After a password change only the new password opens the vault."""
        await wallet_service.change_password("correct horse", "battery staple")

        assert await wallet_service.reveal_seeds("battery staple") == wallets.seeds
        with pytest.raises(InvalidPasswordError):
            await wallet_service.reveal_seeds("correct horse")

    @pytest.mark.asyncio
    async def test_delete_wallets(self, wallet_service, wallets):
        await wallet_service.delete_wallets()

        assert await wallet_service.get_wallets() is None
        with pytest.raises(WalletsNotFoundError):
            await wallet_service.reveal_seeds("correct horse")


class TestRecoverWallets:
    """Tests for recovery from seed phrases."""

    @pytest.mark.asyncio
    async def test_recover(self, wallet_service, fake_server):
        seeds = [make_seed(i).upper() for i in range(5)]

        wallets = await wallet_service.recover_wallets(seeds, "correct horse")

        assert len(wallets) == 5
        assert fake_server.restore_heights == {i: 0 for i in range(5)}
        # Seeds are normalised before they are stored
        assert await wallet_service.reveal_seeds("correct horse") == [make_seed(i) for i in range(5)]

    @pytest.mark.asyncio
    async def test_restore_height_from_date(self, wallet_service, fake_server):
        seeds = [make_seed(i) for i in range(5)]

        await wallet_service.recover_wallets(seeds, "correct horse", restore_from=datetime(2024, 1, 1))

        assert all(height > 2_000_000 for height in fake_server.restore_heights.values())

    @pytest.mark.asyncio
    async def test_wrong_seed_count(self, wallet_service):
        with pytest.raises(WalletError) as exc_info:
            await wallet_service.recover_wallets([make_seed(0)] * 4, "correct horse")
        assert exc_info.value.code == "invalid_seeds"

    @pytest.mark.asyncio
    async def test_short_seed(self, wallet_service):
        """Every seed must have exactly 25 words."""
        seeds = [make_seed(i) for i in range(5)]
        seeds[2] = " ".join(seeds[2].split()[:24])

        with pytest.raises(WalletError) as exc_info:
            await wallet_service.recover_wallets(seeds, "correct horse")
        assert "Seed 3" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_recover_replaces_existing(self, wallet_service, wallets):
        await wallet_service.recover_wallets([make_seed(i) for i in range(5)], "new password")

        assert len(await wallet_service.get_wallets()) == 5
        assert await wallet_service.reveal_seeds("new password")


class TestBalances:
    """Tests for balance sync and the balance cache."""

    @pytest.mark.asyncio
    async def test_sync_balances(self, wallet_service, wallets, fake_server):
        fake_server.fund(0, "2.5")
        fake_server.fund(2, "1", unlocked="0.4")

        synced = await wallet_service.sync_balances()

        by_id = {w.id: w for w in synced}
        assert by_id[1].balance == Decimal("2.5")
        assert by_id[3].balance == Decimal("1")
        assert by_id[3].unlocked_balance == Decimal("0.4")
        assert all(w.balance_synced_at is not None for w in synced)
        assert await wallet_service.get_total_balance() == Decimal("3.5")
        assert await wallet_service.get_hot_wallet_balance() == Decimal("1")

    @pytest.mark.asyncio
    async def test_fresh_balances_not_refetched(self, wallet_service, wallets, fake_server):
        """Within the cache TTL a sync is served locally unless forced."""
        await wallet_service.sync_balances()
        fetched = len(fake_server.calls("/api/wallet/balance"))

        await wallet_service.sync_balances()
        assert len(fake_server.calls("/api/wallet/balance")) == fetched

        await wallet_service.sync_balances(force=True)
        assert len(fake_server.calls("/api/wallet/balance")) == fetched + 5

    @pytest.mark.asyncio
    async def test_sync_without_wallets(self, wallet_service):
        with pytest.raises(WalletsNotFoundError):
            await wallet_service.sync_balances()

    @pytest.mark.asyncio
    async def test_refresh_wallet(self, wallet_service, wallets, fake_server):
        fake_server.fund(2, "0.75")

        hot = await wallet_service.refresh_wallet(3)

        assert hot.balance == Decimal("0.75")
        assert hot.unlocked_balance == Decimal("0.75")


class TestFundMovements:
    """Tests for consolidation and distribution."""

    @pytest.mark.asyncio
    async def test_consolidate_to_target(self, wallet_service, wallets, fake_server):
        """Only the shortfall is pulled, from the largest cold wallet."""
        fake_server.fund(0, "1")
        fake_server.fund(1, "3")
        fake_server.fund(2, "0.5")
        await wallet_service.sync_balances()

        result = await wallet_service.consolidate_to_hot_wallet(Decimal("2"))

        assert result.success
        assert result.source_wallets == [2]
        assert result.consolidated_amount == Decimal("1.5")
        request = fake_server.calls("/api/wallet/consolidate")[0]
        assert request["targetWallet"] == 2
        assert request["sources"][0]["walletIndex"] == 1
        assert Decimal(request["sources"][0]["amount"]) == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_consolidate_marks_balances_stale(self, wallet_service, wallets, fake_server):
        fake_server.fund(0, "3")
        await wallet_service.sync_balances()

        await wallet_service.consolidate_to_hot_wallet(Decimal("1"))

        by_id = {w.id: w for w in await wallet_service.get_wallets()}
        assert by_id[1].balance_synced_at is None
        assert by_id[3].balance_synced_at is None
        assert by_id[2].balance_synced_at is not None

    @pytest.mark.asyncio
    async def test_consolidate_not_needed(self, wallet_service, wallets, fake_server):
        fake_server.fund(2, "5")
        await wallet_service.sync_balances()

        result = await wallet_service.consolidate_to_hot_wallet(Decimal("1"))

        assert result.success
        assert result.consolidated_amount == Decimal("0")
        assert fake_server.calls("/api/wallet/consolidate") == []

    @pytest.mark.asyncio
    async def test_consolidate_uses_reserve(self, wallet_service, wallets, fake_server):
        fake_server.fund(4, "2")
        await wallet_service.sync_balances()

        result = await wallet_service.consolidate_to_hot_wallet(Decimal("1"))

        assert result.source_wallets == [5]

    @pytest.mark.asyncio
    async def test_consolidate_insufficient(self, wallet_service, wallets, fake_server):
        fake_server.fund(0, "0.1")
        await wallet_service.sync_balances()

        with pytest.raises(InsufficientFundsError):
            await wallet_service.consolidate_to_hot_wallet(Decimal("1"))

    @pytest.mark.asyncio
    async def test_sweep_everything(self, wallet_service, wallets, fake_server):
        """Without a target every other funded wallet is swept."""
        fake_server.fund(0, "1")
        fake_server.fund(4, "2")
        await wallet_service.sync_balances()

        result = await wallet_service.consolidate_to_hot_wallet()

        assert result.success
        assert result.source_wallets == [1, 5]
        assert result.consolidated_amount == Decimal("3")
        assert len(result.tx_hashes) == 2
        request = fake_server.calls("/api/wallet/consolidate")[0]
        assert request["sources"] == [{"walletIndex": 0}, {"walletIndex": 4}]

    @pytest.mark.asyncio
    async def test_consolidate_without_wallets(self, wallet_service):
        with pytest.raises(WalletsNotFoundError):
            await wallet_service.consolidate_to_hot_wallet(Decimal("1"))

    @pytest.mark.asyncio
    async def test_distribute_incoming(self, wallet_service, wallets, fake_server):
        await wallet_service.sync_balances()

        result = await wallet_service.distribute_incoming(from_wallet=1, percentage=Decimal("10"))

        assert result.success
        assert len(result.tx_hashes) == 1
        assert fake_server.calls("/api/wallet/distribute") == [
            {"fromWalletIndex": 0, "percentage": "10"}
        ]
        assert all(w.balance_synced_at is None for w in await wallet_service.get_wallets())

    @pytest.mark.asyncio
    async def test_apply_distribution(self, wallet_service, wallets):
        shares = await wallet_service.apply_distribution(Decimal("10"))

        assert shares[3] == Decimal("3")
        by_id = {w.id: w for w in await wallet_service.get_wallets()}
        assert by_id[3].balance == Decimal("3")
        assert by_id[5].balance == Decimal("1")
        assert await wallet_service.get_total_balance() == Decimal("10")
