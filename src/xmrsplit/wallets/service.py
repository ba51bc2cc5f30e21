"""Split wallet management.

Wallet keys live on the wallet server; locally we keep the five wallet
records, their last known balances and an encrypted backup of the seeds.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from xmrsplit.crypto import InvalidPasswordError, VaultCipher
from xmrsplit.ledger import LedgerRepository, Wallet, get_db
from xmrsplit.ledger.models import utcnow
from xmrsplit.utils.monero import get_restore_height
from xmrsplit.walletrpc.client import WalletServerClient
from xmrsplit.walletrpc.contracts import ConsolidateSource, TxHashesResponse
from xmrsplit.wallets.consolidation import create_consolidation_plan
from xmrsplit.wallets.errors import (
    WalletError,
    WalletServerError,
    WalletsExistError,
    WalletsNotFoundError,
)
from xmrsplit.wallets.layout import (
    HOT_WALLET_ID,
    WALLET_COUNT,
    WALLET_SLOTS,
    distribute_amount,
    wallet_index,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
SEED_WORD_COUNT = 25
CONSOLIDATION_SOURCE_TYPES = ("cold", "reserve")


@dataclass
class CreatedWallets:
    """New wallets plus their seeds, shown to the user once for backup."""

    wallets: list[Wallet]
    seeds: list[str]


@dataclass
class ConsolidationResult:
    success: bool
    consolidated_amount: Decimal = Decimal("0")
    tx_hashes: list[str] = field(default_factory=list)
    source_wallets: list[int] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "consolidated_amount": str(self.consolidated_amount),
            "tx_hashes": self.tx_hashes,
            "source_wallets": self.source_wallets,
            "error": self.error,
        }


def check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise WalletError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            code="weak_password",
        )


def normalize_seed(seed: str) -> str:
    """Collapse whitespace and lowercase a mnemonic."""
    return " ".join(seed.lower().split())


class WalletService:
    """Creates, recovers and moves funds between the five split wallets."""

    def __init__(
        self,
        client: WalletServerClient,
        balance_cache_ttl: int = 300,
    ):
        self.client = client
        self.balance_cache_ttl = balance_cache_ttl

    # Wallet lifecycle

    async def create_wallets(self, password: str) -> CreatedWallets:
        """Create the five wallets on the wallet server and store them locally.

        Raises:
            WalletError: Weak password
            WalletsExistError: Wallets were already created
            WalletServerError: The wallet server failed to create a wallet
        """
        check_password(password)
        if await self.wallets_exist():
            raise WalletsExistError("Wallets already exist. Delete them before creating new ones.")

        wallets: list[Wallet] = []
        seeds: list[str] = []
        for slot in WALLET_SLOTS:
            result = await self.client.create_wallet(wallet_index(slot.id))
            if not result.success or not result.address or not result.seed:
                raise WalletServerError(
                    f"Failed to create wallet {slot.id}: {result.error or 'no address returned'}"
                )
            wallets.append(_new_wallet(slot, result.address))
            seeds.append(result.seed)
            logger.info(f"Created wallet {slot.id} ({slot.type.value})")

        await self._store(wallets, seeds, password)
        return CreatedWallets(wallets=wallets, seeds=seeds)

    async def recover_wallets(
        self,
        seeds: list[str],
        password: str,
        restore_from: Optional[datetime] = None,
    ) -> list[Wallet]:
        """Restore the five wallets from their seeds, replacing local records.

        Args:
            seeds: One 25-word mnemonic per wallet, in wallet id order
            password: New vault password
            restore_from: Wallet creation date; scanning starts near it
        """
        if len(seeds) != WALLET_COUNT:
            raise WalletError(f"Exactly {WALLET_COUNT} seed phrases required", code="invalid_seeds")
        normalized = [normalize_seed(seed) for seed in seeds]
        for number, seed in enumerate(normalized, start=1):
            if len(seed.split()) != SEED_WORD_COUNT:
                raise WalletError(
                    f"Seed {number} must have exactly {SEED_WORD_COUNT} words",
                    code="invalid_seeds",
                )
        check_password(password)

        restore_height = get_restore_height(restore_from) if restore_from else 0
        logger.info(f"Recovering wallets from height {restore_height}")

        wallets: list[Wallet] = []
        for slot, seed in zip(WALLET_SLOTS, normalized):
            result = await self.client.restore_wallet(wallet_index(slot.id), seed, restore_height)
            if not result.success or not result.address:
                raise WalletServerError(
                    f"Failed to restore wallet {slot.id}: {result.error or 'no address returned'}"
                )
            wallets.append(_new_wallet(slot, result.address))

        await self._store(wallets, normalized, password)
        return wallets

    async def _store(self, wallets: list[Wallet], seeds: list[str], password: str) -> None:
        cipher = VaultCipher.create(password)
        async with get_db() as session:
            repo = LedgerRepository(session)
            await repo.replace_wallets(wallets)
            await repo.save_vault(
                salt=cipher.salt_b64,
                password_check=cipher.password_check_token(),
                encrypted_seeds=cipher.encrypt(json.dumps(seeds)),
            )

    async def get_wallets(self) -> Optional[list[Wallet]]:
        async with get_db() as session:
            wallets = await LedgerRepository(session).get_wallets()
        return wallets or None

    async def wallets_exist(self) -> bool:
        async with get_db() as session:
            return await LedgerRepository(session).count_wallets() > 0

    async def delete_wallets(self) -> None:
        """Forget the wallets and the seed vault. Wallet files stay on the server."""
        async with get_db() as session:
            await LedgerRepository(session).delete_wallets()
        logger.warning("Local wallet records and seed vault deleted")

    # Balances

    async def sync_balances(self, force: bool = False) -> list[Wallet]:
        """Refresh wallet balances from the wallet server.

        Balances synced within the cache TTL are kept unless force is set.
        A wallet whose balance cannot be fetched keeps its previous values.
        """
        wallets = await self.get_wallets()
        if not wallets:
            raise WalletsNotFoundError("No wallets found")

        cutoff = utcnow() - timedelta(seconds=self.balance_cache_ttl)
        stale = [
            w for w in wallets
            if force or w.balance_synced_at is None or w.balance_synced_at < cutoff
        ]
        if not stale:
            logger.debug("Wallet balances are fresh, skipping sync")
            return wallets

        fetched = {}
        for wallet in stale:
            result = await self.client.get_balance(wallet_index(wallet.id))
            if not result.success or result.balance is None:
                logger.warning(f"Balance sync failed for wallet {wallet.id}: {result.error}")
                continue
            fetched[wallet.id] = (result.balance, result.unlocked_balance or Decimal("0"))

        async with get_db() as session:
            repo = LedgerRepository(session)
            for wallet_id, (balance, unlocked) in fetched.items():
                await repo.update_wallet_balance(wallet_id, balance, unlocked)
            wallets = await repo.get_wallets()

        logger.info(f"Synced {len(fetched)}/{len(stale)} wallet balances")
        return wallets

    async def refresh_wallet(self, wallet_id: int) -> Wallet:
        """Fetch one wallet's balance now, bypassing the cache.

        Raises:
            WalletServerError: The wallet server could not report the balance
        """
        result = await self.client.get_balance(wallet_index(wallet_id))
        if not result.success or result.balance is None:
            raise WalletServerError(f"Balance check failed for wallet {wallet_id}: {result.error}")
        async with get_db() as session:
            return await LedgerRepository(session).update_wallet_balance(
                wallet_id, result.balance, result.unlocked_balance or Decimal("0")
            )

    async def get_total_balance(self) -> Decimal:
        wallets = await self.get_wallets() or []
        return sum((w.balance for w in wallets), Decimal("0"))

    async def get_hot_wallet_balance(self) -> Decimal:
        async with get_db() as session:
            hot = await LedgerRepository(session).get_wallet(HOT_WALLET_ID)
        return hot.balance if hot else Decimal("0")

    # Fund movements

    async def consolidate_to_hot_wallet(
        self,
        target_amount: Optional[Decimal] = None,
    ) -> ConsolidationResult:
        """Move funds from the other wallets into the hot wallet.

        With a target amount only the hot wallet's shortfall is moved, taken
        from the largest cold and reserve balances first. Without one every
        other wallet is swept.

        Raises:
            WalletsNotFoundError: No wallets
            InsufficientFundsError: The wallets together cannot reach the target
        """
        wallets = await self.get_wallets()
        if not wallets:
            raise WalletsNotFoundError("No wallets found")

        if target_amount is not None:
            plan = create_consolidation_plan(
                wallets, target_amount, source_types=CONSOLIDATION_SOURCE_TYPES
            )
            if plan is None:
                logger.info(f"Hot wallet already holds {target_amount} XMR")
                return ConsolidationResult(success=True)
            source_ids = plan.source_wallets
            amount = sum(plan.transfers.values(), Decimal("0"))
            sources = [
                ConsolidateSource(wallet_index=wallet_index(wid), amount=plan.transfers[wid])
                for wid in source_ids
            ]
        else:
            swept = [w for w in wallets if w.id != HOT_WALLET_ID and w.balance > 0]
            source_ids = [w.id for w in swept]
            amount = sum((w.balance for w in swept), Decimal("0"))
            sources = [ConsolidateSource(wallet_index=wallet_index(w.id)) for w in swept]

        if not sources:
            return ConsolidationResult(success=True)

        logger.info(f"Consolidating {amount} XMR from wallets {source_ids} into hot wallet")
        result = await self.client.consolidate(sources, wallet_index(HOT_WALLET_ID))

        async with get_db() as session:
            await LedgerRepository(session).mark_wallets_stale([*source_ids, HOT_WALLET_ID])

        if not result.success:
            logger.error(f"Consolidation failed: {result.error}")
            return ConsolidationResult(
                success=False,
                tx_hashes=result.tx_hashes,
                source_wallets=source_ids,
                error=result.error or "Consolidation failed",
            )

        return ConsolidationResult(
            success=True,
            consolidated_amount=amount,
            tx_hashes=result.tx_hashes,
            source_wallets=source_ids,
        )

    async def distribute_incoming(
        self,
        from_wallet: int = 1,
        percentage: Optional[Decimal] = None,
    ) -> TxHashesResponse:
        """Spread funds received in one wallet across the split."""
        if not await self.wallets_exist():
            raise WalletsNotFoundError("No wallets found")
        logger.info(f"Distributing from wallet {from_wallet}")
        result = await self.client.distribute(wallet_index(from_wallet), percentage)
        async with get_db() as session:
            await LedgerRepository(session).mark_wallets_stale(
                [slot.id for slot in WALLET_SLOTS]
            )
        if not result.success:
            logger.error(f"Distribution from wallet {from_wallet} failed: {result.error}")
        return result

    async def apply_distribution(self, total: Decimal) -> dict[int, Decimal]:
        """Credit a received total to the local balances by split share."""
        shares = distribute_amount(total)
        async with get_db() as session:
            repo = LedgerRepository(session)
            for wallet_id, share in shares.items():
                await repo.credit_wallet(wallet_id, share)
        return shares

    # Seed vault

    async def _open_vault(self, password: str) -> tuple[VaultCipher, str]:
        async with get_db() as session:
            vault = await LedgerRepository(session).get_vault()
        if vault is None:
            raise WalletsNotFoundError("No wallet vault found")
        cipher = VaultCipher.from_password(password, vault.salt)
        if not cipher.verify(vault.password_check):
            raise InvalidPasswordError("Invalid password")
        return cipher, vault.encrypted_seeds

    async def reveal_seeds(self, password: str) -> list[str]:
        """Decrypt the stored seeds.

        Raises:
            WalletsNotFoundError: No vault
            InvalidPasswordError: Wrong password
        """
        cipher, encrypted_seeds = await self._open_vault(password)
        return json.loads(cipher.decrypt(encrypted_seeds))

    async def change_password(self, old_password: str, new_password: str) -> None:
        """Re-encrypt the seeds under a new password and a fresh salt."""
        check_password(new_password)
        seeds = await self.reveal_seeds(old_password)
        cipher = VaultCipher.create(new_password)
        async with get_db() as session:
            await LedgerRepository(session).save_vault(
                salt=cipher.salt_b64,
                password_check=cipher.password_check_token(),
                encrypted_seeds=cipher.encrypt(json.dumps(seeds)),
            )
        logger.info("Vault password changed")


def _new_wallet(slot, address: str) -> Wallet:
    return Wallet(
        id=slot.id,
        address=address,
        balance=Decimal("0"),
        unlocked_balance=Decimal("0"),
        type=slot.type.value,
        label=slot.label,
    )
