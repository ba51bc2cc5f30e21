"""Operations on the split wallets behind one monero-wallet-rpc process.

monero-wallet-rpc keeps a single wallet open, so each split wallet has its
own wallet file and every operation opens that file first. Operations hold
a lock keyed on the RPC URL for as long as their wallet is open.
"""

import logging
from contextlib import asynccontextmanager
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from xmrsplit.utils.locks import operation_lock
from xmrsplit.utils.monero import atomic_to_xmr
from xmrsplit.walletd.monero_rpc import MoneroWalletRPC
from xmrsplit.wallets.layout import WALLET_COUNT, WALLET_DISTRIBUTION, wallet_id_from_index

logger = logging.getLogger(__name__)

# Opening a wallet can take a while on a cold RPC
WALLET_LOCK_TIMEOUT = 300.0


class SplitWalletManager:
    """Runs wallet operations against per-index wallet files."""

    def __init__(self, rpc: MoneroWalletRPC, file_prefix: str, file_password: str = ""):
        self.rpc = rpc
        self.file_prefix = file_prefix
        self.file_password = file_password
        self._addresses: dict[int, str] = {}

    def filename(self, index: int) -> str:
        return f"{self.file_prefix}-{index}"

    @asynccontextmanager
    async def _opened(self, index: int, operation: str):
        async with operation_lock(
            f"wallet-rpc:{self.rpc.url}",
            timeout=WALLET_LOCK_TIMEOUT,
            operation=f"{operation} (wallet {index})",
        ):
            await self.rpc.open_wallet(self.filename(index), self.file_password)
            yield self.rpc

    async def create(self, index: int) -> tuple[str, str]:
        """Create the wallet file for an index. Returns (address, mnemonic)."""
        async with operation_lock(
            f"wallet-rpc:{self.rpc.url}",
            timeout=WALLET_LOCK_TIMEOUT,
            operation=f"create (wallet {index})",
        ):
            await self.rpc.create_wallet(self.filename(index), self.file_password)
            address = await self.rpc.get_address()
            seed = await self.rpc.query_key("mnemonic")
        self._addresses[index] = address
        logger.info(f"Created wallet {index}: {address[:12]}...")
        return address, seed

    async def restore(self, index: int, seed: str, restore_height: int = 0) -> str:
        """Restore the wallet file for an index from a mnemonic."""
        async with operation_lock(
            f"wallet-rpc:{self.rpc.url}",
            timeout=WALLET_LOCK_TIMEOUT,
            operation=f"restore (wallet {index})",
        ):
            address = await self.rpc.restore_deterministic_wallet(
                self.filename(index),
                seed,
                password=self.file_password,
                restore_height=restore_height,
            )
            if not address:
                address = await self.rpc.get_address()
        self._addresses[index] = address
        logger.info(f"Restored wallet {index} from height {restore_height}")
        return address

    async def address(self, index: int) -> str:
        if index not in self._addresses:
            async with self._opened(index, "get_address") as rpc:
                self._addresses[index] = await rpc.get_address()
        return self._addresses[index]

    async def balance(self, index: int) -> tuple[Decimal, Decimal]:
        """Returns (balance, unlocked_balance) in XMR."""
        async with self._opened(index, "get_balance") as rpc:
            balance, unlocked = await rpc.get_balance()
        return atomic_to_xmr(balance), atomic_to_xmr(unlocked)

    async def _unlocked_atomic(self, index: int) -> int:
        async with self._opened(index, "get_balance") as rpc:
            _, unlocked = await rpc.get_balance()
        return unlocked

    async def transfer(
        self,
        index: int,
        to_address: str,
        amount_atomic: int,
        priority: str = "normal",
    ) -> tuple[str, int]:
        """Send from a wallet. Returns (tx_hash, fee in atomic units)."""
        async with self._opened(index, "transfer") as rpc:
            result = await rpc.transfer([(to_address, amount_atomic)], priority)
        return result["tx_hash"], int(result.get("fee", 0))

    async def sweep(self, index: int, to_address: str) -> list[str]:
        async with self._opened(index, "sweep_all") as rpc:
            return await rpc.sweep_all(to_address)

    async def distribute(self, from_index: int, percentage: Optional[Decimal] = None) -> list[str]:
        """Send shares of a wallet's unlocked balance to the other wallets.

        With a percentage every other wallet receives that percent of the
        source balance; otherwise each receives its split share. All outputs
        go in one transaction.
        """
        unlocked = await self._unlocked_atomic(from_index)
        if unlocked <= 0:
            logger.info(f"Wallet {from_index} has no unlocked balance to distribute")
            return []

        destinations = []
        for target in range(WALLET_COUNT):
            if target == from_index:
                continue
            if percentage is not None:
                share = Decimal(percentage) / 100
            else:
                share = WALLET_DISTRIBUTION[wallet_id_from_index(target)]
            amount = int((Decimal(unlocked) * share).to_integral_value(rounding=ROUND_DOWN))
            if amount > 0:
                destinations.append((await self.address(target), amount))

        if not destinations:
            return []

        async with self._opened(from_index, "distribute") as rpc:
            result = await rpc.transfer(destinations)
        logger.info(f"Distributed from wallet {from_index} to {len(destinations)} wallets: {result['tx_hash']}")
        return [result["tx_hash"]]

    async def consolidate(
        self,
        sources: list[tuple[int, Optional[int]]],
        target_index: int,
        tx_hashes: list[str],
    ) -> list[str]:
        """Move funds from (index, atomic amount or None) sources into the target.

        A source without an amount, or with an amount at or above its
        unlocked balance, is swept. tx_hashes is filled as transfers
        succeed so callers can report partial progress.
        """
        target_address = await self.address(target_index)

        for index, amount in sources:
            if index == target_index:
                continue
            unlocked = await self._unlocked_atomic(index)
            if unlocked <= 0:
                logger.info(f"Wallet {index} has nothing unlocked, skipping")
                continue

            if amount is None or amount >= unlocked:
                hashes = await self.sweep(index, target_address)
                tx_hashes.extend(hashes)
                logger.info(f"Swept wallet {index} -> {target_index}: {hashes}")
            else:
                tx_hash, _ = await self.transfer(index, target_address, amount)
                tx_hashes.append(tx_hash)
                logger.info(f"Moved {atomic_to_xmr(amount)} XMR wallet {index} -> {target_index}: {tx_hash}")

        return tx_hashes
