"""Minimal JSON-RPC client for monero-wallet-rpc.

Only the calls the wallet server needs. Amounts are atomic units.
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

PRIORITIES = {"low": 1, "normal": 2, "high": 3}


class WalletRPCError(Exception):
    """monero-wallet-rpc returned an error or could not be reached."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class MoneroWalletRPC:
    """Async client for a monero-wallet-rpc process."""

    def __init__(
        self,
        url: str,
        user: str = "",
        password: str = "",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.auth = httpx.DigestAuth(user, password) if (user or password) else None
        self.timeout = timeout
        self._transport = transport

    async def call(self, method: str, params: Optional[dict[str, Any]] = None) -> dict:
        """Call a JSON-RPC method and return its result.

        Raises:
            WalletRPCError: On HTTP failure or an RPC error object
        """
        payload = {"jsonrpc": "2.0", "id": "0", "method": method, "params": params or {}}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.url}/json_rpc", json=payload, auth=self.auth)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise WalletRPCError(f"RPC HTTP error: {e.response.status_code}")
        except httpx.HTTPError as e:
            raise WalletRPCError(f"RPC unreachable: {e}")

        if "error" in data:
            error = data["error"] or {}
            raise WalletRPCError(
                f"RPC error: {error.get('message', error)}", code=error.get("code")
            )
        return data.get("result", {})

    async def open_wallet(self, filename: str, password: str = "") -> None:
        await self.call("open_wallet", {"filename": filename, "password": password})

    async def close_wallet(self) -> None:
        await self.call("close_wallet")

    async def create_wallet(self, filename: str, password: str = "", language: str = "English") -> None:
        await self.call(
            "create_wallet",
            {"filename": filename, "password": password, "language": language},
        )

    async def restore_deterministic_wallet(
        self,
        filename: str,
        seed: str,
        password: str = "",
        restore_height: int = 0,
    ) -> str:
        """Restore a wallet from its mnemonic. Returns the primary address."""
        result = await self.call(
            "restore_deterministic_wallet",
            {
                "filename": filename,
                "seed": seed,
                "password": password,
                "restore_height": restore_height,
                "language": "English",
                "autosave_current": True,
            },
        )
        return result.get("address", "")

    async def get_address(self, account_index: int = 0) -> str:
        result = await self.call("get_address", {"account_index": account_index})
        return result["address"]

    async def query_key(self, key_type: str = "mnemonic") -> str:
        result = await self.call("query_key", {"key_type": key_type})
        return result["key"]

    async def get_balance(self, account_index: int = 0) -> tuple[int, int]:
        """Returns (balance, unlocked_balance) in atomic units."""
        result = await self.call("get_balance", {"account_index": account_index})
        return int(result.get("balance", 0)), int(result.get("unlocked_balance", 0))

    async def transfer(
        self,
        destinations: list[tuple[str, int]],
        priority: str = "normal",
    ) -> dict:
        """Send to one or more (address, atomic amount) destinations.

        Returns the RPC result (tx_hash, fee, ...).
        """
        return await self.call(
            "transfer",
            {
                "destinations": [
                    {"address": address, "amount": amount} for address, amount in destinations
                ],
                "priority": PRIORITIES.get(priority, 2),
                "get_tx_key": True,
            },
        )

    async def sweep_all(self, address: str, priority: str = "normal") -> list[str]:
        """Send the whole unlocked balance to address. Returns tx hashes."""
        result = await self.call(
            "sweep_all",
            {"address": address, "priority": PRIORITIES.get(priority, 2)},
        )
        return list(result.get("tx_hash_list", []))
