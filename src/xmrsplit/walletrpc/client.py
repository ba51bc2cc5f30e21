"""HTTP client for the wallet server.

All XMR movements go through here. Failures never raise: they are logged
and returned as a result with success=False and an error message.
"""

import logging
from decimal import Decimal
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from xmrsplit.walletrpc.contracts import (
    BalanceResponse,
    ConsolidateRequest,
    ConsolidateSource,
    CreateWalletRequest,
    CreateWalletResponse,
    DistributeRequest,
    Priority,
    RestoreWalletRequest,
    RestoreWalletResponse,
    TransferRequest,
    TransferResponse,
    TxHashesResponse,
)

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class WalletServerClient:
    """Client for the wallet server next to monero-wallet-rpc."""

    def __init__(
        self,
        base_url: str,
        secret: str,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.secret = secret
        self.timeout = timeout
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or self.timeout,
            headers={"X-API-Secret": self.secret},
            transport=self._transport,
        )

    async def _call(
        self,
        method: str,
        path: str,
        response_model: type[ResponseT],
        payload: Optional[BaseModel] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> ResponseT:
        json_body = payload.model_dump(mode="json", by_alias=True, exclude_none=True) if payload else None
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json_body, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Wallet server {method} {path} failed: {type(e).__name__}: {e}")
            return response_model(success=False, error=f"Wallet server unreachable: {e}")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            error = (data.get("error") or data.get("message")) if isinstance(data, dict) else None
            error = error or f"Wallet server error: HTTP {response.status_code}"
            logger.error(f"Wallet server {method} {path} returned {response.status_code}: {error}")
            return response_model(success=False, error=str(error))

        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Wallet server {method} {path} returned malformed data: {e}")
            return response_model(success=False, error="Malformed wallet server response")

    async def _post(
        self,
        path: str,
        response_model: type[ResponseT],
        request_model: type[BaseModel],
        **fields: Any,
    ) -> ResponseT:
        """Validate the request body locally, then POST it."""
        try:
            payload = request_model(**fields)
        except ValidationError as e:
            detail = e.errors()[0]
            field = ".".join(str(part) for part in detail["loc"])
            logger.error(f"Wallet server POST {path} not sent, invalid {field}: {detail['msg']}")
            return response_model(success=False, error=f"Invalid {field}: {detail['msg']}")
        return await self._call("POST", path, response_model, payload)

    async def transfer(
        self,
        wallet_index: int,
        to_address: str,
        amount: Decimal,
        priority: Priority = "normal",
    ) -> TransferResponse:
        """Send XMR from a wallet."""
        logger.info(f"Transfer {amount} XMR from wallet index {wallet_index}")
        return await self._post(
            "/api/wallet/transfer",
            TransferResponse,
            TransferRequest,
            wallet_index=wallet_index,
            to_address=to_address,
            amount=amount,
            priority=priority,
        )

    async def get_balance(self, wallet_index: int) -> BalanceResponse:
        return await self._call(
            "GET",
            "/api/wallet/balance",
            BalanceResponse,
            params={"walletIndex": wallet_index},
        )

    async def distribute(
        self,
        from_wallet_index: int,
        percentage: Optional[Decimal] = None,
    ) -> TxHashesResponse:
        """Spread a wallet's balance across the other wallets."""
        return await self._post(
            "/api/wallet/distribute",
            TxHashesResponse,
            DistributeRequest,
            from_wallet_index=from_wallet_index,
            percentage=percentage,
        )

    async def consolidate(
        self,
        sources: list[ConsolidateSource],
        target_wallet: int,
    ) -> TxHashesResponse:
        """Move funds from source wallets into the target wallet."""
        logger.info(
            f"Consolidate wallet indexes {[s.wallet_index for s in sources]} -> {target_wallet}"
        )
        return await self._post(
            "/api/wallet/consolidate",
            TxHashesResponse,
            ConsolidateRequest,
            sources=sources,
            target_wallet=target_wallet,
        )

    async def create_wallet(self, wallet_index: int) -> CreateWalletResponse:
        return await self._post(
            "/api/wallet/create",
            CreateWalletResponse,
            CreateWalletRequest,
            wallet_index=wallet_index,
        )

    async def restore_wallet(
        self,
        wallet_index: int,
        seed: str,
        restore_height: int = 0,
    ) -> RestoreWalletResponse:
        return await self._post(
            "/api/wallet/restore",
            RestoreWalletResponse,
            RestoreWalletRequest,
            wallet_index=wallet_index,
            seed=seed,
            restore_height=restore_height,
        )

    async def health(self) -> bool:
        """Check whether the wallet server is reachable."""
        try:
            async with self._client(timeout=10.0) as client:
                response = await client.get("/health")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Wallet server health check failed: {e}")
            return False
