"""Abstract interface for swap-to-XMR providers."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import httpx

from xmrsplit.ledger.models import SwapOrderStatus
from xmrsplit.swap_providers.errors import (
    APIError,
    NetworkError,
    SwapError,
    SwapTimeoutError,
)

logger = logging.getLogger(__name__)

TARGET_COIN = "XMR"

# Provider status strings -> normalised order status
STATUS_MAP: dict[str, SwapOrderStatus] = {
    "new": SwapOrderStatus.WAITING,
    "waiting": SwapOrderStatus.WAITING,
    "pending": SwapOrderStatus.WAITING,
    "waiting_deposit": SwapOrderStatus.WAITING,
    "confirming": SwapOrderStatus.CONFIRMING,
    "verifying": SwapOrderStatus.CONFIRMING,
    "exchanging": SwapOrderStatus.EXCHANGING,
    "processing": SwapOrderStatus.EXCHANGING,
    "sending": SwapOrderStatus.SENDING,
    "finished": SwapOrderStatus.FINISHED,
    "completed": SwapOrderStatus.FINISHED,
    "failed": SwapOrderStatus.FAILED,
    "refunded": SwapOrderStatus.REFUNDED,
    "expired": SwapOrderStatus.EXPIRED,
    "unavailable": SwapOrderStatus.UNAVAILABLE,
}


def normalize_status(raw_status: Optional[str]) -> Optional[SwapOrderStatus]:
    """Map a provider status to an order status. Unknown values map to None."""
    if not raw_status:
        return None
    return STATUS_MAP.get(raw_status.lower())


@dataclass
class ProviderQuote:
    """A swap quote from a provider."""

    provider: str
    from_coin: str
    to_coin: str
    from_amount: Decimal
    to_amount: Decimal
    fee: Decimal
    estimated_time: str
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    available: bool = True
    message: Optional[str] = None
    is_simulated: bool = False
    timestamp: float = field(default_factory=time.time)

    @property
    def effective_rate(self) -> Decimal:
        """Output per unit of input."""
        if self.from_amount == 0:
            return Decimal("0")
        return self.to_amount / self.from_amount

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "from_coin": self.from_coin,
            "to_coin": self.to_coin,
            "from_amount": str(self.from_amount),
            "to_amount": str(self.to_amount),
            "fee": str(self.fee),
            "estimated_time": self.estimated_time,
            "min_amount": str(self.min_amount) if self.min_amount is not None else None,
            "max_amount": str(self.max_amount) if self.max_amount is not None else None,
            "available": self.available,
            "message": self.message,
            "is_simulated": self.is_simulated,
        }


@dataclass
class ProviderOrder:
    """An exchange order created with a provider."""

    order_id: str
    provider: str
    deposit_address: str
    withdrawal_address: str
    from_coin: str
    to_coin: str
    from_amount: Decimal
    expected_to_amount: Decimal
    status: str
    expires_at: Optional[datetime] = None
    is_simulated: bool = False


@dataclass
class SwapStatusInfo:
    """Current state of a provider order."""

    order_id: str
    status: str
    deposit_tx_hash: Optional[str] = None
    withdrawal_tx_hash: Optional[str] = None
    amount_received: Optional[Decimal] = None
    amount_sent: Optional[Decimal] = None
    confirmations: Optional[int] = None
    message: Optional[str] = None

    @property
    def normalized_status(self) -> Optional[SwapOrderStatus]:
        return normalize_status(self.status)


class SwapProvider(ABC):
    """Abstract base class for swap providers."""

    request_timeout: float = 30.0

    def __init__(
        self,
        base_url: str,
        dry_run: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Provider API base URL
            dry_run: Fall back to simulated results when the provider fails
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.dry_run = dry_run
        self._transport = transport

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name as used on the wire (e.g. "ChangeNOW")."""
        pass

    @property
    @abstractmethod
    def fee_rate(self) -> Decimal:
        """Provider fee as a fraction of the input amount."""
        pass

    @property
    @abstractmethod
    def estimated_time(self) -> str:
        pass

    @property
    @abstractmethod
    def supported_coins(self) -> list[str]:
        """Coins this provider can swap into XMR."""
        pass

    @abstractmethod
    async def get_quote(self, from_coin: str, to_coin: str, amount: Decimal) -> ProviderQuote:
        """
        Get a swap quote.

        Args:
            from_coin: Source coin symbol (e.g., "BTC")
            to_coin: Destination coin symbol ("XMR")
            amount: Amount of from_coin to swap

        Returns:
            Quote with expected XMR output and fee

        Raises:
            SwapError: If the provider cannot quote and dry-run is off
        """
        pass

    @abstractmethod
    async def create_order(
        self,
        from_coin: str,
        to_coin: str,
        amount: Decimal,
        xmr_address: str,
    ) -> ProviderOrder:
        """Create an exchange order paying out to xmr_address."""
        pass

    @abstractmethod
    async def get_status(self, order_id: str) -> SwapStatusInfo:
        pass

    def supports_pair(self, from_coin: str, to_coin: str) -> bool:
        """Check if this provider supports the pair."""
        return from_coin.upper() in self.supported_coins and to_coin.upper() == TARGET_COIN

    def fee_for(self, amount: Decimal) -> Decimal:
        return amount * self.fee_rate

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.request_timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            SwapTimeoutError: On request timeout
            NetworkError: On connection failures
            APIError: On non-2xx responses, with the provider's message
        """
        url = f"{self.base_url}{path}"
        try:
            async with self._client(timeout) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise SwapTimeoutError(f"{self.name} request timeout", details=str(e))
        except httpx.TransportError as e:
            raise NetworkError(f"{self.name} network error: {e}", details=str(e))

        if response.status_code >= 400:
            raise APIError(
                f"{self.name} API error: {_error_message(response)}",
                status_code=response.status_code,
                details=_safe_json(response),
            )

        try:
            return response.json()
        except ValueError:
            raise APIError(
                f"{self.name} returned invalid JSON",
                status_code=response.status_code,
            )

    def _check_pair(self, from_coin: str, to_coin: str) -> None:
        if not self.supports_pair(from_coin, to_coin):
            raise SwapError(
                f"{self.name} does not support {from_coin}->{to_coin}",
                code="UNSUPPORTED_PAIR",
            )

    def _fallback(self, operation: str, error: SwapError) -> None:
        """Re-raise provider errors unless dry-run simulation is enabled."""
        if not self.dry_run:
            raise error
        logger.warning(f"{self.name} {operation} failed, using simulated result: {error}")


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:200]


def _error_message(response: httpx.Response) -> str:
    """Pull a message out of an error body, falling back to the status code."""
    body = _safe_json(response)
    if isinstance(body, dict):
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
    return str(response.status_code)
