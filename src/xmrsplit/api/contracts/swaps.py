"""Swap contracts."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import ConfigDict, Field

from xmrsplit.api.contracts.base import CamelModel

QuoteCoin = Literal["BTC", "ETH", "SOL", "USDC"]
ExecuteCoin = Literal["BTC", "ETH", "LTC", "SOL", "USDC"]
ProviderName = Literal["BTCSwapXMR", "ChangeNOW", "GhostSwap"]


class SwapQuoteRequest(CamelModel):
    """Find the best route into XMR."""

    from_coin: QuoteCoin = Field(..., description="Coin to swap from")
    to_coin: Literal["XMR"] = Field("XMR", description="Target coin")
    amount: Decimal = Field(..., gt=0, le=1_000_000, description="Amount of from_coin")


class RouteModel(CamelModel):
    provider: str
    from_coin: str
    to_coin: str
    from_amount: Decimal
    to_amount: Decimal
    fee: Decimal
    estimated_time: str
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    is_simulated: bool = False


class SwapQuoteResponse(CamelModel):
    route: RouteModel


class SupportedCoinsResponse(CamelModel):
    supported_coins: list[str]
    target_coin: str = "XMR"


class ExecuteSwapRequest(CamelModel):
    """Create an exchange order with a provider."""

    provider: ProviderName
    from_coin: ExecuteCoin
    to_coin: Literal["XMR"] = "XMR"
    amount: Decimal = Field(..., gt=0, le=1_000_000)
    xmr_address: str = Field(..., min_length=95, max_length=106, description="Payout XMR address")


class SwapOrderModel(CamelModel):
    order_id: str
    provider: str
    deposit_address: str
    deposit_amount: Decimal
    deposit_currency: str
    expected_receive_amount: Decimal
    receive_currency: str
    withdrawal_address: str
    status: str
    is_simulated: bool = False
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ExecuteSwapResponse(CamelModel):
    success: bool = True
    order: SwapOrderModel
    message: str


class SwapStatusRequest(CamelModel):
    order_id: str = Field(..., min_length=1, max_length=100)
    provider: ProviderName


class SwapStatusModel(CamelModel):
    order_id: str
    status: str
    deposit_tx_hash: Optional[str] = None
    withdrawal_tx_hash: Optional[str] = None
    amount_received: Optional[Decimal] = None
    amount_sent: Optional[Decimal] = None
    confirmations: Optional[int] = None
    message: Optional[str] = None


class SwapStatusResponse(CamelModel):
    success: bool = True
    status: SwapStatusModel


class SwapRecord(CamelModel):
    """Stored swap order."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: str
    provider: str
    deposit_address: str
    withdrawal_address: str
    from_coin: str
    to_coin: str
    from_amount: Decimal
    expected_to_amount: Decimal
    status: str
    deposit_tx_hash: Optional[str] = None
    withdrawal_tx_hash: Optional[str] = None
    is_simulated: bool = False
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class SwapHistoryResponse(CamelModel):
    swaps: list[SwapRecord]
    count: int
