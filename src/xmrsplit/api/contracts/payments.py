"""Payment contracts."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field

from xmrsplit.api.contracts.base import CamelModel


class PayRequest(CamelModel):
    """Pay an exact amount from the hot wallet."""

    shop_address: str = Field(..., min_length=95, max_length=106, description="Recipient XMR address")
    exact_amount: Decimal = Field(..., gt=0, le=100, description="Amount in XMR")
    label: Optional[str] = Field(None, max_length=100, description="Note for the payment history")


class EstimateRequest(CamelModel):
    exact_amount: Decimal = Field(..., gt=0, le=100, description="Amount in XMR")


class PaymentStatusModel(CamelModel):
    stage: str
    message: str
    tx_id: Optional[str] = None
    error: Optional[str] = None
    consolidation_tx_hashes: list[str] = Field(default_factory=list)


class PayResponse(CamelModel):
    status: PaymentStatusModel
    consolidation_needed: bool = False
    payment_id: Optional[int] = None
    fee: Optional[Decimal] = None
    error: Optional[str] = None


class EstimateResponse(CamelModel):
    possible: bool
    consolidation_needed: bool
    total_available: Decimal
    hot_wallet_balance: Decimal
    estimated_fee: Decimal


class PaymentRecord(CamelModel):
    """Stored payment."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: Decimal
    recipient: str
    label: Optional[str] = None
    status: str
    tx_hash: Optional[str] = None
    from_wallet: int
    fee: Optional[Decimal] = None
    consolidated: bool = False
    error_message: Optional[str] = None
    explorer_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaymentHistoryResponse(CamelModel):
    payments: list[PaymentRecord]
    count: int


class PaymentStatsResponse(CamelModel):
    total_payments: int
    total_xmr: str
    total_fees: str
    confirmed: int
    pending: int
    failed: int


class ClearedResponse(CamelModel):
    success: bool = True
    cleared: int
