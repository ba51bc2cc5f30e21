"""Request and response contracts for the wallet server API.

Shared by the wallet server (validation) and its client (parsing).
Amounts are XMR, never atomic units.
"""

from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import Field

from xmrsplit.api.contracts.base import CamelModel

# Wallet index 0-4 (wallet #1-5)
WalletIndex = Annotated[int, Field(ge=0, le=4)]

Priority = Literal["low", "normal", "high"]


class TransferRequest(CamelModel):
    wallet_index: WalletIndex
    to_address: str = Field(..., min_length=95, max_length=106)
    amount: Decimal = Field(..., gt=0, description="Amount in XMR")
    priority: Priority = "normal"


class TransferResponse(CamelModel):
    success: bool
    tx_hash: Optional[str] = None
    fee: Optional[Decimal] = Field(None, description="Network fee in XMR")
    error: Optional[str] = None


class BalanceResponse(CamelModel):
    success: bool
    balance: Optional[Decimal] = None
    unlocked_balance: Optional[Decimal] = None
    error: Optional[str] = None


class DistributeRequest(CamelModel):
    from_wallet_index: WalletIndex
    percentage: Optional[Decimal] = Field(
        None, ge=1, le=100, description="Percent of the source balance sent to each other wallet"
    )


class ConsolidateSource(CamelModel):
    wallet_index: WalletIndex
    amount: Optional[Decimal] = Field(None, gt=0, description="Sweep everything when omitted")


class ConsolidateRequest(CamelModel):
    sources: list[ConsolidateSource] = Field(..., min_length=1)
    target_wallet: WalletIndex


class TxHashesResponse(CamelModel):
    success: bool
    tx_hashes: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class CreateWalletRequest(CamelModel):
    wallet_index: WalletIndex


class CreateWalletResponse(CamelModel):
    success: bool
    address: Optional[str] = None
    seed: Optional[str] = None
    error: Optional[str] = None


class RestoreWalletRequest(CamelModel):
    wallet_index: WalletIndex
    seed: str = Field(..., min_length=1)
    restore_height: int = Field(default=0, ge=0)


class RestoreWalletResponse(CamelModel):
    success: bool
    address: Optional[str] = None
    error: Optional[str] = None


class HealthResponse(CamelModel):
    status: str
    timestamp: int
