"""Wallet contracts."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field

from xmrsplit.api.contracts.base import CamelModel


class WalletModel(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    address: str
    balance: Decimal
    unlocked_balance: Decimal
    type: str
    label: str
    balance_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class WalletsResponse(CamelModel):
    wallets: Optional[list[WalletModel]] = None
    total_balance: Optional[Decimal] = None
    message: Optional[str] = None


class CreateWalletsRequest(CamelModel):
    password: str = Field(..., min_length=8, max_length=256)


class CreateWalletsResponse(CamelModel):
    wallets: list[WalletModel]
    seeds: list[str] = Field(..., description="Shown once; back them up")


class RecoverWalletsRequest(CamelModel):
    seeds: list[str] = Field(..., min_length=5, max_length=5)
    password: str = Field(..., min_length=8, max_length=256)
    restore_from: Optional[datetime] = Field(None, description="Approximate wallet creation date")


class ConsolidateRequest(CamelModel):
    target_amount: Optional[Decimal] = Field(None, gt=0, description="Hot wallet target in XMR")


class ConsolidateResponse(CamelModel):
    success: bool
    consolidated_amount: Decimal
    tx_hashes: list[str] = Field(default_factory=list)
    source_wallets: list[int] = Field(default_factory=list)
    error: Optional[str] = None
    wallets: Optional[list[WalletModel]] = None


class SyncRequest(CamelModel):
    force: bool = False


class DistributeRequest(CamelModel):
    from_wallet: int = Field(1, ge=1, le=5)
    percentage: Optional[Decimal] = Field(None, ge=1, le=100)


class DistributeResponse(CamelModel):
    success: bool
    tx_hashes: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class RevealSeedsRequest(CamelModel):
    password: str = Field(..., min_length=1, max_length=256)


class RevealSeedsResponse(CamelModel):
    seeds: list[str]


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=8, max_length=256)


class SuccessResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
