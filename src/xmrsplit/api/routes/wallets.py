"""Wallet endpoints: creation, recovery, balances, fund movements and the seed vault."""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Request, Response

from xmrsplit.api.contracts.wallets import (
    ChangePasswordRequest,
    ConsolidateRequest,
    ConsolidateResponse,
    CreateWalletsRequest,
    CreateWalletsResponse,
    DistributeRequest,
    DistributeResponse,
    RecoverWalletsRequest,
    RevealSeedsRequest,
    RevealSeedsResponse,
    SuccessResponse,
    SyncRequest,
    WalletModel,
    WalletsResponse,
)
from xmrsplit.api.ratelimit import (
    consolidate_limit,
    limiter,
    wallet_create_limit,
    wallet_recover_limit,
)
from xmrsplit.wallets import WalletService, get_wallet_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _models(wallets) -> list[WalletModel]:
    return [WalletModel.model_validate(w) for w in wallets]


@router.get("/wallets", response_model=WalletsResponse)
async def list_wallets(
    response: Response,
    service: WalletService = Depends(get_wallet_service),
):
    """Stored wallets, or null before any are created."""
    response.headers["Cache-Control"] = "no-store"
    wallets = await service.get_wallets()
    if wallets is None:
        return WalletsResponse(message="No wallets found")
    return WalletsResponse(
        wallets=_models(wallets),
        total_balance=sum((w.balance for w in wallets), Decimal("0")),
    )


@router.post("/wallets/create", response_model=CreateWalletsResponse, status_code=201)
@limiter.limit(wallet_create_limit)
async def create_wallets(
    request: Request,
    body: CreateWalletsRequest,
    service: WalletService = Depends(get_wallet_service),
):
    """Create the five wallets. The seeds are returned once and never again unencrypted."""
    created = await service.create_wallets(body.password)
    logger.info("Wallets created")
    return CreateWalletsResponse(wallets=_models(created.wallets), seeds=created.seeds)


@router.post("/wallets/recover", response_model=WalletsResponse)
@limiter.limit(wallet_recover_limit)
async def recover_wallets(
    request: Request,
    body: RecoverWalletsRequest,
    service: WalletService = Depends(get_wallet_service),
):
    wallets = await service.recover_wallets(body.seeds, body.password, body.restore_from)
    return WalletsResponse(wallets=_models(wallets), message="Wallets recovered")


@router.post("/wallets/consolidate", response_model=ConsolidateResponse)
@limiter.limit(consolidate_limit)
async def consolidate(
    request: Request,
    body: ConsolidateRequest,
    service: WalletService = Depends(get_wallet_service),
):
    """Move funds into the hot wallet, either up to a target or everything."""
    result = await service.consolidate_to_hot_wallet(body.target_amount)
    wallets = await service.get_wallets()
    return ConsolidateResponse(
        success=result.success,
        consolidated_amount=result.consolidated_amount,
        tx_hashes=result.tx_hashes,
        source_wallets=result.source_wallets,
        error=result.error,
        wallets=_models(wallets) if wallets else None,
    )


@router.post("/wallets/sync", response_model=WalletsResponse)
async def sync_balances(
    body: SyncRequest,
    service: WalletService = Depends(get_wallet_service),
):
    wallets = await service.sync_balances(force=body.force)
    return WalletsResponse(
        wallets=_models(wallets),
        total_balance=sum((w.balance for w in wallets), Decimal("0")),
    )


@router.post("/wallets/distribute", response_model=DistributeResponse)
@limiter.limit(consolidate_limit)
async def distribute(
    request: Request,
    body: DistributeRequest,
    service: WalletService = Depends(get_wallet_service),
):
    """Split funds received in one wallet across the others."""
    result = await service.distribute_incoming(body.from_wallet, body.percentage)
    return DistributeResponse(success=result.success, tx_hashes=result.tx_hashes, error=result.error)


@router.post("/wallets/seeds", response_model=RevealSeedsResponse)
@limiter.limit(wallet_recover_limit)
async def reveal_seeds(
    request: Request,
    body: RevealSeedsRequest,
    service: WalletService = Depends(get_wallet_service),
):
    seeds = await service.reveal_seeds(body.password)
    logger.warning("Seed phrases revealed")
    return RevealSeedsResponse(seeds=seeds)


@router.post("/wallets/password", response_model=SuccessResponse)
@limiter.limit(wallet_recover_limit)
async def change_password(
    request: Request,
    body: ChangePasswordRequest,
    service: WalletService = Depends(get_wallet_service),
):
    await service.change_password(body.old_password, body.new_password)
    return SuccessResponse(message="Password changed")
