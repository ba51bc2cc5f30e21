"""Wallet server: authenticated HTTP front for monero-wallet-rpc."""

import logging
import secrets
import time
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from xmrsplit.api.security import SecurityHeadersMiddleware
from xmrsplit.config import Settings, get_settings
from xmrsplit.utils.monero import atomic_to_xmr, xmr_to_atomic
from xmrsplit.walletd.monero_rpc import MoneroWalletRPC, WalletRPCError
from xmrsplit.walletd.wallets import SplitWalletManager
from xmrsplit.walletrpc.contracts import (
    BalanceResponse,
    ConsolidateRequest,
    CreateWalletRequest,
    CreateWalletResponse,
    DistributeRequest,
    HealthResponse,
    RestoreWalletRequest,
    RestoreWalletResponse,
    TransferRequest,
    TransferResponse,
    TxHashesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def require_api_secret(request: Request, x_api_secret: Optional[str] = Header(None)) -> None:
    """Verify the shared secret header. An unset secret rejects everything."""
    expected = request.app.state.api_secret
    if not expected or not x_api_secret or not secrets.compare_digest(x_api_secret, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_manager(request: Request) -> SplitWalletManager:
    return request.app.state.manager


def _rpc_failure(message: str, error: Exception, **extra) -> JSONResponse:
    logger.error(f"{message}: {error}")
    return JSONResponse(status_code=500, content={"success": False, "error": str(error), **extra})


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=int(time.time() * 1000))


@router.post(
    "/api/wallet/create",
    response_model=CreateWalletResponse,
    dependencies=[Depends(require_api_secret)],
)
async def create_wallet(
    body: CreateWalletRequest,
    manager: SplitWalletManager = Depends(get_manager),
):
    try:
        address, seed = await manager.create(body.wallet_index)
    except WalletRPCError as e:
        return _rpc_failure(f"Create wallet {body.wallet_index} failed", e)
    return CreateWalletResponse(success=True, address=address, seed=seed)


@router.post(
    "/api/wallet/restore",
    response_model=RestoreWalletResponse,
    dependencies=[Depends(require_api_secret)],
)
async def restore_wallet(
    body: RestoreWalletRequest,
    manager: SplitWalletManager = Depends(get_manager),
):
    try:
        address = await manager.restore(body.wallet_index, body.seed, body.restore_height)
    except WalletRPCError as e:
        return _rpc_failure(f"Restore wallet {body.wallet_index} failed", e)
    return RestoreWalletResponse(success=True, address=address)


@router.post(
    "/api/wallet/transfer",
    response_model=TransferResponse,
    dependencies=[Depends(require_api_secret)],
)
async def transfer(
    body: TransferRequest,
    manager: SplitWalletManager = Depends(get_manager),
):
    logger.info(f"Transfer: wallet {body.wallet_index} -> {body.amount} XMR")
    try:
        tx_hash, fee = await manager.transfer(
            body.wallet_index,
            body.to_address,
            xmr_to_atomic(body.amount),
            body.priority,
        )
    except WalletRPCError as e:
        return _rpc_failure("Transfer failed", e)
    logger.info(f"Transfer sent: {tx_hash}")
    return TransferResponse(success=True, tx_hash=tx_hash, fee=atomic_to_xmr(fee))


@router.get(
    "/api/wallet/balance",
    response_model=BalanceResponse,
    dependencies=[Depends(require_api_secret)],
)
async def balance(
    wallet_index: int = Query(0, alias="walletIndex", ge=0, le=4),
    manager: SplitWalletManager = Depends(get_manager),
):
    try:
        total, unlocked = await manager.balance(wallet_index)
    except WalletRPCError as e:
        return _rpc_failure(f"Balance check for wallet {wallet_index} failed", e)
    return BalanceResponse(success=True, balance=total, unlocked_balance=unlocked)


@router.post(
    "/api/wallet/distribute",
    response_model=TxHashesResponse,
    dependencies=[Depends(require_api_secret)],
)
async def distribute(
    body: DistributeRequest,
    manager: SplitWalletManager = Depends(get_manager),
):
    logger.info(
        f"Distribute from wallet {body.from_wallet_index} "
        f"({body.percentage or 'split'}{'%' if body.percentage else ''})"
    )
    try:
        tx_hashes = await manager.distribute(body.from_wallet_index, body.percentage)
    except WalletRPCError as e:
        return _rpc_failure("Distribution failed", e)
    return TxHashesResponse(success=True, tx_hashes=tx_hashes)


@router.post(
    "/api/wallet/consolidate",
    response_model=TxHashesResponse,
    dependencies=[Depends(require_api_secret)],
)
async def consolidate(
    body: ConsolidateRequest,
    manager: SplitWalletManager = Depends(get_manager),
):
    sources = [
        (s.wallet_index, xmr_to_atomic(s.amount) if s.amount is not None else None)
        for s in body.sources
    ]
    logger.info(f"Consolidate {[i for i, _ in sources]} -> {body.target_wallet}")
    tx_hashes: list[str] = []
    try:
        await manager.consolidate(sources, body.target_wallet, tx_hashes)
    except WalletRPCError as e:
        return _rpc_failure("Consolidation failed", e, txHashes=tx_hashes)
    return TxHashesResponse(success=True, tx_hashes=tx_hashes)


def create_app(
    settings: Optional[Settings] = None,
    manager: Optional[SplitWalletManager] = None,
) -> FastAPI:
    """Create and configure the wallet server application."""
    settings = settings or get_settings()

    if manager is None:
        rpc = MoneroWalletRPC(
            settings.monero_wallet_rpc_url,
            user=settings.monero_wallet_rpc_user,
            password=settings.monero_wallet_rpc_password,
        )
        manager = SplitWalletManager(
            rpc, settings.wallet_file_prefix, settings.wallet_file_password
        )

    app = FastAPI(
        title="xmrsplit wallet server",
        description="Wallet operations for the five split wallets",
        version="0.1.0",
        debug=settings.debug,
    )
    app.state.api_secret = settings.wallet_server_secret
    app.state.manager = manager

    app.add_middleware(SecurityHeadersMiddleware, production=settings.is_production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.walletd_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-API-Secret"],
    )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "details": _details(exc)},
        )

    app.include_router(router)

    if not settings.wallet_server_secret:
        logger.warning("WALLET_SERVER_SECRET is not set - all wallet requests will be rejected")
    logger.info(f"Wallet server using monero-wallet-rpc at {manager.rpc.url}")
    return app


def _details(exc: RequestValidationError) -> list[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
