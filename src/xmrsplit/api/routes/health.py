"""Health check endpoints."""

from fastapi import APIRouter

from xmrsplit.config import get_settings
from xmrsplit.walletrpc import get_wallet_client

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "xmrsplit"}


@router.get("/health/detailed")
async def detailed_health():
    """Detailed health check with configuration info and wallet server reachability."""
    settings = get_settings()
    wallet_server_ok = await get_wallet_client().health()
    return {
        "status": "healthy" if wallet_server_ok else "degraded",
        "service": "xmrsplit",
        "version": "0.1.0",
        "wallet_server": "reachable" if wallet_server_ok else "unreachable",
        "config": settings.get_safe_dict(),
    }
