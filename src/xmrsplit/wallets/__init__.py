"""The five split wallets: layout, consolidation planning and management."""

from typing import Optional

from xmrsplit.config import get_settings
from xmrsplit.walletrpc import get_wallet_client
from xmrsplit.wallets.consolidation import ConsolidationPlan, create_consolidation_plan
from xmrsplit.wallets.errors import (
    InsufficientFundsError,
    WalletError,
    WalletServerError,
    WalletsExistError,
    WalletsNotFoundError,
)
from xmrsplit.wallets.layout import HOT_WALLET_ID, WALLET_DISTRIBUTION, WALLET_TYPES
from xmrsplit.wallets.service import ConsolidationResult, CreatedWallets, WalletService

_service: Optional[WalletService] = None


def get_wallet_service() -> WalletService:
    """Process-wide wallet service built from settings."""
    global _service
    if _service is None:
        _service = WalletService(
            get_wallet_client(),
            balance_cache_ttl=get_settings().balance_cache_ttl,
        )
    return _service


def set_wallet_service(service: Optional[WalletService]) -> None:
    global _service
    _service = service


__all__ = [
    "ConsolidationPlan",
    "ConsolidationResult",
    "CreatedWallets",
    "HOT_WALLET_ID",
    "InsufficientFundsError",
    "WALLET_DISTRIBUTION",
    "WALLET_TYPES",
    "WalletError",
    "WalletServerError",
    "WalletService",
    "WalletsExistError",
    "WalletsNotFoundError",
    "create_consolidation_plan",
    "get_wallet_service",
    "set_wallet_service",
]
