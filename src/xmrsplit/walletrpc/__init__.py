"""Client for the wallet server that fronts monero-wallet-rpc."""

import logging
from typing import Optional

from xmrsplit.config import get_settings
from xmrsplit.walletrpc.client import WalletServerClient

logger = logging.getLogger(__name__)

_client: Optional[WalletServerClient] = None


def get_wallet_client() -> WalletServerClient:
    """Process-wide wallet server client built from settings."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.wallet_server_secret:
            logger.warning("WALLET_SERVER_SECRET is not set - the wallet server will refuse every request")
        _client = WalletServerClient(
            settings.wallet_server_url,
            settings.wallet_server_secret,
            timeout=settings.wallet_server_timeout,
        )
    return _client


def set_wallet_client(client: Optional[WalletServerClient]) -> None:
    global _client
    _client = client


__all__ = ["WalletServerClient", "get_wallet_client", "set_wallet_client"]
