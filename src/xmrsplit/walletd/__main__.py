"""Run the wallet server.

Usage:
    python -m xmrsplit.walletd
"""

import logging

import uvicorn

from xmrsplit.config import get_settings
from xmrsplit.walletd.app import create_app


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger("xmrsplit.walletd")
    logger.info(f"Starting wallet server on {settings.walletd_host}:{settings.walletd_port}")
    logger.info(
        f"API secret: {'configured' if settings.wallet_server_secret else 'NOT SET'}"
    )

    uvicorn.run(
        create_app(settings),
        host=settings.walletd_host,
        port=settings.walletd_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
