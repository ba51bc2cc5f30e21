"""Background monitor runner.

Refreshes pending payment statuses, refreshes active swap orders and
expires swap orders that were never funded.

Usage:
    python -m xmrsplit.monitoring.runner --interval 60

Environment variables:
    MONERO_DAEMON_URL: Monero daemon used for confirmations
    MONITOR_INTERVAL: Seconds between cycles (default: 60)
    MONITOR_CONCURRENCY: Concurrent daemon lookups (default: 3)
"""

import argparse
import asyncio
import logging
from typing import Optional

from xmrsplit.config import get_settings
from xmrsplit.ledger.database import close_db, init_db
from xmrsplit.monitoring import get_tx_monitor
from xmrsplit.monitoring.tx_monitor import TxMonitor
from xmrsplit.services import get_swap_service
from xmrsplit.services.swap_service import SwapService
from xmrsplit.swap_providers.errors import SwapError

logger = logging.getLogger(__name__)


class MonitorRunner:
    """Runs payment and swap monitoring on an interval."""

    def __init__(
        self,
        monitor: TxMonitor,
        swap_service: SwapService,
        interval: int = 60,
        max_concurrent: int = 3,
    ):
        """Initialize monitor runner.

        Args:
            monitor: Payment transaction monitor
            swap_service: Service used to refresh and expire swap orders
            interval: Seconds between cycles
            max_concurrent: Concurrent daemon lookups per batch
        """
        self.monitor = monitor
        self.swap_service = swap_service
        self.interval = interval
        self.max_concurrent = max_concurrent

    async def run_once(self) -> dict:
        """Run a single monitoring cycle.

        Returns:
            Summary of what changed
        """
        payments = await self.monitor.monitor_pending_payments(self.max_concurrent)

        try:
            swaps = await self.swap_service.refresh_active_orders()
        except SwapError as e:
            logger.error(f"Swap status refresh failed: {e}")
            swaps = {"checked": 0, "updated": 0, "errors": [{"error": e.message}]}

        expired = await self.swap_service.expire_stale_swaps()

        summary = {
            "payments_updated": payments.updated,
            "payments_failed": payments.failed,
            "payment_errors": len(payments.errors),
            "swaps_checked": swaps["checked"],
            "swaps_updated": swaps["updated"],
            "swaps_expired": expired,
        }
        if payments.updated or payments.failed or swaps["updated"] or expired:
            logger.info(f"Monitor cycle: {summary}")
        return summary

    async def run(self) -> None:
        """Run the continuous monitoring loop."""
        logger.info(
            f"Starting monitor (interval: {self.interval}s, "
            f"min_confirmations: {self.monitor.min_confirmations})"
        )

        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.exception(f"Monitor error: {e}")

            await asyncio.sleep(self.interval)


async def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the payment and swap monitor")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.monitor_interval,
        help=f"Seconds between cycles (default: {settings.monitor_interval})",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.monitor_concurrency,
        help=f"Concurrent daemon lookups (default: {settings.monitor_concurrency})",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run once and exit",
    )
    args = parser.parse_args(argv)

    runner = MonitorRunner(
        get_tx_monitor(),
        get_swap_service(),
        interval=args.interval,
        max_concurrent=args.concurrency,
    )

    await init_db()
    try:
        if args.once:
            summary = await runner.run_once()
            print(f"Monitor cycle: {summary}")
        else:
            await runner.run()
    finally:
        await close_db()


def run() -> None:
    """Console script entry point."""
    logging.basicConfig(
        level=logging.DEBUG if get_settings().debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(main())


if __name__ == "__main__":
    run()
