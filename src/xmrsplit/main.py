"""Main entry point - runs the API and the background monitor."""

import asyncio
import logging
import signal

import uvicorn

from xmrsplit.api.app import create_app
from xmrsplit.config import get_settings
from xmrsplit.ledger.database import close_db, init_db
from xmrsplit.monitoring import get_tx_monitor
from xmrsplit.monitoring.runner import MonitorRunner
from xmrsplit.services import get_swap_service
from xmrsplit.walletrpc import get_wallet_client

logger = logging.getLogger(__name__)


class Application:
    """Main application that runs the API and the monitor loop."""

    def __init__(self):
        self.settings = get_settings()
        self._shutdown_event = asyncio.Event()

    async def start(self):
        """Start all services."""
        log_level = logging.DEBUG if self.settings.debug else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        logger.info("Starting xmrsplit...")
        logger.info(
            f"Environment: {self.settings.environment}"
            + (" [DRY RUN]" if self.settings.dry_run else "")
            + (" [TESTNET]" if self.settings.testnet else "")
        )

        await init_db()
        logger.info("Database initialized")

        if not await get_wallet_client().health():
            logger.warning(
                f"Wallet server at {self.settings.wallet_server_url} is unreachable; "
                "wallet operations will fail until it is up"
            )

        tasks = [asyncio.create_task(self._run_api())]
        logger.info("API task created")

        if self.settings.run_monitor:
            tasks.append(asyncio.create_task(self._run_monitor()))
            logger.info("Monitor task created")
        else:
            logger.warning("RUN_MONITOR disabled - payments will not be confirmed in-process")

        # Wait for shutdown signal or for a task to die
        waiter = asyncio.create_task(self._shutdown_event.wait())
        await asyncio.wait([waiter, *tasks], return_when=asyncio.FIRST_COMPLETED)

        for task in [waiter, *tasks]:
            task.cancel()
        await asyncio.gather(waiter, *tasks, return_exceptions=True)

        await self._cleanup()

    async def _run_api(self):
        """Run the FastAPI server."""
        try:
            config = uvicorn.Config(
                create_app(self.settings),
                host=self.settings.api_host,
                port=self.settings.api_port,
                log_level="debug" if self.settings.debug else "info",
            )
            server = uvicorn.Server(config)
            logger.info(f"Starting API server on {self.settings.api_host}:{self.settings.api_port}")
            await server.serve()
        except asyncio.CancelledError:
            logger.info("API server cancelled")
        except Exception as e:
            logger.error(f"API error: {e}")
            raise

    async def _run_monitor(self):
        """Run the payment and swap monitor loop."""
        runner = MonitorRunner(
            get_tx_monitor(),
            get_swap_service(),
            interval=self.settings.monitor_interval,
            max_concurrent=self.settings.monitor_concurrency,
        )
        try:
            await runner.run()
        except asyncio.CancelledError:
            logger.info("Monitor cancelled")

    async def _cleanup(self):
        logger.info("Cleaning up...")
        await close_db()
        logger.info("Cleanup complete")

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()


def main():
    """Main entry point."""
    app = Application()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
