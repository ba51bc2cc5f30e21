"""Payment confirmation tracking against a Monero daemon.

Looks transactions up through the daemon's RPC (``/get_transactions`` and
``get_info``) and moves stored payments from pending to confirmed, or to
failed when the daemon does not know the transaction or it is too old.
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from typing import Optional

import httpx

from xmrsplit.ledger import LedgerRepository, Payment, PaymentStatus, get_db
from xmrsplit.ledger.models import utcnow
from xmrsplit.utils.monero import is_valid_tx_hash

logger = logging.getLogger(__name__)

MIN_CONFIRMATIONS = 10
MAX_TX_AGE_DAYS = 30
MIN_RUN_INTERVAL = 60.0

# Error wording that means "could not ask", not "the daemon said no"
TRANSIENT_ERROR_MARKERS = ("network", "timeout")


class TxStatus:
    CONFIRMED = "confirmed"
    PENDING = "pending"
    FAILED = "failed"
    NOT_FOUND = "not_found"


@dataclass
class TxStatusResult:
    tx_hash: str
    status: str
    confirmations: int = 0
    block_height: Optional[int] = None
    in_tx_pool: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BulkMonitorResult:
    updated: int = 0
    failed: int = 0
    results: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class DaemonError(Exception):
    """The Monero daemon could not answer."""


class TxMonitor:
    """Checks payment transactions on chain."""

    def __init__(
        self,
        daemon_url: str,
        min_confirmations: int = MIN_CONFIRMATIONS,
        max_tx_age_days: int = MAX_TX_AGE_DAYS,
        batch_delay: float = 1.0,
        min_run_interval: float = MIN_RUN_INTERVAL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.daemon_url = daemon_url.rstrip("/")
        self.min_confirmations = min_confirmations
        self.max_tx_age_days = max_tx_age_days
        self.batch_delay = batch_delay
        self.min_run_interval = min_run_interval
        self.timeout = timeout
        self._transport = transport
        self.last_run: Optional[float] = None

    async def _post(self, client: httpx.AsyncClient, path: str, payload: dict) -> dict:
        try:
            response = await client.post(f"{self.daemon_url}{path}", json=payload)
        except httpx.TimeoutException as e:
            raise DaemonError(f"Daemon timeout: {e}")
        except httpx.TransportError as e:
            raise DaemonError(f"Daemon network error: {e}")
        if response.status_code != 200:
            raise DaemonError(f"Daemon network error: HTTP {response.status_code}")
        return response.json()

    async def _chain_height(self, client: httpx.AsyncClient) -> int:
        data = await self._post(
            client, "/json_rpc", {"jsonrpc": "2.0", "id": "0", "method": "get_info"}
        )
        if "error" in data:
            raise DaemonError(f"get_info failed: {data['error'].get('message')}")
        return int(data["result"]["height"])

    async def check_tx_status(self, tx_hash: str) -> TxStatusResult:
        """Look a transaction up on the daemon.

        Daemon errors leave the transaction pending; only an explicit
        "not found" answer is reported as not_found.
        """
        if not is_valid_tx_hash(tx_hash):
            return TxStatusResult(
                tx_hash=tx_hash, status=TxStatus.FAILED, error="Invalid TX hash format"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                data = await self._post(
                    client, "/get_transactions", {"txs_hashes": [tx_hash], "decode_as_json": False}
                )
                txs = data.get("txs") or []
                if not txs or tx_hash in (data.get("missed_tx") or []):
                    return TxStatusResult(
                        tx_hash=tx_hash,
                        status=TxStatus.NOT_FOUND,
                        error="Transaction not found on blockchain",
                    )

                tx = txs[0]
                if tx.get("in_pool"):
                    return TxStatusResult(tx_hash=tx_hash, status=TxStatus.PENDING, in_tx_pool=True)

                block_height = tx.get("block_height")
                height = await self._chain_height(client)
        except (DaemonError, ValueError, KeyError) as e:
            logger.error(f"TX status check failed for {tx_hash}: {e}")
            return TxStatusResult(tx_hash=tx_hash, status=TxStatus.PENDING, error=str(e))

        confirmations = max(height - block_height, 0) if block_height is not None else 0
        if confirmations >= self.min_confirmations:
            status = TxStatus.CONFIRMED
        elif confirmations > 0:
            status = TxStatus.PENDING
        else:
            status = TxStatus.NOT_FOUND

        return TxStatusResult(
            tx_hash=tx_hash,
            status=status,
            confirmations=confirmations,
            block_height=block_height,
        )

    async def monitor_pending_payments(self, max_concurrent: int = 3) -> BulkMonitorResult:
        """Check every pending payment and update the ones that settled."""
        result = BulkMonitorResult()

        async with get_db() as session:
            pending = await LedgerRepository(session).get_pending_payments()

        if not pending:
            logger.debug("No pending payments to monitor")
            self.mark_run()
            return result

        logger.info(f"Monitoring {len(pending)} pending payments")

        cutoff = utcnow() - timedelta(days=self.max_tx_age_days)
        recent: list[Payment] = []
        for payment in pending:
            if payment.created_at < cutoff:
                logger.warning(
                    f"Payment {payment.id} is older than {self.max_tx_age_days} days, marking failed"
                )
                await self._set_status(payment, PaymentStatus.FAILED, "Transaction too old")
                result.failed += 1
            else:
                recent.append(payment)

        for start in range(0, len(recent), max_concurrent):
            batch = recent[start:start + max_concurrent]
            statuses = await asyncio.gather(
                *(self.check_tx_status(p.tx_hash) for p in batch),
                return_exceptions=True,
            )
            for payment, tx_status in zip(batch, statuses):
                if isinstance(tx_status, Exception):
                    result.errors.append(
                        {"payment_id": payment.id, "tx_hash": payment.tx_hash, "error": str(tx_status)}
                    )
                    continue
                await self._apply(payment, tx_status, result)

            if start + max_concurrent < len(recent):
                await asyncio.sleep(self.batch_delay)

        logger.info(
            f"Monitoring complete: {result.updated} updated, {result.failed} failed, "
            f"{len(result.errors)} errors"
        )
        self.mark_run()
        return result

    async def _apply(self, payment: Payment, tx_status: TxStatusResult, result: BulkMonitorResult) -> None:
        old_status = payment.status
        new_status = old_status

        if tx_status.status == TxStatus.CONFIRMED:
            new_status = PaymentStatus.CONFIRMED.value
            await self._set_status(payment, PaymentStatus.CONFIRMED)
            result.updated += 1
            logger.info(f"Payment {payment.id} confirmed ({tx_status.confirmations} confirmations)")
        elif tx_status.status == TxStatus.NOT_FOUND and tx_status.error:
            error = tx_status.error.lower()
            if not any(marker in error for marker in TRANSIENT_ERROR_MARKERS):
                new_status = PaymentStatus.FAILED.value
                await self._set_status(payment, PaymentStatus.FAILED, tx_status.error)
                result.failed += 1
                logger.warning(f"Payment {payment.id} failed: {tx_status.error}")

        result.results.append(
            {
                "payment_id": payment.id,
                "tx_hash": payment.tx_hash,
                "old_status": old_status,
                "new_status": new_status,
                "confirmations": tx_status.confirmations,
            }
        )

    async def _set_status(
        self,
        payment: Payment,
        status: PaymentStatus,
        error_message: Optional[str] = None,
    ) -> None:
        async with get_db() as session:
            await LedgerRepository(session).update_payment_status(
                payment.id, status, error_message=error_message
            )

    def should_run(self, now: Optional[float] = None) -> bool:
        """At most one monitoring pass per interval."""
        if self.last_run is None:
            return True
        now = now if now is not None else time.time()
        return now - self.last_run > self.min_run_interval

    def mark_run(self, now: Optional[float] = None) -> None:
        self.last_run = now if now is not None else time.time()

    async def get_stats(self) -> dict:
        async with get_db() as session:
            payments = await LedgerRepository(session).get_payments()

        def count(status: PaymentStatus) -> int:
            return sum(1 for p in payments if p.status == status.value)

        return {
            "total_payments": len(payments),
            "pending_count": count(PaymentStatus.PENDING),
            "pending_with_tx_count": sum(
                1 for p in payments if p.status == PaymentStatus.PENDING.value and p.tx_hash
            ),
            "confirmed_count": count(PaymentStatus.CONFIRMED),
            "failed_count": count(PaymentStatus.FAILED),
            "last_monitor_run": self.last_run,
        }
