"""Payment confirmation tracking and the background monitor loop."""

from typing import Optional

from xmrsplit.config import get_settings
from xmrsplit.monitoring.tx_monitor import (
    BulkMonitorResult,
    TxMonitor,
    TxStatus,
    TxStatusResult,
)

_monitor: Optional[TxMonitor] = None


def get_tx_monitor() -> TxMonitor:
    global _monitor
    if _monitor is None:
        settings = get_settings()
        _monitor = TxMonitor(
            settings.monero_daemon_url,
            min_confirmations=settings.min_confirmations,
            max_tx_age_days=settings.max_tx_age_days,
            batch_delay=settings.monitor_batch_delay,
        )
    return _monitor


def set_tx_monitor(monitor: Optional[TxMonitor]) -> None:
    global _monitor
    _monitor = monitor


__all__ = [
    "BulkMonitorResult",
    "TxMonitor",
    "TxStatus",
    "TxStatusResult",
    "get_tx_monitor",
    "set_tx_monitor",
]
