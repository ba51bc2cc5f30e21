"""Transaction status contracts."""

from typing import Literal, Optional

from xmrsplit.api.contracts.base import CamelModel


class TxStatusModel(CamelModel):
    tx_hash: str
    status: str
    confirmations: int = 0
    block_height: Optional[int] = None
    in_tx_pool: bool = False
    error: Optional[str] = None
    explorer_url: Optional[str] = None


class BulkMonitorRequest(CamelModel):
    mode: Literal["bulk"]


class MonitorEntry(CamelModel):
    payment_id: int
    tx_hash: str
    old_status: str
    new_status: str
    confirmations: int


class MonitorError(CamelModel):
    payment_id: int
    tx_hash: Optional[str] = None
    error: str


class BulkMonitorResponse(CamelModel):
    success: bool = True
    skipped: bool = False
    updated: int
    failed: int
    results: list[MonitorEntry]
    errors: list[MonitorError]
