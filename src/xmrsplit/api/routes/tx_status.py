"""Transaction confirmation endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from xmrsplit.api.contracts.tx_status import (
    BulkMonitorRequest,
    BulkMonitorResponse,
    TxStatusModel,
)
from xmrsplit.api.ratelimit import limiter, tx_status_limit
from xmrsplit.config import get_settings
from xmrsplit.monitoring import TxMonitor, get_tx_monitor
from xmrsplit.utils.explorer import get_explorer_url
from xmrsplit.utils.monero import is_valid_tx_hash

logger = logging.getLogger(__name__)

router = APIRouter()

# Single lookups and bulk runs draw from one bucket
tx_status_bucket = limiter.shared_limit(tx_status_limit, scope="tx-status")


@router.get("/tx-status", response_model=TxStatusModel)
@tx_status_bucket
async def tx_status(
    request: Request,
    tx_hash: str = Query(..., alias="txHash"),
    monitor: TxMonitor = Depends(get_tx_monitor),
):
    if not is_valid_tx_hash(tx_hash):
        raise HTTPException(status_code=400, detail="Invalid transaction hash format")

    result = await monitor.check_tx_status(tx_hash)
    return TxStatusModel(
        **result.to_dict(),
        explorer_url=get_explorer_url(tx_hash, get_settings().explorer),
    )


@router.post("/tx-status", response_model=BulkMonitorResponse)
@tx_status_bucket
async def monitor_pending(
    request: Request,
    body: BulkMonitorRequest,
    monitor: TxMonitor = Depends(get_tx_monitor),
):
    """Check every pending payment, at most once per monitor interval."""
    if not monitor.should_run():
        logger.debug("Bulk monitor skipped, last run too recent")
        return BulkMonitorResponse(skipped=True, updated=0, failed=0, results=[], errors=[])

    result = await monitor.monitor_pending_payments(get_settings().monitor_concurrency)
    return BulkMonitorResponse(**result.to_dict())
