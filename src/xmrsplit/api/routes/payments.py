"""Payment endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from xmrsplit.api.contracts.payments import (
    ClearedResponse,
    EstimateRequest,
    EstimateResponse,
    PaymentHistoryResponse,
    PaymentRecord,
    PaymentStatsResponse,
    PaymentStatusModel,
    PayRequest,
    PayResponse,
)
from xmrsplit.api.ratelimit import limiter, pay_limit
from xmrsplit.config import get_settings
from xmrsplit.payment import PaymentService, PaymentStage, get_payment_service
from xmrsplit.utils.explorer import get_explorer_url

logger = logging.getLogger(__name__)

router = APIRouter()

STAGE_STATUS_CODES = {
    PaymentStage.ERROR: 400,
    PaymentStage.CONSOLIDATING: 202,
}


@router.post("/pay", response_model=PayResponse)
@limiter.limit(pay_limit)
async def pay(
    request: Request,
    body: PayRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Pay an exact amount, consolidating into the hot wallet first if needed."""
    result = await service.execute_payment(body.shop_address, body.exact_amount, body.label)

    response = PayResponse(
        status=PaymentStatusModel(
            stage=result.stage.value,
            message=result.message,
            tx_id=result.tx_id,
            error=result.error,
            consolidation_tx_hashes=result.consolidation_tx_hashes,
        ),
        consolidation_needed=result.consolidation_needed,
        payment_id=result.payment_id,
        fee=result.fee,
        error=result.error,
    )
    if result.stage == PaymentStage.ERROR:
        logger.warning(f"Payment rejected: {result.message} ({result.error})")

    return JSONResponse(
        status_code=STAGE_STATUS_CODES.get(result.stage, 200),
        content=response.model_dump(mode="json", by_alias=True),
    )


@router.post("/pay/estimate", response_model=EstimateResponse)
async def estimate(
    body: EstimateRequest,
    service: PaymentService = Depends(get_payment_service),
):
    return EstimateResponse(**await service.get_payment_estimate(body.exact_amount))


@router.get("/payments", response_model=PaymentHistoryResponse)
async def payment_history(service: PaymentService = Depends(get_payment_service)):
    """Payment history, newest first."""
    explorer = get_settings().explorer
    payments = []
    for payment in await service.get_history():
        record = PaymentRecord.model_validate(payment)
        if payment.tx_hash:
            record.explorer_url = get_explorer_url(payment.tx_hash, explorer)
        payments.append(record)
    return PaymentHistoryResponse(payments=payments, count=len(payments))


@router.delete("/payments", response_model=ClearedResponse)
async def clear_payment_history(service: PaymentService = Depends(get_payment_service)):
    return ClearedResponse(cleared=await service.clear_history())


@router.get("/payments/stats", response_model=PaymentStatsResponse)
async def payment_stats(service: PaymentService = Depends(get_payment_service)):
    return PaymentStatsResponse(**await service.get_stats())
