"""Swap endpoints: best route, order creation, order status and history."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from xmrsplit.api.contracts.payments import ClearedResponse
from xmrsplit.api.contracts.swaps import (
    ExecuteSwapRequest,
    ExecuteSwapResponse,
    RouteModel,
    SupportedCoinsResponse,
    SwapHistoryResponse,
    SwapOrderModel,
    SwapQuoteRequest,
    SwapQuoteResponse,
    SwapRecord,
    SwapStatusModel,
    SwapStatusRequest,
    SwapStatusResponse,
)
from xmrsplit.api.errors import swap_error_response
from xmrsplit.api.ratelimit import (
    limiter,
    swap_execute_limit,
    swap_quote_limit,
    swap_status_limit,
)
from xmrsplit.services import SwapService, get_swap_service
from xmrsplit.swap_providers.errors import SwapError

logger = logging.getLogger(__name__)

router = APIRouter()

QUOTE_COINS = ["BTC", "ETH", "SOL", "USDC"]


@router.get("/swap", response_model=SupportedCoinsResponse)
async def supported_coins():
    return SupportedCoinsResponse(supported_coins=QUOTE_COINS, target_coin="XMR")


@router.post("/swap", response_model=SwapQuoteResponse)
@limiter.limit(swap_quote_limit)
async def best_route(
    request: Request,
    body: SwapQuoteRequest,
    service: SwapService = Depends(get_swap_service),
):
    """Cheapest available route from the chosen coin into XMR."""
    quote = await service.get_best_route(body.from_coin, body.amount, body.to_coin)
    if quote is None:
        raise HTTPException(status_code=404, detail="No swap routes available for this pair")

    # Unbounded pairs carry an infinite maximum
    max_amount = quote.max_amount if quote.max_amount is not None and quote.max_amount.is_finite() else None
    return SwapQuoteResponse(
        route=RouteModel(
            provider=quote.provider,
            from_coin=quote.from_coin,
            to_coin=quote.to_coin,
            from_amount=quote.from_amount,
            to_amount=quote.to_amount,
            fee=quote.fee,
            estimated_time=quote.estimated_time,
            min_amount=quote.min_amount,
            max_amount=max_amount,
            is_simulated=quote.is_simulated,
        )
    )


@router.post("/swap/execute", response_model=ExecuteSwapResponse)
@limiter.limit(swap_execute_limit)
async def execute_swap(
    request: Request,
    body: ExecuteSwapRequest,
    service: SwapService = Depends(get_swap_service),
):
    """Create an exchange order; the user then sends funds to the deposit address."""
    logger.info(f"Swap execute: {body.amount} {body.from_coin} -> {body.to_coin} via {body.provider}")
    try:
        order = await service.execute_swap(
            body.provider, body.from_coin, body.to_coin, body.amount, body.xmr_address
        )
    except SwapError as e:
        return swap_error_response(e, fallback="Swap creation failed")

    return ExecuteSwapResponse(
        order=SwapOrderModel(
            order_id=order.order_id,
            provider=order.provider,
            deposit_address=order.deposit_address,
            deposit_amount=order.from_amount,
            deposit_currency=order.from_coin,
            expected_receive_amount=order.expected_to_amount,
            receive_currency=order.to_coin,
            withdrawal_address=order.withdrawal_address,
            status=order.status,
            is_simulated=order.is_simulated,
            expires_at=order.expires_at,
            created_at=order.created_at,
        ),
        message=(
            f"Swap order created! Send {order.from_amount} {order.from_coin} "
            f"to {order.deposit_address}"
        ),
    )


@router.post("/swap/status", response_model=SwapStatusResponse)
@limiter.limit(swap_status_limit)
async def swap_status(
    request: Request,
    body: SwapStatusRequest,
    service: SwapService = Depends(get_swap_service),
):
    try:
        status = await service.get_swap_status(body.provider, body.order_id)
    except SwapError as e:
        return swap_error_response(e, fallback="Status check failed")

    return SwapStatusResponse(
        status=SwapStatusModel(
            order_id=status.order_id,
            status=status.status,
            deposit_tx_hash=status.deposit_tx_hash,
            withdrawal_tx_hash=status.withdrawal_tx_hash,
            amount_received=status.amount_received,
            amount_sent=status.amount_sent,
            confirmations=status.confirmations,
            message=status.message,
        )
    )


@router.get("/swaps", response_model=SwapHistoryResponse)
async def swap_history(service: SwapService = Depends(get_swap_service)):
    orders = await service.get_history()
    return SwapHistoryResponse(
        swaps=[SwapRecord.model_validate(o) for o in orders],
        count=len(orders),
    )


@router.delete("/swaps", response_model=ClearedResponse)
async def clear_swap_history(service: SwapService = Depends(get_swap_service)):
    return ClearedResponse(cleared=await service.clear_history())
