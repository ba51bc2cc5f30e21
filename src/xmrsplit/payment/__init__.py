"""Exact payments from the hot wallet, with consolidation and history."""

from typing import Optional

from xmrsplit.config import get_settings
from xmrsplit.payment.service import (
    PaymentService,
    PaymentStage,
    PaymentStatus,
    calculate_required_funds,
)
from xmrsplit.payment.uri import PaymentRequest, parse_payment_uri
from xmrsplit.walletrpc import get_wallet_client
from xmrsplit.wallets import get_wallet_service

_service: Optional[PaymentService] = None


def get_payment_service() -> PaymentService:
    global _service
    if _service is None:
        settings = get_settings()
        _service = PaymentService(
            get_wallet_service(),
            get_wallet_client(),
            max_amount=settings.max_payment_amount,
            history_limit=settings.history_limit,
            allow_testnet=settings.testnet,
            fee_estimate=settings.estimated_fee,
        )
    return _service


def set_payment_service(service: Optional[PaymentService]) -> None:
    global _service
    _service = service


__all__ = [
    "PaymentRequest",
    "PaymentService",
    "PaymentStage",
    "PaymentStatus",
    "calculate_required_funds",
    "get_payment_service",
    "parse_payment_uri",
    "set_payment_service",
]
