"""Monero payment URI parsing (monero:<address>?tx_amount=...&recipient_name=...)."""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional
from urllib.parse import parse_qs

from xmrsplit.utils.monero import is_valid_monero_address

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^(xmr|monero):/?/?", re.IGNORECASE)


@dataclass
class PaymentRequest:
    address: str
    amount: Optional[Decimal] = None
    label: Optional[str] = None


def _first(params: dict[str, list[str]], *names: str) -> Optional[str]:
    for name in names:
        values = params.get(name)
        if values and values[0]:
            return values[0]
    return None


def parse_payment_uri(uri: str) -> Optional[PaymentRequest]:
    """Parse an ``xmr:`` or ``monero:`` payment URI.

    Both ``monero:4...`` and ``monero://4...`` forms are accepted.
    ``amount``/``tx_amount`` and ``label``/``recipient_name`` are read from
    the query string. Returns None when the address is not a valid Monero
    address.
    """
    if not uri:
        return None

    normalized = _SCHEME_RE.sub("", uri.strip(), count=1)
    address, _, query = normalized.partition("?")

    if not is_valid_monero_address(address):
        logger.debug(f"Payment URI rejected, invalid address: {address[:12]}")
        return None

    request = PaymentRequest(address=address)
    if not query:
        return request

    params = parse_qs(query)

    raw_amount = _first(params, "amount", "tx_amount")
    if raw_amount:
        try:
            amount = Decimal(raw_amount)
        except InvalidOperation:
            amount = None
        if amount is not None and amount.is_finite() and amount > 0:
            request.amount = amount

    request.label = _first(params, "label", "recipient_name")
    return request
