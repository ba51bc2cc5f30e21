"""Monero address checks and amount conversions.

Only format-level checks live here. Checksums and key material are the
wallet software's business.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal
from typing import Optional, Union

ATOMIC_UNITS = Decimal("1000000000000")  # 1 XMR = 10^12 piconero
XMR_QUANTUM = Decimal("0.000000000001")

ADDRESS_MIN_LENGTH = 95
ADDRESS_MAX_LENGTH = 106

BASE58_RE = re.compile(r"^[123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz]+$")

MAINNET_PREFIXES = ("4", "8")  # standard, subaddress/integrated
TESTNET_PREFIXES = ("9", "A", "B")

_MAINNET_RE = re.compile(r"^4[0-9A-Za-z]{94,105}$")
_TESTNET_RE = re.compile(r"^[9A][0-9A-Za-z]{94,105}$")
_STAGENET_RE = re.compile(r"^5[0-9A-Za-z]{94,105}$")

TX_HASH_RE = re.compile(r"^[0-9a-fA-F]{64}$")

GENESIS_DATE = datetime(2014, 4, 18, tzinfo=timezone.utc)
BLOCKS_PER_DAY = 720  # ~2 minute block time
RESTORE_HEIGHT_BUFFER = 100

DEFAULT_FEE_ESTIMATE = Decimal("0.0001")

Amount = Union[Decimal, int, float, str]


@dataclass
class AddressValidation:
    """Result of a Monero address format check."""

    valid: bool
    error: Optional[str] = None


def validate_monero_address(address: Optional[str], allow_testnet: bool = False) -> AddressValidation:
    """Validate Monero address format.

    Args:
        address: Monero address to validate
        allow_testnet: Also accept testnet prefixes

    Returns:
        AddressValidation with an error message if invalid
    """
    if not address or not isinstance(address, str):
        return AddressValidation(False, "Address is required")

    trimmed = address.strip()

    if len(trimmed) < ADDRESS_MIN_LENGTH or len(trimmed) > ADDRESS_MAX_LENGTH:
        return AddressValidation(
            False,
            f"Invalid length: {len(trimmed)} chars "
            f"(expected {ADDRESS_MIN_LENGTH}-{ADDRESS_MAX_LENGTH})",
        )

    if not BASE58_RE.match(trimmed):
        return AddressValidation(False, "Invalid characters (must be Base58)")

    prefixes = MAINNET_PREFIXES + TESTNET_PREFIXES if allow_testnet else MAINNET_PREFIXES
    if trimmed[0] not in prefixes:
        return AddressValidation(
            False, f'Invalid prefix: "{trimmed[0]}" (expected {", ".join(prefixes)})'
        )

    return AddressValidation(True)


def is_valid_monero_address(address: str) -> bool:
    """Loose check accepting mainnet, testnet and stagenet standard addresses."""
    return bool(
        _MAINNET_RE.match(address) or _TESTNET_RE.match(address) or _STAGENET_RE.match(address)
    )


def is_valid_tx_hash(tx_hash: Optional[str]) -> bool:
    return bool(tx_hash) and bool(TX_HASH_RE.match(tx_hash))


def truncate_address(address: str, start_chars: int = 8, end_chars: int = 6) -> str:
    """Shorten an address for display."""
    if not address or len(address) <= start_chars + end_chars:
        return address
    return f"{address[:start_chars]}...{address[-end_chars:]}"


def addresses_equal(addr1: str, addr2: str) -> bool:
    """Compare two addresses ignoring case and surrounding whitespace."""
    return addr1.strip().lower() == addr2.strip().lower()


def to_xmr(amount: Amount) -> Decimal:
    """Normalise an amount to XMR precision (12 dp, rounded down)."""
    return Decimal(str(amount)).quantize(XMR_QUANTUM, rounding=ROUND_DOWN)


def xmr_to_atomic(amount: Amount) -> int:
    """Convert XMR to atomic units."""
    return int((Decimal(str(amount)) * ATOMIC_UNITS).to_integral_value(rounding=ROUND_DOWN))


def atomic_to_xmr(atomic: Union[int, str]) -> Decimal:
    """Convert atomic units to XMR."""
    return (Decimal(int(atomic)) / ATOMIC_UNITS).quantize(XMR_QUANTUM)


def format_xmr(amount: Amount, places: int = 12) -> str:
    """Fixed-point string with the given number of decimals."""
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(str(amount)).quantize(quantum, rounding=ROUND_DOWN))


def get_restore_height(created_at: datetime) -> int:
    """Estimate a wallet restore height from its creation date.

    Counts ~720 blocks per day since genesis and backs off a small buffer.
    """
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    days = (created_at - GENESIS_DATE).days
    return max(0, days * BLOCKS_PER_DAY - RESTORE_HEIGHT_BUFFER)


def estimate_transaction_fee(configured: Optional[Decimal] = None) -> Decimal:
    """Per-transaction fee estimate in XMR; a configured positive value wins."""
    if configured is not None and configured > 0:
        return Decimal(str(configured))
    return DEFAULT_FEE_ESTIMATE
