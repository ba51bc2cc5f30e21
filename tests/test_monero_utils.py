"""Tests for Monero address checks, amounts and explorer links."""

from datetime import datetime
from decimal import Decimal

from conftest import make_address

from xmrsplit.utils.explorer import get_explorer_name, get_explorer_url
from xmrsplit.utils.monero import (
    addresses_equal,
    atomic_to_xmr,
    estimate_transaction_fee,
    format_xmr,
    get_restore_height,
    is_valid_monero_address,
    is_valid_tx_hash,
    to_xmr,
    truncate_address,
    validate_monero_address,
    xmr_to_atomic,
)


class TestAddressValidation:
    """Tests for validate_monero_address."""

    def test_standard_mainnet_address(self):
        """A 95-char address starting with 4 is valid."""
        assert validate_monero_address(make_address()).valid

    def test_integrated_length_accepted(self):
        """106-char integrated addresses are within the allowed length."""
        assert validate_monero_address(make_address(length=106)).valid

    def test_empty_address(self):
        result = validate_monero_address("")
        assert not result.valid
        assert result.error == "Address is required"

    def test_wrong_length(self):
        """Lengths outside 95..106 are rejected with the actual length."""
        result = validate_monero_address(make_address(length=94))
        assert not result.valid
        assert "94" in result.error

    def test_non_base58_characters(self):
        """0, O, I and l are not Base58."""
        result = validate_monero_address("4" + "0" * 94)
        assert not result.valid
        assert "Base58" in result.error

    def test_testnet_prefix_needs_flag(self):
        """Testnet prefixes are only accepted when allowed."""
        address = make_address(prefix="9")
        assert not validate_monero_address(address).valid
        assert validate_monero_address(address, allow_testnet=True).valid

    def test_surrounding_whitespace_ignored(self):
        assert validate_monero_address(f"  {make_address()}  ").valid

    def test_loose_check_accepts_stagenet(self):
        """The URI check also knows stagenet addresses."""
        assert is_valid_monero_address(make_address(prefix="5"))
        assert not is_valid_monero_address(make_address(prefix="7"))


class TestTxHash:
    def test_valid_hash(self):
        assert is_valid_tx_hash("ab" * 32)

    def test_invalid_hashes(self):
        assert not is_valid_tx_hash("ab" * 31)
        assert not is_valid_tx_hash("zz" * 32)
        assert not is_valid_tx_hash(None)


class TestAmounts:
    """Tests for XMR amount conversion."""

    def test_xmr_to_atomic(self):
        assert xmr_to_atomic(Decimal("1")) == 1_000_000_000_000
        assert xmr_to_atomic("0.000000000001") == 1

    def test_xmr_to_atomic_rounds_down(self):
        """Sub-piconero amounts are truncated, never rounded up."""
        assert xmr_to_atomic("0.0000000000019") == 1

    def test_atomic_to_xmr(self):
        assert atomic_to_xmr(1_500_000_000_000) == Decimal("1.5")
        assert atomic_to_xmr("1") == Decimal("0.000000000001")

    def test_to_xmr_quantizes(self):
        assert to_xmr("1.1234567890129") == Decimal("1.123456789012")

    def test_format_xmr(self):
        assert format_xmr(Decimal("1.5")) == "1.500000000000"
        assert format_xmr("2.123456", places=4) == "2.1234"


class TestHelpers:
    def test_truncate_address(self):
        address = make_address()
        truncated = truncate_address(address)
        assert truncated.startswith(address[:8])
        assert truncated.endswith(address[-6:])
        assert "..." in truncated

    def test_truncate_short_value_unchanged(self):
        assert truncate_address("4abc") == "4abc"

    def test_addresses_equal_ignores_case(self):
        assert addresses_equal(make_address("a"), make_address("A").lower())

    def test_restore_height_from_date(self):
        """About 720 blocks a day since genesis, minus a buffer."""
        height = get_restore_height(datetime(2014, 4, 28))
        assert height == 10 * 720 - 100

    def test_restore_height_never_negative(self):
        assert get_restore_height(datetime(2014, 4, 18)) == 0

    def test_fee_estimate(self):
        assert estimate_transaction_fee() == Decimal("0.0001")
        assert estimate_transaction_fee(Decimal("0.0005")) == Decimal("0.0005")
        assert estimate_transaction_fee(Decimal("0")) == Decimal("0.0001")


class TestExplorer:
    def test_default_explorer(self):
        url = get_explorer_url("ab" * 32)
        assert url.endswith("ab" * 32)
        assert url.startswith("https://")

    def test_unknown_explorer_falls_back(self):
        assert get_explorer_url("ab" * 32, "nope") == get_explorer_url("ab" * 32)
        assert get_explorer_name("nope") == get_explorer_name()
