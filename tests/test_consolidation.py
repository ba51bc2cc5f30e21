"""Tests for wallet layout and consolidation planning."""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from xmrsplit.swap_providers.errors import InsufficientFundsError
from xmrsplit.wallets.consolidation import create_consolidation_plan
from xmrsplit.wallets.layout import (
    HOT_WALLET_ID,
    WALLET_DISTRIBUTION,
    distribute_amount,
    wallet_id_from_index,
    wallet_index,
)


@dataclass
class W:
    id: int
    type: str
    balance: Decimal


def split(cold1="0", cold2="0", hot="0", cold4="0", reserve="0"):
    return [
        W(1, "cold", Decimal(cold1)),
        W(2, "cold", Decimal(cold2)),
        W(3, "hot", Decimal(hot)),
        W(4, "cold", Decimal(cold4)),
        W(5, "reserve", Decimal(reserve)),
    ]


class TestLayout:
    def test_shares_sum_to_one(self):
        assert sum(WALLET_DISTRIBUTION.values()) == Decimal("1")

    def test_hot_wallet_is_three(self):
        assert HOT_WALLET_ID == 3
        assert wallet_index(HOT_WALLET_ID) == 2

    def test_index_conversion(self):
        assert wallet_id_from_index(0) == 1
        with pytest.raises(ValueError):
            wallet_index(6)
        with pytest.raises(ValueError):
            wallet_id_from_index(5)

    def test_distribute_amount(self):
        """20/20/30/20/10 split."""
        shares = distribute_amount(Decimal("10"))
        assert shares == {
            1: Decimal("2"),
            2: Decimal("2"),
            3: Decimal("3"),
            4: Decimal("2"),
            5: Decimal("1"),
        }

    def test_distribute_never_exceeds_total(self):
        total = Decimal("0.000000000007")
        assert sum(distribute_amount(total).values()) <= total


class TestConsolidationPlan:
    """Tests for create_consolidation_plan."""

    def test_no_plan_when_hot_covers(self):
        assert create_consolidation_plan(split(hot="5"), Decimal("5")) is None

    def test_largest_cold_first(self):
        """The biggest balance is drawn first and only the deficit is moved."""
        plan = create_consolidation_plan(split(cold1="1", cold2="3", hot="0.5"), Decimal("2"))

        assert plan.source_wallets == [2]
        assert plan.transfers == {2: Decimal("1.5")}
        assert plan.deficit == Decimal("1.5")
        assert plan.target_wallet == HOT_WALLET_ID

    def test_multiple_sources(self):
        plan = create_consolidation_plan(split(cold1="1", cold2="1", cold4="1"), Decimal("2.5"))

        assert plan.source_wallets == [1, 2, 4]
        assert plan.transfers == {1: Decimal("1"), 2: Decimal("1"), 4: Decimal("0.5")}
        assert plan.total_amount == "3.00000000"
        assert plan.required_amount == "2.50000000"

    def test_reserve_excluded_by_default(self):
        with pytest.raises(InsufficientFundsError) as exc_info:
            create_consolidation_plan(split(reserve="10"), Decimal("1"))

        assert exc_info.value.required == Decimal("1")
        assert exc_info.value.available == Decimal("0")

    def test_reserve_allowed_as_source(self):
        plan = create_consolidation_plan(
            split(cold1="0.2", reserve="10"), Decimal("1"), source_types=("cold", "reserve")
        )
        assert plan.source_wallets == [5]

    def test_insufficient_across_wallets(self):
        with pytest.raises(InsufficientFundsError) as exc_info:
            create_consolidation_plan(split(cold1="0.3", hot="0.2"), Decimal("1"))

        assert exc_info.value.available == Decimal("0.5")
        assert exc_info.value.details == {"required": "1", "available": "0.5"}

    def test_missing_hot_wallet(self):
        with pytest.raises(ValueError):
            create_consolidation_plan([W(1, "cold", Decimal("1"))], Decimal("1"))

    def test_to_dict_uses_strings(self):
        plan = create_consolidation_plan(split(cold1="2"), Decimal("1"))
        data = plan.to_dict()
        assert data["transfers"] == {"1": "1"}
        assert data["deficit"] == "1"
