"""Tests for the equal installment solver."""

from datetime import date
from decimal import Decimal

import pytest

from emi_engine.calc.annuity import (
    EmiAdjustment,
    compute_emi,
    fn_result,
    get_emi_adjustment,
    get_uncountable_periods,
    rate_factor_plus_1_n,
)
from emi_engine.exceptions import ScheduleComputationError
from emi_engine.models.schedule import RepaymentPeriod
from emi_engine.numeric import NumericContext

MONTHLY_FACTOR = Decimal("1.007901833333")


def _periods(emis: list[str]) -> list[RepaymentPeriod]:
    periods = []
    for index, emi in enumerate(emis):
        period = RepaymentPeriod.empty(date(2024, 1 + index, 1), date(2024, 2 + index, 1), Decimal("0.00"))
        period.emi = Decimal(emi)
        period.original_emi = Decimal(emi)
        periods.append(period)
    return periods


class TestComputeEmi:
    """Tests for compute_emi."""

    def test_six_monthly_periods(self) -> None:
        """Test 100 over six 9.4822% months."""
        assert compute_emi(Decimal("100"), [MONTHLY_FACTOR] * 6, NumericContext()) == Decimal("17.13")

    def test_zero_interest_splits_evenly(self) -> None:
        """Test zero rates divide the principal by the period count."""
        assert compute_emi(Decimal("1000"), [Decimal(1)] * 4, NumericContext()) == Decimal("250.00")

    def test_single_period(self) -> None:
        """Test one period repays principal plus one period of interest."""
        emi = compute_emi(Decimal("1000"), [Decimal("1.005833333333")], NumericContext())

        assert emi == Decimal("1005.83")

    def test_no_periods(self) -> None:
        """Test an empty period list is rejected."""
        with pytest.raises(ScheduleComputationError):
            compute_emi(Decimal("100"), [], NumericContext())

    def test_building_blocks(self) -> None:
        """Test the product and denominator folds."""
        numeric = NumericContext()
        factors = [Decimal("1.1"), Decimal("1.1"), Decimal("1.1")]

        assert rate_factor_plus_1_n(factors, numeric) == Decimal("1.331")
        # 1 -> 1 + 1 * 1.1 -> 1 + 2.1 * 1.1
        assert fn_result(factors, numeric) == Decimal("3.31")


class TestEmiAdjustment:
    """Tests for EmiAdjustment and get_emi_adjustment."""

    def test_small_difference_not_adjusted(self) -> None:
        """Test a cent or two of difference on six periods is left alone."""
        adjustment = EmiAdjustment(Decimal("17.13"), Decimal("0.02"), 6, 0)

        assert adjustment.should_be_adjusted() is False

    def test_large_difference_adjusted(self) -> None:
        """Test a larger difference is spread over the other periods."""
        numeric = NumericContext()
        adjustment = EmiAdjustment(Decimal("17.13"), Decimal("0.05"), 6, 0)

        assert adjustment.should_be_adjusted() is True
        assert adjustment.adjustment(numeric) == Decimal("0.01")
        assert adjustment.adjusted_emi(numeric) == Decimal("17.14")

    def test_single_period_never_adjusted(self) -> None:
        """Test there is nothing to spread over with one period."""
        assert EmiAdjustment(Decimal("10"), Decimal("5"), 1, 0).should_be_adjusted() is False

    def test_has_less_emi_difference(self) -> None:
        """Test differences compare by magnitude."""
        smaller = EmiAdjustment(Decimal("17.13"), Decimal("-0.01"), 6, 0)
        larger = EmiAdjustment(Decimal("17.13"), Decimal("0.05"), 6, 0)

        assert smaller.has_less_emi_difference(larger) is True
        assert larger.has_less_emi_difference(smaller) is False

    def test_get_emi_adjustment_uses_last_two_unpaid(self) -> None:
        """Test the difference is taken between the last two unpaid periods."""
        periods = _periods(["17.13", "17.13", "17.13", "17.20"])

        adjustment = get_emi_adjustment(periods, Decimal("0.00"))

        assert adjustment.original_emi == Decimal("17.13")
        assert adjustment.emi_difference == Decimal("0.07")
        assert adjustment.related_period_count == 4

    def test_get_emi_adjustment_skips_paid_periods(self) -> None:
        """Test a fully paid last period is skipped."""
        periods = _periods(["17.13", "17.13", "17.10", "17.20"])
        periods[-1].paid_principal = Decimal("17.20")

        adjustment = get_emi_adjustment(periods, Decimal("0.00"))

        assert adjustment.original_emi == Decimal("17.13")
        assert adjustment.emi_difference == Decimal("-0.03")

    def test_uncountable_periods(self) -> None:
        """Test periods paid beyond the installment are counted."""
        periods = _periods(["17.13", "17.13", "17.13"])
        periods[0].paid_principal = Decimal("20.00")

        assert get_uncountable_periods(periods, Decimal("17.13")) == 1
