"""Tests for the decimal arithmetic policy."""

from decimal import Decimal

import pytest

from emi_engine.config import NumericConfig
from emi_engine.exceptions import InvalidScheduleInputError, ScheduleComputationError
from emi_engine.numeric import NumericContext, to_decimal


class TestToDecimal:
    """Tests for to_decimal."""

    def test_float_goes_through_str(self) -> None:
        """Test 0.1 is not expanded to its binary value."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_str(self) -> None:
        """Test integer and string inputs."""
        assert to_decimal(100) == Decimal("100")
        assert to_decimal("17.13") == Decimal("17.13")

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", True, None, [1]])
    def test_rejected_values(self, value) -> None:
        """Test non-numeric, non-finite and boolean inputs are rejected."""
        with pytest.raises(InvalidScheduleInputError):
            to_decimal(value)


class TestNumericContext:
    """Tests for NumericContext."""

    def test_defaults(self) -> None:
        """Test default precision, scale and zero."""
        numeric = NumericContext()

        assert numeric.precision == 12
        assert numeric.decimal_places == 2
        assert str(numeric.zero) == "0.00"

    def test_equality_follows_config(self) -> None:
        """Test contexts with the same config compare equal."""
        assert NumericContext() == NumericContext(NumericConfig())
        assert NumericContext() != NumericContext(NumericConfig(precision=16))

    def test_money_rounds_half_even(self) -> None:
        """Test banker's rounding at money scale."""
        numeric = NumericContext()

        assert numeric.money(Decimal("1.005")) == Decimal("1.00")
        assert numeric.money(Decimal("1.015")) == Decimal("1.02")
        assert str(numeric.money(5)) == "5.00"

    def test_money_half_up(self) -> None:
        """Test a configured rounding mode is honoured."""
        numeric = NumericContext(NumericConfig(rounding="HALF_UP"))

        assert numeric.money(Decimal("1.005")) == Decimal("1.01")

    def test_money_precision_overflow(self) -> None:
        """Test amounts that do not fit the precision at money scale raise."""
        numeric = NumericContext()

        assert numeric.money(Decimal("1234567890.12")) == Decimal("1234567890.12")
        with pytest.raises(ScheduleComputationError):
            numeric.money(Decimal("12345678901"))

    def test_divide_uses_precision(self) -> None:
        """Test quotients are rounded to 12 significant digits."""
        numeric = NumericContext()

        assert numeric.divide(Decimal(1), Decimal(3)) == Decimal("0.333333333333")

    def test_divide_by_zero(self) -> None:
        """Test division by zero surfaces as a computation error."""
        with pytest.raises(ScheduleComputationError):
            NumericContext().divide(Decimal(1), Decimal(0))

    def test_scale_fixes_decimal_places(self) -> None:
        """Test rate factors are fixed to 12 decimal places."""
        numeric = NumericContext()

        assert numeric.scale(Decimal("0.00790183333333")) == Decimal("0.007901833333")

    def test_sum_and_money_sum(self) -> None:
        """Test summation helpers."""
        numeric = NumericContext()

        assert numeric.sum([Decimal("0.1"), Decimal("0.2")]) == Decimal("0.3")
        assert numeric.money_sum([Decimal("17.13"), Decimal("17.13")]) == Decimal("34.26")
        assert numeric.money_sum([]) == Decimal("0.00")

    def test_negative_to_zero(self) -> None:
        """Test negative values clamp to zero, others pass through."""
        numeric = NumericContext()

        assert numeric.negative_to_zero(Decimal("-1.23")) == 0
        assert numeric.negative_to_zero(Decimal("-1.23")).is_signed() is False
        assert numeric.negative_to_zero(Decimal("4.56")) == Decimal("4.56")

    def test_round_to_multiples_of(self) -> None:
        """Test installment rounding to a multiple."""
        numeric = NumericContext()

        assert numeric.round_to_multiples_of(Decimal("17.13"), 5) == Decimal("15.00")
        assert numeric.round_to_multiples_of(Decimal("17.50"), 5) == Decimal("20.00")
        assert numeric.round_to_multiples_of(Decimal("17.13"), None) == Decimal("17.13")
