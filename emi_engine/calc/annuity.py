"""Equal installment (EMI) solver for progressive schedules."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from emi_engine.exceptions import ScheduleComputationError
from emi_engine.models.schedule import RepaymentPeriod
from emi_engine.numeric import ONE, NumericContext


def rate_factor_plus_1_n(rate_factors_plus_1: Sequence[Decimal], numeric: NumericContext) -> Decimal:
    """Product of ``1 + rate_factor`` over every period."""
    product = ONE
    for value in rate_factors_plus_1:
        product = numeric.multiply(product, value)
    return product


def fn_value(previous_fn_value: Decimal, current_rate_factor_plus_1: Decimal, numeric: NumericContext) -> Decimal:
    return numeric.add(ONE, numeric.multiply(previous_fn_value, current_rate_factor_plus_1))


def fn_result(rate_factors_plus_1: Sequence[Decimal], numeric: NumericContext) -> Decimal:
    """Annuity denominator: ``fn = 1 + fn * (1 + r)`` folded over all but the first period."""
    result = ONE
    for value in rate_factors_plus_1[1:]:
        result = fn_value(result, value, numeric)
    return result


def compute_emi(principal: Decimal, rate_factors_plus_1: Sequence[Decimal], numeric: NumericContext) -> Decimal:
    """Installment that repays ``principal`` over the given periods.

    Parameters
    ----------
    principal : Decimal
        Balance to amortize, as of the start of the first period.
    rate_factors_plus_1 : Sequence[Decimal]
        ``1 + rate_factor`` of each period, in schedule order.
    numeric : NumericContext
        Precision and rounding policy.

    Returns
    -------
    Decimal
        The installment at money scale. With all rate factors zero this is
        ``principal / n``.
    """
    if not rate_factors_plus_1:
        raise ScheduleComputationError("Cannot compute an installment without repayment periods")
    product = rate_factor_plus_1_n(rate_factors_plus_1, numeric)
    denominator = fn_result(rate_factors_plus_1, numeric)
    return numeric.money(numeric.divide(numeric.multiply(product, principal), denominator))


def get_uncountable_periods(periods: Sequence[RepaymentPeriod], original_emi: Decimal) -> int:
    """Periods already paid beyond ``original_emi``; they cannot absorb a correction."""
    return sum(1 for period in periods if original_emi < period.total_paid_amount)


@dataclass(frozen=True)
class EmiAdjustment:
    """Difference between the last two unpaid installments of a schedule."""

    original_emi: Decimal
    emi_difference: Decimal
    related_period_count: int
    uncountable_period_count: int

    def should_be_adjusted(self) -> bool:
        lower_half = self.related_period_count // 2
        return lower_half > 0 and abs(self.emi_difference) * 100 > lower_half

    def adjustment(self, numeric: NumericContext) -> Decimal:
        countable = max(1, self.related_period_count - 1 - self.uncountable_period_count)
        return numeric.money(numeric.divide(self.emi_difference, Decimal(countable)))

    def adjusted_emi(self, numeric: NumericContext) -> Decimal:
        return numeric.money(self.original_emi + self.adjustment(numeric))

    def has_less_emi_difference(self, other: EmiAdjustment) -> bool:
        return abs(self.emi_difference) < abs(other.emi_difference)


def get_emi_adjustment(periods: Sequence[RepaymentPeriod], zero: Decimal) -> EmiAdjustment:
    """Scan from the end for the last pair of unpaid periods."""
    for index in range(len(periods) - 1, 0, -1):
        last = periods[index]
        penultimate = periods[index - 1]
        if not last.is_fully_paid and not penultimate.is_fully_paid:
            return EmiAdjustment(
                original_emi=penultimate.emi,
                emi_difference=last.emi - penultimate.emi,
                related_period_count=len(periods),
                uncountable_period_count=get_uncountable_periods(periods, penultimate.emi),
            )
    first_emi = periods[0].emi if periods else zero
    return EmiAdjustment(first_emi, zero, len(periods), 0)
