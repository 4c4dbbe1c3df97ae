"""Rate factors: the interest rate scaled to a period under the day-count rules.

A rate factor is the fraction of the principal charged as interest over one
interest period. All values are fixed to the numeric precision (12 decimal
places by default).
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from emi_engine.calc.daycount import (
    DayCountProvider,
    add_units,
    days_between,
    last_day_of_month,
    units_between,
    year_length,
)
from emi_engine.exceptions import UnsupportedConventionError
from emi_engine.models.enums import DaysInMonthType, PeriodFrequencyType
from emi_engine.models.schedule import RepaymentPeriod, ScheduleModel
from emi_engine.numeric import ONE, ZERO, NumericContext

HUNDRED = Decimal(100)
DAYS_IN_MONTH_30 = Decimal(30)

# Days per repayment unit when a month counts 30 days
UNIT_MULTIPLIER_IN_DAYS = {
    PeriodFrequencyType.DAYS: Decimal(1),
    PeriodFrequencyType.WEEKS: Decimal(7),
    PeriodFrequencyType.MONTHS: DAYS_IN_MONTH_30,
}


def rate_factor_by_repayment_period(
    interest_rate: Decimal,
    multiplier_in_days: Decimal,
    repay_every: Decimal,
    days_in_year: Decimal,
    actual_days: Decimal,
    calculated_days: Decimal,
    numeric: NumericContext,
) -> Decimal:
    """Simple interest rate factor.

    ``rate * (multiplier_in_days * repay_every / days_in_year)
    * actual_days / calculated_days``, zero for an empty period.
    """
    if not calculated_days:
        return ZERO
    fraction = numeric.divide(numeric.multiply(multiplier_in_days, repay_every), days_in_year)
    factor = numeric.multiply(interest_rate, fraction)
    factor = numeric.multiply(factor, actual_days)
    factor = numeric.divide(factor, calculated_days)
    return numeric.scale(factor)


def rate_factor_by_partial_period(
    interest_rate: Decimal,
    repay_every: Decimal,
    cumulated_period_ratio: Decimal,
    actual_days: Decimal,
    calculated_days: Decimal,
    numeric: NumericContext,
) -> Decimal:
    if not calculated_days:
        return ZERO
    factor = numeric.multiply(interest_rate, repay_every * cumulated_period_ratio)
    factor = numeric.multiply(factor, actual_days)
    factor = numeric.divide(factor, calculated_days)
    return numeric.scale(factor)


def period_fractions(
    interest_from: date, interest_due: date, day_count: DayCountProvider, numeric: NumericContext
) -> Decimal:
    """Sum of the year fractions covered by ``[interest_from, interest_due]``."""
    cumulated = ZERO
    actual_date = interest_from
    for year in range(interest_from.year, interest_due.year + 1):
        fraction_due = interest_due if year == interest_due.year else day_count.year_end_boundary(year)
        days = Decimal(days_between(actual_date, fraction_due))
        cumulated = numeric.add(cumulated, numeric.divide(days, Decimal(year_length(year))))
        actual_date = fraction_due
    return cumulated


def calculate_seed_date(model: ScheduleModel, period: RepaymentPeriod) -> date:
    """Anchor for counting whole repayment units up to ``period``.

    The loan start when the schedule reaches the period's due date in whole
    units, otherwise the period's own start.
    """
    unit = model.terms.repayment_frequency_type
    multiplier = 1
    while True:
        calculated = add_units(model.start_date, multiplier, unit)
        multiplier += 1
        if not calculated < period.due_date:
            break
    return model.start_date if calculated == period.due_date else period.from_date


def calculate_period_ratio(
    model: ScheduleModel, period: RepaymentPeriod, unit: PeriodFrequencyType, numeric: NumericContext
) -> Decimal:
    """Length of ``period`` in repayment units, fractional for broken periods."""
    seed = calculate_seed_date(model, period)
    start = period.from_date
    if unit == PeriodFrequencyType.MONTHS and last_day_of_month(start) == start and seed.day > start.day:
        periods_before = units_between(seed, start + timedelta(days=1), unit)
    else:
        periods_before = units_between(seed, start, unit)

    multiplier = periods_before + 1
    from_date = period.from_date
    while from_date < period.due_date:
        from_date = add_units(seed, multiplier, unit)
        if not from_date > period.due_date:
            multiplier += 1
            continue
        full_period_date = from_date
        multiplier = multiplier - periods_before - 1
        from_date = add_units(seed, multiplier, unit)
        difference = Decimal(days_between(from_date, period.due_date))
        full_difference = Decimal(days_between(from_date, full_period_date))
        return numeric.divide(difference, full_difference) + multiplier
    return Decimal(multiplier - periods_before - 1)


class RateFactorCalculator:
    """Computes and stores rate factors on the interest periods of a schedule.

    Parameters
    ----------
    model : ScheduleModel
        Schedule whose terms, rates and numeric policy apply.
    """

    def __init__(self, model: ScheduleModel) -> None:
        self.model = model
        self.numeric = model.numeric
        self.day_count = DayCountProvider(model.terms)

    def _nominal_rate(self, on_date: date) -> Decimal:
        return self.numeric.divide(self.model.interest_rate_on(on_date), HUNDRED)

    def _partial_year_factor(self, interest_rate: Decimal, interest_from: date, interest_due: date) -> Decimal:
        fractions = period_fractions(interest_from, interest_due, self.day_count, self.numeric)
        return rate_factor_by_partial_period(interest_rate, ONE, fractions, ONE, ONE, self.numeric)

    def _by_frequency(
        self,
        interest_rate: Decimal,
        repay_every: Decimal,
        days_in_year: Decimal,
        actual_days: Decimal,
        calculated_days: Decimal,
    ) -> Decimal:
        frequency = self.model.terms.repayment_frequency_type
        multiplier = UNIT_MULTIPLIER_IN_DAYS.get(frequency)
        if multiplier is None:
            raise UnsupportedConventionError(
                f"No 30-day month rate factor rule for {frequency.value} repayment frequency"
            )
        return rate_factor_by_repayment_period(
            interest_rate, multiplier, repay_every, days_in_year, actual_days, calculated_days, self.numeric
        )

    def rate_factor(self, period: RepaymentPeriod, interest_from: date, interest_due: date) -> Decimal:
        """Rate factor of ``[interest_from, interest_due]`` inside ``period``."""
        terms = self.model.terms
        interest_rate = self._nominal_rate(interest_from)
        days_in_year = Decimal(self.day_count.days_in_year(interest_from, period.from_date, period.due_date))
        actual_days = Decimal(days_between(interest_from, interest_due))
        calculated_days = Decimal(period.length)

        if self.day_count.needs_partial_year_split(interest_from, interest_due, period.from_date, period.due_date):
            return self._partial_year_factor(interest_rate, interest_from, interest_due)

        if terms.days_in_month_type == DaysInMonthType.DAYS_30:
            return self._by_frequency(
                interest_rate, Decimal(terms.repay_every), days_in_year, actual_days, calculated_days
            )
        return rate_factor_by_repayment_period(
            interest_rate, actual_days, ONE, days_in_year, ONE, ONE, self.numeric
        )

    def rate_factor_till_period_due_date(self, period: RepaymentPeriod, interest_from: date) -> Decimal:
        """Rate factor from ``interest_from`` to the end of ``period``.

        With 30-day months the repayment units actually covered by the period
        replace the product's repay-every count, so broken periods are priced
        by their true share of a unit.
        """
        terms = self.model.terms
        interest_due = period.due_date
        interest_rate = self._nominal_rate(interest_from)
        days_in_year = Decimal(self.day_count.days_in_year(interest_from, period.from_date, period.due_date))
        actual_days = Decimal(days_between(interest_from, interest_due))
        calculated_days = Decimal(period.length)

        if self.day_count.needs_partial_year_split(interest_from, interest_due, period.from_date, period.due_date):
            return self._partial_year_factor(interest_rate, interest_from, interest_due)

        if terms.days_in_month_type == DaysInMonthType.DAYS_30:
            ratio = calculate_period_ratio(self.model, period, terms.repayment_frequency_type, self.numeric)
            return self._by_frequency(interest_rate, ratio, days_in_year, actual_days, calculated_days)
        return rate_factor_by_repayment_period(
            interest_rate, actual_days, ONE, days_in_year, ONE, ONE, self.numeric
        )

    def apply_to_period(self, period: RepaymentPeriod) -> None:
        for ip in period.interest_periods:
            ip.rate_factor = self.rate_factor(period, ip.from_date, ip.due_date)
            ip.rate_factor_till_period_due_date = self.rate_factor_till_period_due_date(period, ip.from_date)

    def apply_to_periods(self, periods: list[RepaymentPeriod]) -> None:
        for period in periods:
            self.apply_to_period(period)
