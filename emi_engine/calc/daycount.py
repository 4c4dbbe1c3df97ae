"""Day-count conventions and calendar arithmetic."""

import calendar
from datetime import date

from dateutil.relativedelta import relativedelta

from emi_engine.exceptions import UnsupportedConventionError
from emi_engine.models.enums import DaysInYearCustomStrategy, DaysInYearType, PeriodFrequencyType
from emi_engine.models.terms import ProductTerms

FIXED_DAYS_IN_YEAR = {
    DaysInYearType.DAYS_360: 360,
    DaysInYearType.DAYS_364: 364,
    DaysInYearType.DAYS_365: 365,
}


def days_between(start: date, end: date) -> int:
    return (end - start).days


def year_length(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def add_months(value: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of a shorter month."""
    return value + relativedelta(months=months)


def add_units(value: date, amount: int, unit: PeriodFrequencyType) -> date:
    if unit == PeriodFrequencyType.DAYS:
        return value + relativedelta(days=amount)
    if unit == PeriodFrequencyType.WEEKS:
        return value + relativedelta(weeks=amount)
    if unit == PeriodFrequencyType.MONTHS:
        return value + relativedelta(months=amount)
    if unit == PeriodFrequencyType.YEARS:
        return value + relativedelta(years=amount)
    raise UnsupportedConventionError(f"Unsupported period unit: {unit}")


def months_between(start: date, end: date) -> int:
    """Complete months from ``start`` to ``end``, truncated toward zero.

    A month that only ends on ``end`` because the target month is shorter
    (Jan 31 to Feb 29) is not complete.
    """
    delta = relativedelta(end, start)
    months = delta.years * 12 + delta.months
    if months > 0 and not delta.days and end.day < start.day:
        months -= 1
    return months


def units_between(start: date, end: date, unit: PeriodFrequencyType) -> int:
    """Complete ``unit`` steps from ``start`` to ``end``, truncated toward zero."""
    if unit == PeriodFrequencyType.DAYS:
        return days_between(start, end)
    if unit == PeriodFrequencyType.WEEKS:
        return int(days_between(start, end) / 7)
    if unit == PeriodFrequencyType.MONTHS:
        return months_between(start, end)
    if unit == PeriodFrequencyType.YEARS:
        return int(months_between(start, end) / 12)
    raise UnsupportedConventionError(f"Unsupported period unit: {unit}")


def last_day_of_month(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def period_contains_feb_29(from_date: date, due_date: date) -> bool:
    """Feb 29 of ``from_date``'s year falls in ``(from_date, due_date]``."""
    if not calendar.isleap(from_date.year):
        return False
    return from_date < date(from_date.year, 2, 29) <= due_date


class DayCountProvider:
    """Resolves day counts for one product's conventions.

    Parameters
    ----------
    terms : ProductTerms
        Product whose days-in-year type and custom strategy apply.
    """

    def __init__(self, terms: ProductTerms) -> None:
        self.terms = terms

    @property
    def uses_feb_29_period_only(self) -> bool:
        return self.terms.days_in_year_custom_strategy == DaysInYearCustomStrategy.FEB_29_PERIOD_ONLY

    def days_in_year(self, interest_from: date, period_from: date, period_due: date) -> int:
        """Year length used for an interest period starting on ``interest_from``.

        With the Feb 29 period-only strategy a leap year only counts 366
        days for the repayment period that contains Feb 29.
        """
        days_in_year_type = self.terms.days_in_year_type
        if days_in_year_type == DaysInYearType.ACTUAL:
            number_of_days = year_length(interest_from.year)
        else:
            number_of_days = FIXED_DAYS_IN_YEAR[days_in_year_type]

        if number_of_days == 366 and self.uses_feb_29_period_only:
            return 366 if period_contains_feb_29(period_from, period_due) else 365
        return number_of_days

    def needs_partial_year_split(
        self, interest_from: date, interest_due: date, period_from: date, period_due: date
    ) -> bool:
        """Whether an interest period spanning a year end is priced per year."""
        if self.terms.days_in_year_type != DaysInYearType.ACTUAL:
            return False
        if interest_due.year - interest_from.year <= 0:
            return False
        return not self.uses_feb_29_period_only or period_contains_feb_29(period_from, period_due)

    def year_end_boundary(self, year: int) -> date:
        """Last date charged against ``year`` when splitting across years."""
        if self.terms.interest_recognition_on_disbursement_date:
            return date(year + 1, 1, 1)
        return date(year, 12, 31)
