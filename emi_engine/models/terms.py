"""Loan product terms consumed by the schedule engine."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from emi_engine.exceptions import InvalidScheduleInputError
from emi_engine.models.enums import (
    DaysInMonthType,
    DaysInYearCustomStrategy,
    DaysInYearType,
    PeriodFrequencyType,
)
from emi_engine.numeric import to_decimal


@dataclass
class ProductTerms:
    """Interest conventions of a loan product.

    ``annual_nominal_interest_rate`` is a percentage, so ``7`` means 7% a year.
    """

    annual_nominal_interest_rate: Decimal
    days_in_year_type: DaysInYearType = DaysInYearType.DAYS_360
    days_in_month_type: DaysInMonthType = DaysInMonthType.DAYS_30
    repayment_frequency_type: PeriodFrequencyType = PeriodFrequencyType.MONTHS
    repay_every: int = 1
    days_in_year_custom_strategy: DaysInYearCustomStrategy | None = None
    interest_recognition_on_disbursement_date: bool = False

    def __post_init__(self) -> None:
        self.annual_nominal_interest_rate = to_decimal(self.annual_nominal_interest_rate)
        if self.annual_nominal_interest_rate < 0:
            raise InvalidScheduleInputError(
                f"Annual interest rate must not be negative, got {self.annual_nominal_interest_rate}"
            )
        if self.repay_every < 1:
            raise InvalidScheduleInputError(f"Repay every must be at least 1, got {self.repay_every}")
        self.days_in_year_type = DaysInYearType(self.days_in_year_type)
        self.days_in_month_type = DaysInMonthType(self.days_in_month_type)
        self.repayment_frequency_type = PeriodFrequencyType(self.repayment_frequency_type)
        if self.days_in_year_custom_strategy is not None:
            self.days_in_year_custom_strategy = DaysInYearCustomStrategy(self.days_in_year_custom_strategy)


@dataclass(frozen=True)
class InterestRate:
    """Annual rate (percent) in force from ``effective_from`` onwards."""

    effective_from: date
    annual_rate: Decimal
