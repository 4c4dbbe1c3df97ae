"""Domain models for progressive loan schedules."""

from emi_engine.models.enums import (
    DaysInMonthType,
    DaysInYearCustomStrategy,
    DaysInYearType,
    EmiChangeAction,
    PeriodFrequencyType,
)
from emi_engine.models.results import OutstandingDetails, PeriodDueDetails, PeriodFigures
from emi_engine.models.schedule import InterestPeriod, RepaymentPeriod, ScheduleModel
from emi_engine.models.terms import InterestRate, ProductTerms

__all__ = [
    "DaysInMonthType",
    "DaysInYearCustomStrategy",
    "DaysInYearType",
    "EmiChangeAction",
    "InterestPeriod",
    "InterestRate",
    "OutstandingDetails",
    "PeriodDueDetails",
    "PeriodFigures",
    "PeriodFrequencyType",
    "ProductTerms",
    "RepaymentPeriod",
    "ScheduleModel",
]
