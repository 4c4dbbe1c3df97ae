"""Enumeration types for loan product conventions."""

from enum import Enum


class DaysInYearType(str, Enum):
    ACTUAL = "ACTUAL"
    DAYS_360 = "DAYS_360"
    DAYS_364 = "DAYS_364"
    DAYS_365 = "DAYS_365"


class DaysInYearCustomStrategy(str, Enum):
    FULL_LEAP_YEAR = "FULL_LEAP_YEAR"
    FEB_29_PERIOD_ONLY = "FEB_29_PERIOD_ONLY"


class DaysInMonthType(str, Enum):
    ACTUAL = "ACTUAL"
    DAYS_30 = "DAYS_30"
    UNSPECIFIED = "UNSPECIFIED"


class PeriodFrequencyType(str, Enum):
    DAYS = "DAYS"
    WEEKS = "WEEKS"
    MONTHS = "MONTHS"
    YEARS = "YEARS"


class EmiChangeAction(str, Enum):
    DISBURSEMENT = "DISBURSEMENT"
    INTEREST_RATE_CHANGE = "INTEREST_RATE_CHANGE"
