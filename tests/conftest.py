"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from emi_engine.calc.calculator import ProgressiveEMICalculator
from emi_engine.generators.loan import period_boundaries
from emi_engine.models.enums import DaysInMonthType, DaysInYearType, PeriodFrequencyType
from emi_engine.models.schedule import ScheduleModel
from emi_engine.models.terms import ProductTerms


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def calculator() -> ProgressiveEMICalculator:
    return ProgressiveEMICalculator()


@pytest.fixture
def monthly_periods() -> list[tuple[date, date]]:
    """Six monthly periods from 2024-01-01 to 2024-07-01."""
    return period_boundaries(date(2024, 1, 1), 6)


@pytest.fixture
def terms_360_30() -> ProductTerms:
    """9.4822% a year, 360-day year, 30-day months, monthly repayments."""
    return ProductTerms(
        annual_nominal_interest_rate=Decimal("9.4822"),
        days_in_year_type=DaysInYearType.DAYS_360,
        days_in_month_type=DaysInMonthType.DAYS_30,
        repayment_frequency_type=PeriodFrequencyType.MONTHS,
        repay_every=1,
    )


@pytest.fixture
def terms_7_percent() -> ProductTerms:
    """7% a year, 360-day year, 30-day months, monthly repayments."""
    return ProductTerms(annual_nominal_interest_rate=Decimal("7"))


@pytest.fixture
def schedule_360_30(
    calculator: ProgressiveEMICalculator,
    monthly_periods: list[tuple[date, date]],
    terms_360_30: ProductTerms,
) -> ScheduleModel:
    """Six month 9.4822% schedule with 100 disbursed on 2024-01-01."""
    model = calculator.generate_schedule_model(monthly_periods, terms_360_30)
    calculator.add_disbursement(model, date(2024, 1, 1), Decimal("100"))
    return model


@pytest.fixture
def schedule_7_percent(
    calculator: ProgressiveEMICalculator,
    monthly_periods: list[tuple[date, date]],
    terms_7_percent: ProductTerms,
) -> ScheduleModel:
    """Six month 7% schedule with 100 disbursed on 2024-01-01."""
    model = calculator.generate_schedule_model(monthly_periods, terms_7_percent)
    calculator.add_disbursement(model, date(2024, 1, 1), Decimal("100"))
    return model
