"""Tests for schedule queries that evaluate amounts as of a date."""

from datetime import date
from decimal import Decimal

import pytest

from emi_engine.calc.calculator import ProgressiveEMICalculator
from emi_engine.exceptions import PeriodNotFoundError
from emi_engine.models.results import OutstandingDetails, PeriodDueDetails
from emi_engine.models.schedule import ScheduleModel
from emi_engine.sinks.serialization import schedule_to_dict


class TestGetDueAmounts:
    """Tests for get_due_amounts."""

    def test_first_period_before_it_starts(
        self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel
    ) -> None:
        """Test nothing has accrued on the disbursement date."""
        details = calculator.get_due_amounts(schedule_7_percent, date(2024, 2, 1), date(2024, 1, 1))

        assert isinstance(details, PeriodDueDetails)
        assert details.due_principal == Decimal("17.01")
        assert details.due_interest == 0

    def test_period_on_due_date(self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel) -> None:
        """Test the second period as of its own due date."""
        details = calculator.get_due_amounts(schedule_7_percent, date(2024, 3, 1), date(2024, 3, 1))

        assert details.due_principal == Decimal("16.52")
        assert details.due_interest == Decimal("0.49")

    def test_period_mid_way(self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel) -> None:
        """Test interest stops at the target date and principal takes the rest."""
        details = calculator.get_due_amounts(schedule_7_percent, date(2024, 3, 1), date(2024, 2, 15))

        assert details.emi == Decimal("17.01")
        assert details.due_principal == Decimal("16.77")
        assert details.due_interest == Decimal("0.24")

    def test_unknown_period(self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel) -> None:
        """Test a due date that matches no period."""
        with pytest.raises(PeriodNotFoundError):
            calculator.get_due_amounts(schedule_7_percent, date(2024, 3, 2), date(2024, 3, 1))


class TestPayoff:
    """Tests for early payoff amounts."""

    def test_payoff_on_due_date(self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel) -> None:
        """Test the first period on its due date owes the scheduled split."""
        details = calculator.get_due_amounts(schedule_7_percent, date(2024, 2, 1), date(2024, 2, 1))

        assert details.due_principal == Decimal("16.43")
        assert details.due_interest == Decimal("0.58")

    def test_payoff_mid_period(self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel) -> None:
        """Test a mid-period payoff charges interest up to that day only."""
        details = calculator.get_due_amounts(schedule_7_percent, date(2024, 2, 1), date(2024, 1, 15))

        assert details.due_principal == Decimal("16.75")
        assert details.due_interest == Decimal("0.26")

    def test_outstanding_amounts_till_date(
        self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel
    ) -> None:
        """Test the whole principal plus interest accrued so far."""
        details = calculator.get_outstanding_amounts_till_date(schedule_7_percent, date(2024, 1, 15))

        assert isinstance(details, OutstandingDetails)
        assert details.outstanding_principal == Decimal("100.00")
        assert details.outstanding_interest == Decimal("0.26")

    def test_outstanding_balance_of_period(
        self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel
    ) -> None:
        """Test the closing balance of the first period."""
        balance = calculator.get_outstanding_loan_balance_of_period(
            schedule_7_percent, date(2024, 2, 1), date(2024, 2, 1)
        )

        assert balance == Decimal("83.57")

    def test_sum_of_due_interests(self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel) -> None:
        """Test only interest accrued up to the date is summed."""
        total = calculator.get_sum_of_due_interests_on_date(schedule_7_percent, date(2024, 2, 1))

        assert total == Decimal("0.58")


class TestQueriesDoNotMutate:
    """Tests that queries leave the schedule untouched."""

    def test_queries_leave_model_unchanged(
        self, calculator: ProgressiveEMICalculator, schedule_7_percent: ScheduleModel
    ) -> None:
        """Test every query works on a copy."""
        before = schedule_to_dict(schedule_7_percent)

        calculator.get_due_amounts(schedule_7_percent, date(2024, 3, 1), date(2024, 2, 15))
        calculator.get_period_interest_till_date(schedule_7_percent, date(2024, 3, 1), date(2024, 2, 10))
        calculator.get_outstanding_loan_balance_of_period(schedule_7_percent, date(2024, 4, 1), date(2024, 3, 20))
        calculator.get_outstanding_amounts_till_date(schedule_7_percent, date(2024, 2, 15))
        calculator.get_sum_of_due_interests_on_date(schedule_7_percent, date(2024, 3, 15))

        assert schedule_to_dict(schedule_7_percent) == before
        assert schedule_7_percent.repayment_periods[0].interest_periods[-1].due_date == date(2024, 2, 1)
