"""Property checks over randomly generated loans."""

import pytest

from emi_engine.calc.calculator import ProgressiveEMICalculator
from emi_engine.generators.loan import LoanScenarioGenerator
from emi_engine.models.scenario import ScheduleEventType
from emi_engine.scenarios.portfolio import replay_scenario
from emi_engine.sinks.serialization import schedule_to_dict


@pytest.fixture
def scenarios(seed: int) -> list:
    generator = LoanScenarioGenerator(
        seed=seed,
        extra_disbursement_rate=0.5,
        rate_change_rate=0.5,
        payment_rate=0.5,
        correction_rate=0.5,
    )
    return list(generator.generate_batch(25))


class TestScheduleInvariants:
    """Invariants that hold for any replayed loan."""

    def test_scenarios_exercise_payments_and_corrections(self, scenarios: list) -> None:
        """Test the generated loans include payments and balance corrections."""
        types = {event.event_type for scenario in scenarios for event in scenario.events}

        assert ScheduleEventType.INSTALLMENT_PAYMENT in types
        assert ScheduleEventType.BALANCE_CORRECTION in types

    def test_principal_repaid_in_full(self, scenarios: list) -> None:
        """Test due principal adds up to what was disbursed and the loan closes at zero."""
        for scenario in scenarios:
            model = replay_scenario(scenario)
            figures = model.figures()

            assert model.numeric.money_sum(f.due_principal for f in figures) == model.total_disbursed_amount
            assert figures[-1].outstanding_loan_balance == 0
            assert all(f.due_interest >= 0 for f in figures)

    def test_closing_balance_opens_next_period(self, scenarios: list) -> None:
        """Test each period's closing balance is the opening balance of the next."""
        for scenario in scenarios:
            model = replay_scenario(scenario)
            figures = model.figures()
            periods = model.repayment_periods

            for index in range(len(periods) - 1):
                assert (
                    figures[index].outstanding_loan_balance
                    == periods[index + 1].interest_periods[0].outstanding_loan_balance
                ), f"{scenario.loan_id} period {index}"

    def test_periods_are_contiguous(self, scenarios: list) -> None:
        """Test repayment periods and their slices tile the term without gaps."""
        for scenario in scenarios:
            model = replay_scenario(scenario)
            periods = model.repayment_periods

            assert all(a.due_date == b.from_date for a, b in zip(periods, periods[1:]))
            for period in periods:
                slices = period.interest_periods
                assert slices[0].from_date == period.from_date
                assert slices[-1].due_date == period.due_date
                assert all(a.due_date == b.from_date for a, b in zip(slices, slices[1:]))

    def test_queries_do_not_mutate(self, scenarios: list) -> None:
        """Test due amount queries leave every schedule unchanged."""
        calculator = ProgressiveEMICalculator()
        for scenario in scenarios[:10]:
            model = replay_scenario(scenario, calculator)
            before = schedule_to_dict(model)

            for period in model.repayment_periods:
                calculator.get_due_amounts(model, period.due_date, period.from_date)
                calculator.get_due_amounts(model, period.due_date, period.due_date)
            calculator.get_outstanding_amounts_till_date(model, model.repayment_periods[0].due_date)

            assert schedule_to_dict(model) == before
