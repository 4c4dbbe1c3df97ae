"""Tests for the loan portfolio scenario."""

from datetime import date
from decimal import Decimal

from emi_engine.calc.calculator import ProgressiveEMICalculator
from emi_engine.config import EngineConfig, NumericConfig
from emi_engine.generators.loan import period_boundaries
from emi_engine.models.scenario import LoanScenario, ScheduleEvent, ScheduleEventType
from emi_engine.models.terms import ProductTerms
from emi_engine.numeric import NumericContext
from emi_engine.scenarios.portfolio import LoanPortfolioScenario, replay_scenario


class _RecordingSink:
    def __init__(self) -> None:
        self.batches: dict[str, list] = {}

    def write_batch(self, entity_type: str, records: list) -> None:
        self.batches[entity_type] = records


def _scenario(*events: ScheduleEvent) -> LoanScenario:
    return LoanScenario(
        loan_id="loan-001",
        terms=ProductTerms(annual_nominal_interest_rate=Decimal("7")),
        periods=period_boundaries(date(2024, 1, 1), 6),
        events=list(events),
    )


class TestReplayScenario:
    """Tests for replay_scenario."""

    def test_disbursement_and_rate_change(self) -> None:
        """Test events are applied in order."""
        scenario = _scenario(
            ScheduleEvent(ScheduleEventType.DISBURSEMENT, date(2024, 1, 1), amount=Decimal("100")),
            ScheduleEvent(ScheduleEventType.INTEREST_RATE_CHANGE, date(2024, 2, 2), interest_rate=Decimal("4")),
        )

        model = replay_scenario(scenario)

        figures = model.figures()
        assert model.repayment_periods[0].emi == Decimal("17.01")
        assert figures[1].due_interest == Decimal("0.28")
        assert figures[-1].outstanding_loan_balance == 0

    def test_installment_payment(self) -> None:
        """Test a payment on the due date settles the period."""
        scenario = _scenario(
            ScheduleEvent(ScheduleEventType.DISBURSEMENT, date(2024, 1, 1), amount=Decimal("100")),
            ScheduleEvent(
                ScheduleEventType.INSTALLMENT_PAYMENT, date(2024, 2, 1), period_due_date=date(2024, 2, 1)
            ),
        )

        model = replay_scenario(scenario, ProgressiveEMICalculator())

        first = model.repayment_periods[0]
        assert first.paid_principal == Decimal("16.43")
        assert first.paid_interest == Decimal("0.58")
        assert first.is_fully_paid is True

    def test_balance_correction(self) -> None:
        """Test a correction event lands on the interest period ending on its date."""
        scenario = _scenario(
            ScheduleEvent(ScheduleEventType.DISBURSEMENT, date(2024, 1, 1), amount=Decimal("100")),
            ScheduleEvent(ScheduleEventType.BALANCE_CORRECTION, date(2024, 1, 15), amount=Decimal("-10")),
        )

        model = replay_scenario(scenario)

        slices = model.repayment_periods[0].interest_periods
        corrected = next(ip for ip in slices if ip.due_date == date(2024, 1, 15))
        assert corrected.balance_correction_amount == Decimal("-10.00")
        assert model.total_disbursed_amount == Decimal("100.00")

    def test_interest_pause(self) -> None:
        """Test a pause event reaches the calculator."""
        scenario = _scenario(
            ScheduleEvent(ScheduleEventType.DISBURSEMENT, date(2024, 1, 1), amount=Decimal("100")),
            ScheduleEvent(ScheduleEventType.INTEREST_PAUSE, date(2024, 2, 5), end_date=date(2024, 2, 10)),
        )

        model = replay_scenario(scenario)

        assert model.figures()[1].due_interest == Decimal("0.39")


class TestLoanPortfolioScenario:
    """Tests for LoanPortfolioScenario."""

    def test_generate(self, seed: int) -> None:
        """Test every loan is either scheduled or rejected."""
        scenario = LoanPortfolioScenario(num_loans=10, seed=seed)

        loans = scenario.generate()

        assert len(loans) + len(scenario.failures) == 10
        for loan, model in loans:
            assert model.total_disbursed_amount == loan.total_disbursed

    def test_config_overrides_seed(self) -> None:
        """Test the config seed and numeric policy are used."""
        config = EngineConfig(seed=7, numeric=NumericConfig(rounding="HALF_UP"))

        scenario = LoanPortfolioScenario(num_loans=1, seed=1, config=config)

        assert scenario.seed == 7
        assert scenario.numeric == NumericContext(config.numeric)

    def test_export(self, seed: int) -> None:
        """Test loans and their periods go to every sink."""
        scenario = LoanPortfolioScenario(num_loans=5, seed=seed)
        scenario.generate()
        sink = _RecordingSink()

        scenario.export([sink])

        assert len(sink.batches["loans"]) == len(scenario.loans)
        expected_rows = sum(len(model.repayment_periods) for _, model in scenario.loans)
        assert len(sink.batches["repayment_periods"]) == expected_rows
        assert all("loan_id" in row for row in sink.batches["repayment_periods"])

    def test_summary(self, seed: int) -> None:
        """Test portfolio summary statistics."""
        scenario = LoanPortfolioScenario(num_loans=10, rate_change_rate=1.0, seed=seed)
        scenario.generate()

        summary = scenario.get_portfolio_summary()

        assert summary["total_loans"] == len(scenario.loans)
        assert summary["rejected_loans"] == len(scenario.failures)
        assert Decimal(summary["total_disbursed"]) > 0
        assert Decimal(summary["total_due_interest"]) >= 0
        assert sum(summary["convention_distribution"].values()) == len(scenario.loans)
        assert summary["rate_changes"] == len(scenario.loans)

    def test_summary_empty(self) -> None:
        """Test an ungenerated portfolio has no summary."""
        assert LoanPortfolioScenario(num_loans=3).get_portfolio_summary() == {}
