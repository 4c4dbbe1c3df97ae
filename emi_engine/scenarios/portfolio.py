"""Loan portfolio scenario: generate loans and replay them through the engine."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from emi_engine.calc.calculator import ProgressiveEMICalculator
from emi_engine.config import EngineConfig
from emi_engine.exceptions import EmiEngineError
from emi_engine.generators.loan import LoanScenarioGenerator
from emi_engine.logging import log_context
from emi_engine.models.scenario import LoanScenario, ScheduleEventType
from emi_engine.models.schedule import ScheduleModel
from emi_engine.numeric import NumericContext
from emi_engine.sinks.serialization import period_rows

logger = logging.getLogger(__name__)


def replay_scenario(
    scenario: LoanScenario,
    calculator: ProgressiveEMICalculator | None = None,
    numeric: NumericContext | None = None,
) -> ScheduleModel:
    """Build a schedule for ``scenario`` and apply its events in order.

    An installment payment settles the principal and interest due on the
    payment date.
    """
    calculator = calculator or ProgressiveEMICalculator()
    model = calculator.generate_schedule_model(scenario.periods, scenario.terms, numeric)
    for event in scenario.events:
        if event.event_type == ScheduleEventType.DISBURSEMENT:
            calculator.add_disbursement(model, event.event_date, event.amount)
        elif event.event_type == ScheduleEventType.INTEREST_RATE_CHANGE:
            calculator.change_interest_rate(model, event.event_date, event.interest_rate)
        elif event.event_type == ScheduleEventType.INSTALLMENT_PAYMENT:
            due = calculator.get_due_amounts(model, event.period_due_date, event.event_date)
            calculator.pay_principal(model, event.period_due_date, event.event_date, due.due_principal)
            calculator.pay_interest(model, event.period_due_date, event.event_date, due.due_interest)
        elif event.event_type == ScheduleEventType.INTEREST_PAUSE:
            calculator.apply_interest_pause(model, event.event_date, event.end_date)
        elif event.event_type == ScheduleEventType.BALANCE_CORRECTION:
            calculator.add_balance_correction(model, event.event_date, event.amount)
    return model


class LoanPortfolioScenario:
    """Generate a portfolio of loans with their progressive schedules.

    Each loan gets random product conventions, one or two disbursements,
    possibly a rate change, and optionally on-time installment payments.
    """

    def __init__(
        self,
        num_loans: int = 100,
        extra_disbursement_rate: float = 0.3,
        rate_change_rate: float = 0.2,
        payment_rate: float = 0.0,
        seed: int | None = None,
        *,
        config: EngineConfig | None = None,
    ) -> None:
        """Initialize loan portfolio scenario.

        Parameters
        ----------
        num_loans : int
            Number of loans to generate.
        extra_disbursement_rate : float
            Share of loans with a second disbursement.
        rate_change_rate : float
            Share of loans with an interest rate change.
        payment_rate : float
            Share of installments paid on their due date.
        seed : int | None
            Random seed for reproducibility. Overridden by ``config.seed``
            when a config is given.
        config : EngineConfig | None
            Optional engine configuration for numeric policy and seed.
        """
        self.num_loans = num_loans
        self.config = config
        self.seed = config.seed if config is not None and config.seed is not None else seed
        self.numeric = NumericContext(config.numeric) if config is not None else NumericContext()

        self.calculator = ProgressiveEMICalculator()
        self._loan_gen = LoanScenarioGenerator(
            seed=self.seed,
            extra_disbursement_rate=extra_disbursement_rate,
            rate_change_rate=rate_change_rate,
            payment_rate=payment_rate,
        )
        self.loans: list[tuple[LoanScenario, ScheduleModel]] = []
        self.failures: list[tuple[LoanScenario, EmiEngineError]] = []

    def generate(self) -> list[tuple[LoanScenario, ScheduleModel]]:
        """Generate and replay every loan.

        Returns
        -------
        list[tuple[LoanScenario, ScheduleModel]]
            Each scenario with its computed schedule. Loans the engine
            rejects are kept in :attr:`failures` instead.
        """
        logger.info("Starting loan portfolio scenario: %d loans", self.num_loans)

        for scenario in self._loan_gen.generate_batch(self.num_loans):
            try:
                model = replay_scenario(scenario, self.calculator, self.numeric)
            except EmiEngineError as e:
                logger.warning(
                    "Loan %s rejected by the engine: %s",
                    scenario.loan_id,
                    e,
                    extra=log_context(loan_id=scenario.loan_id),
                )
                self.failures.append((scenario, e))
                continue
            self.loans.append((scenario, model))

        logger.info(
            "Generated %d schedules (%d rejected) with %d periods",
            len(self.loans),
            len(self.failures),
            sum(len(model.repayment_periods) for _, model in self.loans),
        )
        return self.loans

    def export(self, sinks: list[Any]) -> None:
        """Export generated schedules to sinks.

        Parameters
        ----------
        sinks : list[Any]
            Sink instances (ConsoleSink, JsonFileSink).
        """
        rows = [row for scenario, model in self.loans for row in period_rows(model, scenario.loan_id)]
        for sink in sinks:
            sink.write_batch("loans", [scenario for scenario, _ in self.loans])
            sink.write_batch("repayment_periods", rows)

        logger.info("Exported loan portfolio to %d sinks", len(sinks))

    def get_portfolio_summary(self) -> dict[str, Any]:
        """Get summary statistics for the loan portfolio.

        Returns
        -------
        dict[str, Any]
            Portfolio summary statistics.
        """
        if not self.loans:
            return {}

        total_disbursed = sum((model.total_disbursed_amount for _, model in self.loans), Decimal("0"))
        total_interest = sum((model.total_due_interest for _, model in self.loans), Decimal("0"))

        convention_counts: dict[str, int] = {}
        for scenario, _ in self.loans:
            key = f"{scenario.terms.days_in_year_type.value}/{scenario.terms.days_in_month_type.value}"
            convention_counts[key] = convention_counts.get(key, 0) + 1

        return {
            "total_loans": len(self.loans),
            "rejected_loans": len(self.failures),
            "total_disbursed": str(total_disbursed),
            "total_due_interest": str(total_interest),
            "convention_distribution": convention_counts,
            "rate_changes": sum(
                1
                for scenario, _ in self.loans
                if any(e.event_type == ScheduleEventType.INTEREST_RATE_CHANGE for e in scenario.events)
            ),
        }
