"""Synthetic loan scenario generator."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

from emi_engine.calc.daycount import add_units
from emi_engine.exceptions import InvalidScheduleInputError
from emi_engine.generators.base import BaseGenerator
from emi_engine.models.enums import DaysInMonthType, DaysInYearType, PeriodFrequencyType
from emi_engine.models.scenario import LoanScenario, ScheduleEvent, ScheduleEventType
from emi_engine.models.terms import ProductTerms


def period_boundaries(
    start: date,
    count: int,
    frequency: PeriodFrequencyType = PeriodFrequencyType.MONTHS,
    repay_every: int = 1,
) -> list[tuple[date, date]]:
    """Contiguous ``(from_date, due_date)`` pairs starting on ``start``.

    Each due date is computed from ``start`` rather than from the previous
    due date, so month-end schedules do not drift.
    """
    if count < 1:
        raise InvalidScheduleInputError(f"Period count must be positive, got {count}")
    dates = [add_units(start, index * repay_every, frequency) for index in range(count + 1)]
    return list(zip(dates, dates[1:]))


class LoanScenarioGenerator(BaseGenerator):
    """Generate random products, schedules and event sequences."""

    # Convention combinations with a rate factor rule, with their repay-every choices
    CONVENTIONS = [
        (DaysInYearType.DAYS_360, DaysInMonthType.DAYS_30, PeriodFrequencyType.MONTHS, [1]),
        (DaysInYearType.DAYS_365, DaysInMonthType.ACTUAL, PeriodFrequencyType.MONTHS, [1]),
        (DaysInYearType.ACTUAL, DaysInMonthType.ACTUAL, PeriodFrequencyType.MONTHS, [1]),
        (DaysInYearType.DAYS_364, DaysInMonthType.ACTUAL, PeriodFrequencyType.WEEKS, [1, 2]),
        (DaysInYearType.DAYS_360, DaysInMonthType.DAYS_30, PeriodFrequencyType.DAYS, [15, 30]),
    ]

    PERIOD_COUNTS = [3, 6, 12, 18, 24]

    def __init__(
        self,
        seed: int | None = None,
        start_from: date = date(2023, 1, 1),
        start_to: date = date(2025, 12, 31),
        extra_disbursement_rate: float = 0.3,
        rate_change_rate: float = 0.2,
        payment_rate: float = 0.0,
        correction_rate: float = 0.0,
    ) -> None:
        """Initialize loan scenario generator.

        Parameters
        ----------
        seed : int | None
            Random seed for reproducibility.
        start_from, start_to : date
            Range of loan start dates.
        extra_disbursement_rate : float
            Probability of a second disbursement (0.0 to 1.0).
        rate_change_rate : float
            Probability of an interest rate change.
        payment_rate : float
            Share of installments paid on their due date.
        correction_rate : float
            Probability of a mistaken balance posting that is reversed later
            in the term.
        """
        super().__init__(seed)
        self.start_from = start_from
        self.start_to = start_to
        self.extra_disbursement_rate = extra_disbursement_rate
        self.rate_change_rate = rate_change_rate
        self.payment_rate = payment_rate
        self.correction_rate = correction_rate

    def generate_terms(self) -> ProductTerms:
        days_in_year, days_in_month, frequency, repay_every_choices = self.rng.choice(self.CONVENTIONS)
        return ProductTerms(
            annual_nominal_interest_rate=Decimal(str(round(self.rng.uniform(0, 25), 4))),
            days_in_year_type=days_in_year,
            days_in_month_type=days_in_month,
            repayment_frequency_type=frequency,
            repay_every=self.rng.choice(repay_every_choices),
        )

    def generate(self) -> LoanScenario:
        """Generate one loan scenario.

        Returns
        -------
        LoanScenario
            Scenario whose events are in chronological order, starting with
            a disbursement on the loan start date.
        """
        terms = self.generate_terms()
        start = self.fake.date_between_dates(date_start=self.start_from, date_end=self.start_to)
        periods = period_boundaries(
            start, self.rng.choice(self.PERIOD_COUNTS), terms.repayment_frequency_type, terms.repay_every
        )
        term_days = (periods[-1][1] - start).days

        events = [
            ScheduleEvent(
                ScheduleEventType.DISBURSEMENT,
                start,
                amount=Decimal(self.rng.randint(1, 500) * 100),
            )
        ]
        if self.chance(self.extra_disbursement_rate):
            events.append(
                ScheduleEvent(
                    ScheduleEventType.DISBURSEMENT,
                    start + timedelta(days=self.rng.randint(1, max(1, term_days // 2))),
                    amount=Decimal(self.rng.randint(1, 200) * 50),
                )
            )
        if self.chance(self.rate_change_rate):
            events.append(
                ScheduleEvent(
                    ScheduleEventType.INTEREST_RATE_CHANGE,
                    start + timedelta(days=self.rng.randint(1, term_days)),
                    interest_rate=Decimal(str(round(self.rng.uniform(0, 25), 4))),
                )
            )
        for _, due_date in periods:
            if self.chance(self.payment_rate):
                events.append(
                    ScheduleEvent(ScheduleEventType.INSTALLMENT_PAYMENT, due_date, period_due_date=due_date)
                )
        if self.chance(self.correction_rate):
            posted_on = start + timedelta(days=self.rng.randint(1, max(1, term_days - 1)))
            reversed_on = posted_on + timedelta(days=self.rng.randint(0, (periods[-1][1] - posted_on).days))
            amount = Decimal(self.rng.randint(1, 100) * 10)
            events.append(ScheduleEvent(ScheduleEventType.BALANCE_CORRECTION, posted_on, amount=amount))
            events.append(ScheduleEvent(ScheduleEventType.BALANCE_CORRECTION, reversed_on, amount=-amount))

        # Stable: the opening disbursement stays ahead of same-day events
        events.sort(key=lambda event: event.event_date)
        return LoanScenario(loan_id=self.fake.uuid4(), terms=terms, periods=periods, events=events)

    def generate_batch(self, count: int) -> Iterator[LoanScenario]:
        for _ in range(count):
            yield self.generate()
