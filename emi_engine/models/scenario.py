"""Synthetic loan scenarios replayed against the engine."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from emi_engine.models.terms import ProductTerms


class ScheduleEventType(str, Enum):
    DISBURSEMENT = "DISBURSEMENT"
    INTEREST_RATE_CHANGE = "INTEREST_RATE_CHANGE"
    INSTALLMENT_PAYMENT = "INSTALLMENT_PAYMENT"
    INTEREST_PAUSE = "INTEREST_PAUSE"
    BALANCE_CORRECTION = "BALANCE_CORRECTION"


@dataclass
class ScheduleEvent:
    """One dated engine call of a scenario."""

    event_type: ScheduleEventType
    event_date: date
    amount: Decimal | None = None
    interest_rate: Decimal | None = None
    period_due_date: date | None = None
    end_date: date | None = None


@dataclass
class LoanScenario:
    """Product, period boundaries and chronological events of one loan."""

    loan_id: str
    terms: ProductTerms
    periods: list[tuple[date, date]]
    events: list[ScheduleEvent] = field(default_factory=list)

    @property
    def total_disbursed(self) -> Decimal:
        return sum(
            (e.amount for e in self.events if e.event_type == ScheduleEventType.DISBURSEMENT),
            Decimal("0"),
        )
