"""Schedule-changing operations that trigger an EMI recalculation."""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from emi_engine.models.enums import EmiChangeAction


@dataclass(frozen=True)
class EmiChangeOperation:
    """A disbursement or rate change applied to a schedule."""

    action: EmiChangeAction
    submitted_on: date
    amount: Decimal | None = None
    interest_rate: Decimal | None = None

    @classmethod
    def disburse(cls, disbursed_on: date, amount: Decimal) -> "EmiChangeOperation":
        return cls(EmiChangeAction.DISBURSEMENT, disbursed_on, amount=amount)

    @classmethod
    def change_interest_rate(cls, effective_on: date, rate: Decimal) -> "EmiChangeOperation":
        return cls(EmiChangeAction.INTEREST_RATE_CHANGE, effective_on, interest_rate=rate)

    @property
    def is_interest_rate_change(self) -> bool:
        return self.action == EmiChangeAction.INTEREST_RATE_CHANGE

    def with_zero_amount(self, zero: Decimal) -> "EmiChangeOperation":
        """Same operation with no money attached, used to replay on a copy."""
        return replace(self, amount=zero)
