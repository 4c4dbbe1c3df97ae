"""Immutable values returned by schedule queries."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PeriodFigures:
    """Derived amounts of one repayment period.

    Computed from the stored schedule state on every read, so they always
    reflect the latest balances, rate factors and payments.
    """

    calculated_due_interest: Decimal
    calculated_due_principal: Decimal
    due_interest: Decimal
    due_principal: Decimal
    unrecognized_interest: Decimal
    outstanding_loan_balance: Decimal
    initial_balance_for_emi_recalculation: Decimal


@dataclass(frozen=True)
class PeriodDueDetails:
    """Installment split of one period as of a target date."""

    emi: Decimal
    due_principal: Decimal
    due_interest: Decimal


@dataclass(frozen=True)
class OutstandingDetails:
    """Principal and interest still owed as of a target date."""

    outstanding_principal: Decimal
    outstanding_interest: Decimal
