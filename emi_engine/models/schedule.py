"""Progressive loan schedule: repayment periods split into interest periods.

The schedule is an ordered list of :class:`RepaymentPeriod` values, each
holding an ordered list of :class:`InterestPeriod` slices. Neighbours are
found by position, never through stored references, so a copy of a period
list is always self-consistent.

Only inputs are stored: rate factors, amounts, the per-slice opening
balances and the installment figures. Interest, principal split and closing
balances are derived on read by :meth:`ScheduleModel.figures`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable

from emi_engine.exceptions import InvalidScheduleInputError, PeriodNotFoundError
from emi_engine.models.results import PeriodFigures
from emi_engine.models.terms import InterestRate, ProductTerms
from emi_engine.numeric import ONE, ZERO, NumericContext

logger = logging.getLogger(__name__)


def is_in_period(target: date, from_date: date, due_date: date, include_from: bool) -> bool:
    """Check ``target`` against a half-open (or closed, with ``include_from``) range."""
    if include_from:
        return from_date <= target <= due_date
    return from_date < target <= due_date


@dataclass
class InterestPeriod:
    """Slice of a repayment period with a constant balance and rate.

    ``disbursement_amount`` and ``balance_correction_amount`` take effect at
    ``due_date``: they change the opening balance of the next slice.
    Chargeback amounts sit on the slice starting at the chargeback date and
    are due with the installment of its repayment period.
    """

    from_date: date
    due_date: date
    rate_factor: Decimal = ZERO
    rate_factor_till_period_due_date: Decimal = ZERO
    disbursement_amount: Decimal = ZERO
    balance_correction_amount: Decimal = ZERO
    outstanding_loan_balance: Decimal = ZERO
    chargeback_principal: Decimal = ZERO
    chargeback_interest: Decimal = ZERO
    is_paused: bool = False

    @classmethod
    def empty(cls, from_date: date, due_date: date, zero: Decimal, is_paused: bool = False) -> InterestPeriod:
        return cls(
            from_date=from_date,
            due_date=due_date,
            disbursement_amount=zero,
            balance_correction_amount=zero,
            outstanding_loan_balance=zero,
            chargeback_principal=zero,
            chargeback_interest=zero,
            is_paused=is_paused,
        )

    @property
    def length(self) -> int:
        return (self.due_date - self.from_date).days

    def length_till(self, period_due_date: date) -> int:
        return (period_due_date - self.from_date).days

    def calculated_due_interest(self, period_due_date: date, numeric: NumericContext) -> Decimal:
        """Interest accrued on this slice.

        The rate factor covers ``[from_date, period_due_date]``; it is spread
        per day and charged for the slice's own length. Chargeback interest
        is added on top, even while accrual is paused.
        """
        if self.is_paused:
            return self.chargeback_interest
        length_till = self.length_till(period_due_date)
        if length_till == 0:
            return numeric.negative_to_zero(self.chargeback_interest)
        interest = numeric.multiply(self.outstanding_loan_balance, self.rate_factor_till_period_due_date)
        interest = numeric.divide(interest, Decimal(length_till))
        interest = numeric.multiply(interest, Decimal(self.length))
        return numeric.negative_to_zero(numeric.add(self.chargeback_interest, interest))

    def add_amounts(self, disbursed: Decimal, correction: Decimal, numeric: NumericContext) -> None:
        self.disbursement_amount = numeric.money(self.disbursement_amount + disbursed)
        self.balance_correction_amount = numeric.money(self.balance_correction_amount + correction)

    def add_chargeback(self, principal: Decimal, interest: Decimal, numeric: NumericContext) -> None:
        self.chargeback_principal = numeric.money(self.chargeback_principal + principal)
        self.chargeback_interest = numeric.money(self.chargeback_interest + interest)

    def copy(self) -> InterestPeriod:
        return replace(self)


@dataclass
class RepaymentPeriod:
    """One installment of the schedule."""

    from_date: date
    due_date: date
    interest_periods: list[InterestPeriod] = field(default_factory=list)
    emi: Decimal = ZERO
    original_emi: Decimal = ZERO
    paid_principal: Decimal = ZERO
    paid_interest: Decimal = ZERO

    @classmethod
    def empty(cls, from_date: date, due_date: date, zero: Decimal) -> RepaymentPeriod:
        """Period with zero amounts and a single slice covering it."""
        if from_date > due_date:
            raise InvalidScheduleInputError(f"Period starts after it ends: {from_date} > {due_date}")
        return cls(
            from_date=from_date,
            due_date=due_date,
            interest_periods=[InterestPeriod.empty(from_date, due_date, zero)],
            emi=zero,
            original_emi=zero,
            paid_principal=zero,
            paid_interest=zero,
        )

    @property
    def first_interest_period(self) -> InterestPeriod:
        return self.interest_periods[0]

    @property
    def last_interest_period(self) -> InterestPeriod:
        return self.interest_periods[-1]

    @property
    def length(self) -> int:
        return (self.due_date - self.from_date).days

    @property
    def rate_factor_plus_1(self) -> Decimal:
        return ONE + sum((ip.rate_factor for ip in self.interest_periods), ZERO)

    @property
    def disbursed_amount(self) -> Decimal:
        return sum((ip.disbursement_amount for ip in self.interest_periods), ZERO)

    @property
    def chargeback_principal(self) -> Decimal:
        return sum((ip.chargeback_principal for ip in self.interest_periods), ZERO)

    @property
    def chargeback_interest(self) -> Decimal:
        return sum((ip.chargeback_interest for ip in self.interest_periods), ZERO)

    @property
    def total_chargeback_amount(self) -> Decimal:
        return self.chargeback_principal + self.chargeback_interest

    @property
    def emi_plus_chargeback(self) -> Decimal:
        """Installment including the chargebacks due with it."""
        return self.emi + self.total_chargeback_amount

    @property
    def credited_amounts(self) -> Decimal:
        """Principal lent in this period: disbursements plus chargeback principal."""
        return self.disbursed_amount + self.chargeback_principal

    @property
    def total_paid_amount(self) -> Decimal:
        return self.paid_principal + self.paid_interest

    @property
    def is_fully_paid(self) -> bool:
        return self.emi == self.total_paid_amount

    def find_interest_period(self, target: date, include_from: bool) -> InterestPeriod | None:
        """Slice containing ``target``; the first slice may include its start."""
        for index, ip in enumerate(self.interest_periods):
            if is_in_period(target, ip.from_date, ip.due_date, include_from and index == 0):
                return ip
        return None

    def copy(self) -> RepaymentPeriod:
        return replace(self, interest_periods=[ip.copy() for ip in self.interest_periods])

    def copy_without_paid_amounts(self, zero: Decimal) -> RepaymentPeriod:
        period = self.copy()
        period.paid_principal = zero
        period.paid_interest = zero
        for ip in period.interest_periods:
            ip.balance_correction_amount = zero
        return period


@dataclass
class ScheduleModel:
    """Progressive loan schedule.

    Parameters
    ----------
    repayment_periods : list[RepaymentPeriod]
        Contiguous, chronologically ordered periods.
    terms : ProductTerms
        Interest conventions of the loan product.
    numeric : NumericContext
        Precision and rounding of every computation on this schedule.
    installment_amount_in_multiples_of : int | None
        When set, computed installments are rounded to this multiple.
    """

    repayment_periods: list[RepaymentPeriod]
    terms: ProductTerms
    numeric: NumericContext = field(default_factory=NumericContext)
    installment_amount_in_multiples_of: int | None = None
    interest_rates: list[InterestRate] = field(default_factory=list)
    emi_recalculation_enabled: bool = True
    is_copy: bool = False

    @classmethod
    def create(
        cls,
        periods: list[tuple[date, date]],
        terms: ProductTerms,
        numeric: NumericContext | None = None,
        installment_amount_in_multiples_of: int | None = None,
    ) -> ScheduleModel:
        """Build an empty schedule from ``(from_date, due_date)`` boundaries.

        Raises
        ------
        InvalidScheduleInputError
            If no periods are given or the periods are not contiguous.
        """
        numeric = numeric or NumericContext()
        if not periods:
            raise InvalidScheduleInputError("A schedule needs at least one repayment period")

        repayment_periods: list[RepaymentPeriod] = []
        for from_date, due_date in periods:
            if repayment_periods and repayment_periods[-1].due_date != from_date:
                raise InvalidScheduleInputError(
                    f"Repayment periods must be contiguous: {repayment_periods[-1].due_date} != {from_date}"
                )
            repayment_periods.append(RepaymentPeriod.empty(from_date, due_date, numeric.zero))

        logger.debug(
            "Created schedule with %d periods from %s to %s",
            len(repayment_periods),
            repayment_periods[0].from_date,
            repayment_periods[-1].due_date,
        )
        return cls(
            repayment_periods=repayment_periods,
            terms=terms,
            numeric=numeric,
            installment_amount_in_multiples_of=installment_amount_in_multiples_of,
        )

    @property
    def zero(self) -> Decimal:
        return self.numeric.zero

    @property
    def start_date(self) -> date:
        return self.repayment_periods[0].from_date

    @property
    def maturity_date(self) -> date:
        return self.repayment_periods[-1].due_date

    @property
    def loan_term_in_days(self) -> int:
        return (self.maturity_date - self.start_date).days

    @property
    def last_repayment_period(self) -> RepaymentPeriod:
        return self.repayment_periods[-1]

    @property
    def is_empty(self) -> bool:
        return all(not rp.emi for rp in self.repayment_periods)

    # Copies

    def deep_copy(self) -> ScheduleModel:
        return replace(
            self,
            repayment_periods=[rp.copy() for rp in self.repayment_periods],
            interest_rates=list(self.interest_rates),
            is_copy=False,
        )

    def copy_without_paid_amounts(self) -> ScheduleModel:
        return replace(
            self,
            repayment_periods=[rp.copy_without_paid_amounts(self.zero) for rp in self.repayment_periods],
            interest_rates=list(self.interest_rates),
            is_copy=True,
        )

    def copy_periods_from(
        self,
        period_from_due_date: date,
        source_periods: list[RepaymentPeriod],
        copy: Callable[[RepaymentPeriod, RepaymentPeriod], None],
    ) -> None:
        """Call ``copy(source, target)`` for matching periods due on or after a date."""
        sources = {rp.due_date: rp for rp in source_periods}
        for target in self.repayment_periods:
            if target.due_date < period_from_due_date:
                continue
            source = sources.get(target.due_date)
            if source is not None:
                copy(source, target)

    # Lookup

    def index_of(self, period: RepaymentPeriod) -> int:
        for index, rp in enumerate(self.repayment_periods):
            if rp is period:
                return index
        raise PeriodNotFoundError(f"Repayment period due {period.due_date} is not part of this schedule")

    def previous_of(self, period: RepaymentPeriod) -> RepaymentPeriod | None:
        index = self.index_of(period)
        return self.repayment_periods[index - 1] if index > 0 else None

    def next_of(self, period: RepaymentPeriod) -> RepaymentPeriod | None:
        index = self.index_of(period)
        return self.repayment_periods[index + 1] if index + 1 < len(self.repayment_periods) else None

    def is_first(self, period: RepaymentPeriod) -> bool:
        return self.repayment_periods[0] is period

    def find_repayment_period_by_due_date(self, due_date: date) -> RepaymentPeriod | None:
        for rp in self.repayment_periods:
            if rp.due_date == due_date:
                return rp
        return None

    def require_repayment_period(self, due_date: date) -> RepaymentPeriod:
        period = self.find_repayment_period_by_due_date(due_date)
        if period is None:
            raise PeriodNotFoundError(f"No repayment period is due on {due_date}")
        return period

    def find_repayment_period(self, target: date) -> RepaymentPeriod | None:
        """Period containing ``target``; the first period includes its start date."""
        for index, rp in enumerate(self.repayment_periods):
            if is_in_period(target, rp.from_date, rp.due_date, index == 0):
                return rp
        return None

    def find_interest_period(self, period: RepaymentPeriod, target: date) -> InterestPeriod | None:
        return period.find_interest_period(target, self.is_first(period))

    def find_repayment_period_for_balance_change(self, balance_change_date: date) -> RepaymentPeriod | None:
        return self.find_repayment_period(balance_change_date)

    def related_repayment_periods(self, from_due_date: date) -> list[RepaymentPeriod]:
        return [rp for rp in self.repayment_periods if rp.due_date >= from_due_date]

    # Interest rates

    def add_interest_rate(self, effective_from: date, annual_rate: Decimal) -> None:
        """Register a rate; a rate on the same date replaces the previous one."""
        rates = [rate for rate in self.interest_rates if rate.effective_from != effective_from]
        rates.append(InterestRate(effective_from, annual_rate))
        rates.sort(key=lambda rate: rate.effective_from, reverse=True)
        self.interest_rates = rates

    def interest_rate_on(self, on_date: date) -> Decimal:
        for rate in self.interest_rates:
            if rate.effective_from <= on_date:
                return rate.annual_rate
        return self.terms.annual_nominal_interest_rate

    # Structural edits

    def split_at(self, period: RepaymentPeriod, boundary: date) -> int:
        """Make ``boundary`` an interest period boundary inside ``period``.

        Returns the index of the interest period ending on ``boundary``.
        An existing boundary is reused. Otherwise the slice containing the
        date is cut in two and the earlier half is returned; amounts already
        on the cut slice stay on the earlier half.
        """
        for index, ip in enumerate(period.interest_periods):
            if ip.due_date == boundary:
                return index

        position = 0
        for index, ip in enumerate(period.interest_periods):
            if ip.from_date < boundary <= ip.due_date:
                position = index
        previous = period.interest_periods[position]
        original_due_date = previous.due_date
        new_due_date = min(max(boundary, previous.from_date), previous.due_date)
        previous.due_date = new_due_date
        period.interest_periods.insert(
            position + 1,
            InterestPeriod.empty(new_due_date, original_due_date, self.zero, is_paused=previous.is_paused),
        )
        return position

    def change_outstanding_balance(
        self, balance_change_date: date, disbursed: Decimal, correction: Decimal
    ) -> RepaymentPeriod | None:
        """Attach a balance change to the interest period ending on its date."""
        period = self.find_repayment_period_for_balance_change(balance_change_date)
        if period is None:
            return None
        index = self.split_at(period, balance_change_date)
        period.interest_periods[index].add_amounts(disbursed, correction, self.numeric)
        return period

    def add_chargeback(self, transaction_date: date, principal: Decimal, interest: Decimal) -> InterestPeriod | None:
        """Record chargeback amounts on the interest period starting at ``transaction_date``.

        A period owns the chargebacks dated from its start up to, but not
        including, its due date; the last period also owns its due date.
        The date must already be a slice boundary.
        """
        last = self.last_repayment_period
        for period in self.repayment_periods:
            if period.from_date <= transaction_date < period.due_date or (
                period is last and period.from_date <= transaction_date <= period.due_date
            ):
                starting = [ip for ip in period.interest_periods if ip.from_date == transaction_date]
                if not starting:
                    return None
                target = starting[-1]
                target.add_chargeback(principal, interest, self.numeric)
                return target
        return None

    def apply_interest_pause(self, from_date: date, end_date: date) -> RepaymentPeriod | None:
        """Insert paused slices for ``[from_date, end_date]``.

        Returns the first affected repayment period, or ``None`` when the
        pause does not overlap the schedule.
        """
        affected = [
            rp for rp in self.repayment_periods if rp.from_date < end_date and not rp.due_date < from_date
        ]
        for period in affected:
            self._insert_pause(period, from_date, end_date)
        return affected[0] if affected else None

    def _insert_pause(self, period: RepaymentPeriod, start: date, end: date) -> None:
        pause_start = max(start - timedelta(days=1), period.from_date)
        pause_end = min(end, period.due_date)
        paused = InterestPeriod.empty(pause_start, pause_end, self.zero, is_paused=True)

        slices: list[InterestPeriod] = []
        for ip in period.interest_periods:
            if ip.due_date <= pause_start or ip.from_date >= pause_end:
                slices.append(ip)
                continue
            # Chargebacks stay with the first piece of a cut slice
            chargeback_holder = paused
            if ip.from_date < pause_start:
                left = InterestPeriod.empty(ip.from_date, pause_start, self.zero)
                left.outstanding_loan_balance = ip.outstanding_loan_balance
                slices.append(left)
                chargeback_holder = left
            chargeback_holder.add_chargeback(ip.chargeback_principal, ip.chargeback_interest, self.numeric)
            if ip.due_date > pause_end:
                right = ip.copy()
                right.from_date = pause_end
                right.chargeback_principal = self.zero
                right.chargeback_interest = self.zero
                slices.append(right)
            else:
                # Balance changes dated inside the pause apply when it ends
                paused.add_amounts(ip.disbursement_amount, ip.balance_correction_amount, self.numeric)

        slices.append(paused)
        slices.sort(key=lambda ip: ip.from_date)
        period.interest_periods = slices

    # Derived values

    def recalculate_outstanding_balances(self) -> None:
        """Refresh the opening balance of every interest period, in order."""
        previous: RepaymentPeriod | None = None
        previous_figures: PeriodFigures | None = None
        for period in self.repayment_periods:
            for index, ip in enumerate(period.interest_periods):
                if index > 0:
                    prior = period.interest_periods[index - 1]
                    ip.outstanding_loan_balance = self.numeric.negative_to_zero(
                        self.numeric.money(
                            prior.outstanding_loan_balance + prior.balance_correction_amount + prior.disbursement_amount
                        )
                    )
                elif previous is not None and previous.interest_periods:
                    last = previous.last_interest_period
                    ip.outstanding_loan_balance = self.numeric.negative_to_zero(
                        self.numeric.money(
                            last.outstanding_loan_balance
                            + last.disbursement_amount
                            + last.balance_correction_amount
                            - previous_figures.due_principal
                            + previous.paid_principal
                        )
                    )
            previous_figures = self._figures_for(period, previous_figures)
            previous = period

    def figures(self) -> list[PeriodFigures]:
        """Derived amounts of every repayment period, in schedule order."""
        result: list[PeriodFigures] = []
        previous: PeriodFigures | None = None
        for period in self.repayment_periods:
            previous = self._figures_for(period, previous)
            result.append(previous)
        return result

    def figures_of(self, period: RepaymentPeriod) -> PeriodFigures:
        return self.figures()[self.index_of(period)]

    def _figures_for(self, period: RepaymentPeriod, previous: PeriodFigures | None) -> PeriodFigures:
        numeric = self.numeric
        own_interest = numeric.sum(
            ip.calculated_due_interest(period.due_date, numeric) for ip in period.interest_periods
        )
        unrecognized_before = previous.unrecognized_interest if previous is not None else ZERO
        calculated_due_interest = numeric.money(own_interest + unrecognized_before)
        emi_plus_chargeback = period.emi_plus_chargeback
        calculated_due_principal = numeric.money(emi_plus_chargeback - calculated_due_interest)

        # Early repayment or pay-off: the paid interest is what was due
        if period.paid_principal > calculated_due_principal:
            due_interest = period.paid_interest
        else:
            due_interest = max(calculated_due_interest, period.paid_interest)
        due_principal = max(numeric.money(emi_plus_chargeback - due_interest), period.paid_principal)
        unrecognized_interest = numeric.money(calculated_due_interest - due_interest)

        if period.interest_periods:
            last = period.last_interest_period
            closing = last.outstanding_loan_balance + last.balance_correction_amount + last.disbursement_amount
        else:
            closing = self.zero
        outstanding = numeric.negative_to_zero(
            numeric.money(closing - due_principal + period.paid_principal)
        )

        opening = previous.outstanding_loan_balance if previous is not None else self.zero
        return PeriodFigures(
            calculated_due_interest=calculated_due_interest,
            calculated_due_principal=calculated_due_principal,
            due_interest=due_interest,
            due_principal=due_principal,
            unrecognized_interest=unrecognized_interest,
            outstanding_loan_balance=outstanding,
            initial_balance_for_emi_recalculation=numeric.money(opening + period.disbursed_amount),
        )

    # Totals

    @property
    def total_disbursed_amount(self) -> Decimal:
        return self.numeric.money_sum(rp.disbursed_amount for rp in self.repayment_periods)

    @property
    def total_chargeback_principal(self) -> Decimal:
        return self.numeric.money_sum(rp.chargeback_principal for rp in self.repayment_periods)

    @property
    def total_due_principal(self) -> Decimal:
        """Disbursed amount plus chargeback principal."""
        return self.numeric.money_sum(rp.credited_amounts for rp in self.repayment_periods)

    @property
    def total_due_interest(self) -> Decimal:
        return self.numeric.money_sum(f.due_interest for f in self.figures())

    @property
    def total_emi(self) -> Decimal:
        return self.numeric.money_sum(rp.emi for rp in self.repayment_periods)

    @property
    def total_emi_plus_chargeback(self) -> Decimal:
        return self.numeric.money_sum(rp.emi_plus_chargeback for rp in self.repayment_periods)

    @property
    def total_paid_principal(self) -> Decimal:
        return self.numeric.money_sum(rp.paid_principal for rp in self.repayment_periods)

    @property
    def total_paid_interest(self) -> Decimal:
        return self.numeric.money_sum(rp.paid_interest for rp in self.repayment_periods)

    @property
    def total_outstanding_principal(self) -> Decimal:
        return self.numeric.negative_to_zero(self.numeric.money(self.total_due_principal - self.total_paid_principal))

    @property
    def total_outstanding_interest(self) -> Decimal:
        return self.numeric.negative_to_zero(self.numeric.money(self.total_due_interest - self.total_paid_interest))
