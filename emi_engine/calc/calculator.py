"""Progressive EMI calculator: schedule mutations and point-in-time queries."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal

from emi_engine.calc.annuity import compute_emi, get_emi_adjustment
from emi_engine.calc.rate_factor import RateFactorCalculator
from emi_engine.config import NumericConfig
from emi_engine.exceptions import InvalidScheduleInputError, PeriodNotFoundError
from emi_engine.models.operations import EmiChangeOperation
from emi_engine.models.results import OutstandingDetails, PeriodDueDetails
from emi_engine.models.schedule import RepaymentPeriod, ScheduleModel
from emi_engine.models.terms import ProductTerms
from emi_engine.numeric import ZERO, NumericContext, to_decimal

logger = logging.getLogger(__name__)

MAX_EMI_ADJUSTMENT_ITERATIONS = 3


class ProgressiveEMICalculator:
    """Builds and maintains progressive loan schedules.

    Every mutating method validates its input before touching the schedule,
    so a rejected call leaves the schedule unchanged. Query methods work on
    a private copy and never modify the schedule they are given.
    """

    def generate_schedule_model(
        self,
        periods: list[tuple[date, date]],
        terms: ProductTerms,
        numeric: NumericContext | NumericConfig | None = None,
        installment_amount_in_multiples_of: int | None = None,
    ) -> ScheduleModel:
        """Create an empty schedule for the given period boundaries.

        Parameters
        ----------
        periods : list[tuple[date, date]]
            ``(from_date, due_date)`` pairs, contiguous and in order.
        terms : ProductTerms
            Interest conventions of the loan product.
        numeric : NumericContext | NumericConfig | None
            Arithmetic policy; defaults to 12 digits, banker's rounding.
        installment_amount_in_multiples_of : int | None
            Round computed installments to this multiple. Falls back to the
            numeric configuration when omitted.

        Returns
        -------
        ScheduleModel
            Schedule with zero installments and one interest period per
            repayment period.
        """
        if isinstance(numeric, NumericConfig):
            numeric = NumericContext(numeric)
        numeric = numeric or NumericContext()
        if installment_amount_in_multiples_of is None:
            installment_amount_in_multiples_of = numeric.config.installment_amount_in_multiples_of
        return ScheduleModel.create(periods, terms, numeric, installment_amount_in_multiples_of)

    def find_repayment_period(self, model: ScheduleModel | None, due_date: date) -> RepaymentPeriod | None:
        if model is None:
            return None
        return model.find_repayment_period_by_due_date(due_date)

    # Mutations

    def add_disbursement(self, model: ScheduleModel, disbursed_on: date, amount: Decimal | int | str) -> None:
        """Add a disbursement and recompute installments from its period on.

        Raises
        ------
        InvalidScheduleInputError
            If the amount is negative.
        PeriodNotFoundError
            If the date falls outside the schedule.
        """
        amount = self._non_negative_money(model, amount, "Disbursement")
        self._require_balance_change_period(model, disbursed_on)
        logger.debug("Disbursing %s on %s", amount, disbursed_on)
        self._add_disbursement(model, EmiChangeOperation.disburse(disbursed_on, amount))

    def change_interest_rate(self, model: ScheduleModel, submitted_on: date, annual_rate: Decimal | int | str) -> None:
        """Apply a new annual rate (percent) from the day before ``submitted_on``.

        A change submitted on the loan's start date takes effect the day
        before it, so the new rate covers the whole schedule.
        """
        rate = to_decimal(annual_rate)
        if rate < 0:
            raise InvalidScheduleInputError(f"Interest rate must not be negative, got {rate}")
        self._require_balance_change_period(model, submitted_on)
        logger.debug("Changing interest rate to %s%% submitted on %s", rate, submitted_on)
        self._change_interest_rate(model, EmiChangeOperation.change_interest_rate(submitted_on, rate))

    def add_balance_correction(self, model: ScheduleModel, corrected_on: date, amount: Decimal | int | str) -> None:
        """Shift the balance by ``amount`` (signed) without re-solving installments."""
        amount = model.numeric.money(amount)
        self._require_balance_change_period(model, corrected_on)
        self._add_balance_correction(model, corrected_on, amount)

    def pay_interest(
        self, model: ScheduleModel, period_due_date: date, transaction_date: date, amount: Decimal | int | str
    ) -> None:
        """Record an interest payment against the period due on ``period_due_date``.

        Interest paid does not move the balance, so no interest period is
        split: ``transaction_date`` is only logged.
        """
        amount = self._non_negative_money(model, amount, "Interest payment")
        period = model.require_repayment_period(period_due_date)
        period.paid_interest = model.numeric.money(period.paid_interest + amount)
        logger.debug("Paid interest %s for period due %s on %s", amount, period_due_date, transaction_date)
        model.recalculate_outstanding_balances()
        self._calculate_last_unpaid_repayment_period_emi(model)

    def pay_principal(
        self, model: ScheduleModel, period_due_date: date, transaction_date: date, amount: Decimal | int | str
    ) -> None:
        """Record a principal payment for a period.

        The balance drops on the transaction date, or on the period's due
        date when the payment is late, and the last unpaid installment
        absorbs the difference. With EMI recalculation enabled, a payment
        made before the period starts also pins the period's installment to
        the amount paid, settling it early.
        """
        amount = self._non_negative_money(model, amount, "Principal payment")
        if not amount:
            return
        period = model.require_repayment_period(period_due_date)
        # A late payment reduces the balance as of the due date
        correction_date = period_due_date if period_due_date < transaction_date else transaction_date
        self._require_balance_change_period(model, correction_date)

        paid_before_period = transaction_date < period.from_date
        period.paid_principal = model.numeric.money(period.paid_principal + amount)
        logger.debug("Paid principal %s for period due %s on %s", amount, period_due_date, transaction_date)
        self._add_balance_correction(model, correction_date, -amount)

        if model.emi_recalculation_enabled:
            total_paid = period.total_paid_amount
            chargebacks = period.total_chargeback_amount
            if paid_before_period and total_paid > period.emi_plus_chargeback:
                period.emi = model.numeric.money(total_paid - chargebacks)
            elif paid_before_period and total_paid == period.original_emi + chargebacks:
                period.emi = model.numeric.money(total_paid - chargebacks)
            self._calculate_last_unpaid_repayment_period_emi(model)

    def chargeback_principal(self, model: ScheduleModel, transaction_date: date, amount: Decimal | int | str) -> None:
        """Lend ``amount`` of principal back on ``transaction_date``.

        The balance rises from that date and the amount is due, on top of
        the installment, in the period owning the date.
        """
        amount = self._non_negative_money(model, amount, "Chargeback principal")
        self._require_balance_change_period(model, transaction_date)
        logger.debug("Chargeback principal %s on %s", amount, transaction_date)
        self._add_chargeback(model, transaction_date, amount, model.zero)

    def chargeback_interest(self, model: ScheduleModel, transaction_date: date, amount: Decimal | int | str) -> None:
        """Charge ``amount`` of interest back on ``transaction_date``; the balance is unchanged."""
        amount = self._non_negative_money(model, amount, "Chargeback interest")
        self._require_balance_change_period(model, transaction_date)
        logger.debug("Chargeback interest %s on %s", amount, transaction_date)
        self._add_chargeback(model, transaction_date, model.zero, amount)

    def apply_interest_pause(self, model: ScheduleModel, from_date: date, end_date: date) -> None:
        """Stop interest accrual between two dates; installments are not re-solved."""
        if end_date < from_date:
            raise InvalidScheduleInputError(f"Interest pause ends before it starts: {end_date} < {from_date}")
        first_affected = model.apply_interest_pause(from_date, end_date)
        if first_affected is None:
            logger.debug("Interest pause %s..%s does not overlap the schedule", from_date, end_date)
            return
        related = model.related_repayment_periods(first_affected.from_date)
        RateFactorCalculator(model).apply_to_periods(related)
        model.recalculate_outstanding_balances()
        self._calculate_last_unpaid_repayment_period_emi(model)

    def calculate_rate_factor_for_repayment_period(self, period: RepaymentPeriod, model: ScheduleModel) -> None:
        RateFactorCalculator(model).apply_to_period(period)

    # Queries

    def get_due_amounts(self, model: ScheduleModel, period_due_date: date, target_date: date) -> PeriodDueDetails:
        """Installment, principal and interest due for a period as of ``target_date``."""
        recalculated = self._recalculate_schedule_model_till_date(model, period_due_date, target_date)
        period = recalculated.require_repayment_period(period_due_date)
        unpaid_count = sum(1 for rp in recalculated.repayment_periods if not rp.is_fully_paid)

        if not target_date > period.from_date:
            if unpaid_count > 1:
                period.emi = period.original_emi
            elif period.is_fully_paid and unpaid_count == 1:
                figures = recalculated.figures_of(period)
                remaining = recalculated.numeric.money(
                    recalculated.total_due_principal
                    - recalculated.total_paid_principal
                    + period.paid_principal
                    + figures.due_interest
                )
                period.emi = min(period.original_emi, remaining)

        figures = recalculated.figures_of(period)
        return PeriodDueDetails(emi=period.emi, due_principal=figures.due_principal, due_interest=figures.due_interest)

    def get_period_interest_till_date(
        self,
        model: ScheduleModel,
        period_due_date: date,
        target_date: date,
        include_chargeback_interest: bool = True,
    ) -> Decimal:
        recalculated = self._recalculate_schedule_model_till_date(model, period_due_date, target_date)
        period = recalculated.require_repayment_period(period_due_date)
        interest = recalculated.figures_of(period).calculated_due_interest
        if include_chargeback_interest:
            return interest
        return recalculated.numeric.money(interest - period.chargeback_interest)

    def get_outstanding_loan_balance_of_period(
        self, model: ScheduleModel, period_due_date: date, target_date: date
    ) -> Decimal:
        recalculated = self._recalculate_schedule_model_till_date(model, period_due_date, target_date)
        period = recalculated.require_repayment_period(period_due_date)
        return recalculated.figures_of(period).outstanding_loan_balance

    def get_outstanding_amounts_till_date(self, model: ScheduleModel, target_date: date) -> OutstandingDetails:
        """Principal and interest owed if the loan were settled on ``target_date``.

        Interest stops accruing on the target date; principal is the full
        disbursed amount less principal paid.
        """
        snapshot = model.deep_copy()
        for period in snapshot.repayment_periods:
            if period.from_date < target_date <= period.due_date:
                containing = None
                for ip in period.interest_periods:
                    if ip.from_date < target_date <= ip.due_date:
                        containing = ip
                if containing is not None:
                    containing.due_date = target_date
                break

        RateFactorCalculator(snapshot).apply_to_periods(snapshot.repayment_periods)
        for period in snapshot.repayment_periods:
            for ip in period.interest_periods:
                if target_date < ip.due_date:
                    ip.rate_factor = ZERO
                    ip.rate_factor_till_period_due_date = ZERO
        snapshot.recalculate_outstanding_balances()
        self._calculate_last_unpaid_repayment_period_emi(snapshot)

        return OutstandingDetails(
            outstanding_principal=snapshot.total_outstanding_principal,
            outstanding_interest=snapshot.total_outstanding_interest,
        )

    def get_sum_of_due_interests_on_date(self, model: ScheduleModel, subject_date: date) -> Decimal:
        return model.numeric.money_sum(
            self.get_due_amounts(model, period.due_date, subject_date).due_interest
            for period in model.repayment_periods
        )

    # Internals

    def _non_negative_money(self, model: ScheduleModel, amount: Decimal | int | str, label: str) -> Decimal:
        value = model.numeric.money(amount)
        if value < 0:
            raise InvalidScheduleInputError(f"{label} amount must not be negative, got {value}")
        return value

    def _require_balance_change_period(self, model: ScheduleModel, on_date: date) -> RepaymentPeriod:
        period = model.find_repayment_period_for_balance_change(on_date)
        if period is None:
            raise PeriodNotFoundError(
                f"{on_date} is outside the schedule ({model.start_date} to {model.maturity_date})"
            )
        return period

    def _effective_repayment_due_date(
        self, model: ScheduleModel, changed_period: RepaymentPeriod, operation_date: date
    ) -> date:
        # A change on a due date first affects the next installment
        if changed_period.due_date == operation_date:
            next_period = model.next_of(changed_period)
            if next_period is not None:
                return next_period.due_date
        return changed_period.due_date

    def _add_disbursement(self, model: ScheduleModel, operation: EmiChangeOperation) -> None:
        changed = model.change_outstanding_balance(operation.submitted_on, operation.amount, model.zero)
        if changed is None:
            return
        from_due_date = self._effective_repayment_due_date(model, changed, operation.submitted_on)
        self._calculate_emi_value_and_rate_factors(from_due_date, model, operation)

    def _change_interest_rate(self, model: ScheduleModel, operation: EmiChangeOperation) -> None:
        effective_date = operation.submitted_on - timedelta(days=1)
        model.add_interest_rate(effective_date, operation.interest_rate)
        changed = model.change_outstanding_balance(effective_date, model.zero, model.zero)
        if changed is not None:
            from_due_date = self._effective_repayment_due_date(model, changed, effective_date)
        elif effective_date < model.start_date:
            # Effective before the first period: the new rate covers every installment
            from_due_date = model.repayment_periods[0].due_date
        else:
            return
        self._calculate_emi_value_and_rate_factors(from_due_date, model, operation)

    def _add_balance_correction(self, model: ScheduleModel, corrected_on: date, amount: Decimal) -> None:
        changed = model.change_outstanding_balance(corrected_on, model.zero, amount)
        if changed is None:
            return
        RateFactorCalculator(model).apply_to_period(changed)
        model.recalculate_outstanding_balances()
        self._calculate_last_unpaid_repayment_period_emi(model)

    def _add_chargeback(self, model: ScheduleModel, transaction_date: date, principal: Decimal, interest: Decimal) -> None:
        # Chargeback principal raises the balance like a correction
        changed = model.change_outstanding_balance(transaction_date, model.zero, principal)
        if changed is None:
            return
        model.add_chargeback(transaction_date, principal, interest)
        RateFactorCalculator(model).apply_to_period(changed)
        model.recalculate_outstanding_balances()
        self._calculate_last_unpaid_repayment_period_emi(model)

    def _calculate_emi_value_and_rate_factors(
        self, from_due_date: date, model: ScheduleModel, operation: EmiChangeOperation
    ) -> None:
        related = model.related_repayment_periods(from_due_date)
        only_on_actual_model = model.is_empty or operation.is_interest_rate_change or model.is_copy

        RateFactorCalculator(model).apply_to_periods(related)
        model.recalculate_outstanding_balances()
        if only_on_actual_model:
            self._calculate_emi_on_actual_model(related, model)
        else:
            self._calculate_emi_on_new_model_and_merge(related, model, operation)
        model.recalculate_outstanding_balances()
        self._calculate_last_unpaid_repayment_period_emi(model)
        if only_on_actual_model:
            self._check_and_adjust_emi(model, related)

    def _apply_installment_multiples(self, model: ScheduleModel, emi: Decimal) -> Decimal:
        return model.numeric.round_to_multiples_of(emi, model.installment_amount_in_multiples_of)

    def _calculate_emi_on_actual_model(self, related: list[RepaymentPeriod], model: ScheduleModel) -> None:
        if not related:
            return
        principal = model.figures_of(related[0]).initial_balance_for_emi_recalculation
        emi = compute_emi(principal, [period.rate_factor_plus_1 for period in related], model.numeric)
        emi = self._apply_installment_multiples(model, emi)
        for period in related:
            if not emi < period.total_paid_amount:
                period.emi = emi
                period.original_emi = emi
        logger.debug("Installment %s computed for %d periods from %s", emi, len(related), related[0].due_date)

    def _calculate_emi_on_new_model_and_merge(
        self, related: list[RepaymentPeriod], model: ScheduleModel, operation: EmiChangeOperation
    ) -> None:
        """Solve on a copy without payments, then take its installments."""
        if not related:
            return
        replay = model.copy_without_paid_amounts()
        self._add_disbursement(replay, operation.with_zero_amount(model.zero))

        def take_installment(source: RepaymentPeriod, target: RepaymentPeriod) -> None:
            target.emi = source.emi
            target.original_emi = source.original_emi

        model.copy_periods_from(related[0].due_date, replay.repayment_periods, take_installment)

    def _calculate_last_unpaid_repayment_period_emi(self, model: ScheduleModel) -> None:
        """Let the last unpaid installment absorb the rounding difference."""
        numeric = model.numeric
        while True:
            difference = numeric.money(
                model.total_due_principal + model.total_due_interest - model.total_emi_plus_chargeback
            )
            unpaid = [period for period in model.repayment_periods if not period.is_fully_paid]
            if not unpaid:
                return
            last_unpaid = unpaid[-1]
            last_unpaid.emi = numeric.money(last_unpaid.emi + difference)
            paid_without_chargebacks = numeric.money(last_unpaid.total_paid_amount - last_unpaid.total_chargeback_amount)
            if not last_unpaid.emi < paid_without_chargebacks:
                return
            last_unpaid.emi = paid_without_chargebacks

    def _check_and_adjust_emi(self, model: ScheduleModel, related: list[RepaymentPeriod]) -> None:
        """Spread a lopsided last installment over the other related periods.

        Tries up to three times on a copy and keeps a result only when it
        narrows the gap between the last two unpaid installments.
        """
        if not related:
            return
        numeric = model.numeric
        first_due_date = related[0].due_date
        adjusted_model: ScheduleModel | None = None

        for _ in range(MAX_EMI_ADJUSTMENT_ITERATIONS):
            adjustment = get_emi_adjustment(related, model.zero)
            if not adjustment.should_be_adjusted():
                break
            adjusted_emi = self._apply_installment_multiples(model, adjustment.adjusted_emi(numeric))
            if adjusted_emi == adjustment.original_emi:
                break
            if adjusted_model is None:
                adjusted_model = model.deep_copy()

            for period in adjusted_model.repayment_periods:
                if not period.due_date < first_due_date and not adjusted_emi < period.total_paid_amount:
                    period.emi = adjusted_emi
                    period.original_emi = adjusted_emi
            adjusted_model.recalculate_outstanding_balances()
            self._calculate_last_unpaid_repayment_period_emi(adjusted_model)

            if not get_emi_adjustment(adjusted_model.repayment_periods, model.zero).has_less_emi_difference(adjustment):
                break

            logger.debug("Adjusted installment from %s to %s", adjustment.original_emi, adjusted_emi)
            adjusted_related = adjusted_model.related_repayment_periods(first_due_date)
            for actual, adjusted in zip(related, adjusted_related):
                actual.emi = adjusted.emi
                actual.original_emi = adjusted.emi
            model.recalculate_outstanding_balances()

    def _recalculate_schedule_model_till_date(
        self, model: ScheduleModel, period_due_date: date, target_date: date
    ) -> ScheduleModel:
        """Copy of ``model`` with accrual cut off at ``target_date``."""
        snapshot = model.deep_copy()
        period = snapshot.require_repayment_period(period_due_date)

        adjusted_target_date = target_date
        if not target_date > period.from_date:
            interest_period = period.first_interest_period
            adjusted_target_date = period.from_date
        elif target_date > period.due_date:
            interest_period = period.last_interest_period
            adjusted_target_date = period.due_date
        else:
            interest_period = snapshot.find_interest_period(period, target_date)
            if interest_period is None:
                raise PeriodNotFoundError(f"No interest period of the period due {period_due_date} contains {target_date}")

        containing_period = snapshot.find_repayment_period(target_date)
        if containing_period is not None:
            containing = snapshot.find_interest_period(containing_period, target_date)
            if containing is not None:
                containing.due_date = target_date
        interest_period.due_date = adjusted_target_date

        index = next(i for i, ip in enumerate(period.interest_periods) if ip is interest_period)
        following = period.interest_periods[index + 1 : index + 2]
        if following and following[0].from_date == target_date:
            # Chargebacks dated on the target date are already due
            interest_period.add_chargeback(
                following[0].chargeback_principal, following[0].chargeback_interest, snapshot.numeric
            )
        del period.interest_periods[index + 1 :]
        for rp in snapshot.repayment_periods:
            rp.interest_periods = [ip for ip in rp.interest_periods if not ip.due_date > target_date]

        RateFactorCalculator(snapshot).apply_to_periods(snapshot.repayment_periods)
        snapshot.recalculate_outstanding_balances()
        self._calculate_last_unpaid_repayment_period_emi(snapshot)
        return snapshot
