"""Decimal arithmetic policy shared by every schedule computation.

Intermediate results (rate factors, products and quotients) are rounded to
``precision`` significant digits. Money amounts are held at
``decimal_places`` and rounded after every operation that produces one.
"""

from __future__ import annotations

from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)
from typing import Iterable

from emi_engine.config import NumericConfig
from emi_engine.exceptions import InvalidScheduleInputError, ScheduleComputationError

ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a caller supplied number to :class:`~decimal.Decimal`.

    Floats go through ``str`` so ``0.1`` stays ``0.1``.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidScheduleInputError(f"Expected a number, got {value!r}")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation as e:
            raise InvalidScheduleInputError(f"Not a number: {value!r}") from e
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise InvalidScheduleInputError(f"Expected a number, got {type(value).__name__}")

    if not result.is_finite():
        raise InvalidScheduleInputError(f"Amount must be finite, got {value!r}")
    return result


class NumericContext:
    """Arithmetic helpers bound to one precision and rounding policy.

    Parameters
    ----------
    config : NumericConfig | None
        Precision, rounding and money scale. Defaults to 12 significant
        digits, banker's rounding and two decimal places.
    """

    def __init__(self, config: NumericConfig | None = None) -> None:
        self.config = config or NumericConfig()
        self.precision = self.config.precision
        self.decimal_places = self.config.decimal_places
        self.rounding = self.config.rounding_mode
        self.context = Context(
            prec=self.precision,
            rounding=self.rounding,
            traps=[InvalidOperation, DivisionByZero, Overflow],
        )
        self._money_quantum = Decimal(1).scaleb(-self.decimal_places)
        self._factor_quantum = Decimal(1).scaleb(-self.precision)
        # Quantizing to the factor scale needs room for the integer digits too
        self._wide = Context(
            prec=self.precision * 3,
            rounding=self.rounding,
            traps=[InvalidOperation, DivisionByZero, Overflow],
        )

    def __repr__(self) -> str:
        return (
            f"NumericContext(precision={self.precision}, rounding={self.config.rounding}, "
            f"decimal_places={self.decimal_places})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NumericContext):
            return NotImplemented
        return self.config == other.config

    @property
    def zero(self) -> Decimal:
        """Money zero at the configured scale."""
        return self._money_quantum * 0

    def add(self, a: Decimal, b: Decimal) -> Decimal:
        return self._apply(self.context.add, a, b)

    def subtract(self, a: Decimal, b: Decimal) -> Decimal:
        return self._apply(self.context.subtract, a, b)

    def multiply(self, a: Decimal, b: Decimal) -> Decimal:
        return self._apply(self.context.multiply, a, b)

    def divide(self, a: Decimal, b: Decimal) -> Decimal:
        return self._apply(self.context.divide, a, b)

    def sum(self, values: Iterable[Decimal]) -> Decimal:
        """Add ``values`` left to right, rounding each partial sum."""
        total = ZERO
        for value in values:
            total = self.add(total, value)
        return total

    def scale(self, value: Decimal) -> Decimal:
        """Fix ``value`` to ``precision`` decimal places (rate factor scale)."""
        return self._apply(self._wide.quantize, value, self._factor_quantum)

    def money(self, value: Decimal | int | float | str) -> Decimal:
        """Round ``value`` to a money amount.

        Raises
        ------
        ScheduleComputationError
            If the amount cannot be represented within the configured
            precision at money scale.
        """
        value = to_decimal(value)
        if value and value.adjusted() + 1 + self.decimal_places > self.precision:
            raise ScheduleComputationError(
                f"Amount {value} exceeds the {self.precision}-digit numeric precision"
            )
        return self._apply(self._wide.quantize, value, self._money_quantum)

    def money_sum(self, values: Iterable[Decimal]) -> Decimal:
        """Sum money amounts, rounding the result to money scale."""
        total = self.zero
        for value in values:
            total = self.money(total + value)
        return total

    def negative_to_zero(self, value: Decimal) -> Decimal:
        if value < 0:
            return (value * 0).copy_abs()
        return value

    def round_to_multiples_of(self, amount: Decimal, multiple: int | None) -> Decimal:
        """Round ``amount`` to the nearest ``multiple`` using the configured mode."""
        if not multiple:
            return amount
        step = Decimal(multiple)
        units = self._apply(self._wide.quantize, self._apply(self._wide.divide, amount, step), ONE)
        return self.money(units * step)

    def _apply(self, operation, *args: Decimal) -> Decimal:
        try:
            return operation(*args)
        except DecimalException as e:
            raise ScheduleComputationError(
                f"Decimal arithmetic failed in {getattr(operation, '__name__', operation)}: {e!r}"
            ) from e
