"""Tests for the exception hierarchy."""

import pytest

from emi_engine.exceptions import (
    ConfigurationError,
    EmiEngineError,
    InvalidScheduleInputError,
    PeriodNotFoundError,
    ScheduleComputationError,
    SinkError,
    UnsupportedConventionError,
)


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        "exc_class",
        [
            InvalidScheduleInputError,
            PeriodNotFoundError,
            ScheduleComputationError,
            UnsupportedConventionError,
            ConfigurationError,
            SinkError,
        ],
    )
    def test_all_derive_from_base(self, exc_class: type) -> None:
        """Test every engine error can be caught as EmiEngineError."""
        assert issubclass(exc_class, EmiEngineError)

    def test_period_not_found_is_input_error(self) -> None:
        """Test an unknown period date is an input problem."""
        assert issubclass(PeriodNotFoundError, InvalidScheduleInputError)

    def test_unsupported_convention_is_computation_error(self) -> None:
        """Test a missing day-count rule is a computation problem."""
        assert issubclass(UnsupportedConventionError, ScheduleComputationError)

    def test_message_preserved(self) -> None:
        """Test the message survives raising and catching."""
        with pytest.raises(EmiEngineError, match="no period due 2024-02-01"):
            raise PeriodNotFoundError("no period due 2024-02-01")
