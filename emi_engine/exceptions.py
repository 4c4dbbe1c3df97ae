"""Custom exception hierarchy for emi-engine."""


class EmiEngineError(Exception):
    """Base exception for all emi-engine errors."""


class InvalidScheduleInputError(EmiEngineError):
    """Raised when a caller supplies input the schedule cannot accept."""


class PeriodNotFoundError(InvalidScheduleInputError):
    """Raised when no repayment period matches a supplied date."""


class ScheduleComputationError(EmiEngineError):
    """Raised when a computation cannot produce a trustworthy amount."""


class UnsupportedConventionError(ScheduleComputationError):
    """Raised for a day-count and frequency combination with no rate factor rule."""


class ConfigurationError(EmiEngineError):
    """Raised when configuration is invalid or missing."""


class SinkError(EmiEngineError):
    """Raised when a sink operation fails."""
