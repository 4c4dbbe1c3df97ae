"""Progressive loan interest schedule engine."""

from emi_engine.calc.calculator import ProgressiveEMICalculator
from emi_engine.config import EngineConfig, NumericConfig
from emi_engine.models import (
    DaysInMonthType,
    DaysInYearCustomStrategy,
    DaysInYearType,
    OutstandingDetails,
    PeriodDueDetails,
    PeriodFrequencyType,
    ProductTerms,
    ScheduleModel,
)
from emi_engine.numeric import NumericContext

__version__ = "0.1.0"

__all__ = [
    "DaysInMonthType",
    "DaysInYearCustomStrategy",
    "DaysInYearType",
    "EngineConfig",
    "NumericConfig",
    "NumericContext",
    "OutstandingDetails",
    "PeriodDueDetails",
    "PeriodFrequencyType",
    "ProductTerms",
    "ProgressiveEMICalculator",
    "ScheduleModel",
]
