"""Schedule calculations: day counts, rate factors and installments."""

from emi_engine.calc.calculator import ProgressiveEMICalculator

__all__ = ["ProgressiveEMICalculator"]
