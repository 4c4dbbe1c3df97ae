"""Synthetic loan generators."""

from emi_engine.generators.loan import LoanScenarioGenerator, period_boundaries

__all__ = ["LoanScenarioGenerator", "period_boundaries"]
