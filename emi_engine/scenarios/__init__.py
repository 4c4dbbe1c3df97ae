"""Scenarios that replay generated loans through the engine."""

from emi_engine.scenarios.portfolio import LoanPortfolioScenario, replay_scenario

__all__ = ["LoanPortfolioScenario", "replay_scenario"]
