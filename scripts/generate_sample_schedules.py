#!/usr/bin/env python3
"""Generate sample schedule files for validation.

Writes one ``<loan_id>.schedule.json`` snapshot per generated loan plus
``loans.json`` and ``repayment_periods.json`` tables to the output folder.
These files can be used for manual validation and testing.

Usage:
    python scripts/generate_sample_schedules.py
    python scripts/generate_sample_schedules.py --loans 20 --output local/ --console
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from emi_engine.config import EngineConfig
from emi_engine.logging import log_context, setup_logging
from emi_engine.scenarios.portfolio import LoanPortfolioScenario
from emi_engine.sinks import ConsoleSink, JsonFileSink

logger = logging.getLogger(__name__)


def main() -> None:
    """Generate sample schedules."""
    config = EngineConfig.from_env()

    parser = argparse.ArgumentParser(description="Generate sample progressive loan schedules")
    parser.add_argument("--loans", type=int, default=10, help="Number of loans (default: 10)")
    parser.add_argument("--seed", type=int, default=config.seed or 42, help="Random seed (default: 42)")
    parser.add_argument("--payment-rate", type=float, default=0.5, help="Share of installments paid on time")
    parser.add_argument("--output", type=Path, default=config.output.json_output_dir, help="Output folder")
    parser.add_argument("--console", action="store_true", help="Also print each schedule")
    args = parser.parse_args()

    setup_logging(config.log_level, config.log_format)
    config.seed = args.seed
    logger.info("Generating %d sample loans", args.loans, extra=log_context(**config.to_dict()))

    scenario = LoanPortfolioScenario(num_loans=args.loans, payment_rate=args.payment_rate, config=config)
    scenario.generate()

    json_sink = JsonFileSink(args.output, pretty=True)
    sinks = [json_sink]
    for loan, model in scenario.loans:
        json_sink.write_schedule(model, loan.loan_id)

    if args.console:
        console_sink = ConsoleSink(pretty=False, max_records=5)
        for loan, model in scenario.loans:
            console_sink.write_schedule(model, loan.loan_id)
        sinks.append(console_sink)

    scenario.export(sinks)
    for sink in sinks:
        sink.close()

    print(json.dumps(scenario.get_portfolio_summary(), indent=2))


if __name__ == "__main__":
    main()
