#!/usr/bin/env python3
"""Benchmark schedule engine performance.

Measures:
- Schedule build rate (loans/sec) for generated portfolios
- Query rate for due amounts and outstanding amounts
- Throughput with a process pool

Usage:
    python scripts/benchmark.py
    python scripts/benchmark.py --scale 5000
    python scripts/benchmark.py --scale 5000 --workers 4
"""

import argparse
import logging
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from emi_engine.calc.calculator import ProgressiveEMICalculator
from emi_engine.exceptions import EmiEngineError
from emi_engine.generators.loan import LoanScenarioGenerator
from emi_engine.logging import setup_logging
from emi_engine.scenarios.portfolio import replay_scenario

logger = logging.getLogger(__name__)


def _replay_chunk(args: tuple[int, int]) -> int:
    """Generate and replay ``count`` loans in a worker; return schedules built."""
    count, seed = args
    generator = LoanScenarioGenerator(seed=seed, payment_rate=0.3)
    calculator = ProgressiveEMICalculator()
    built = 0
    for scenario in generator.generate_batch(count):
        try:
            replay_scenario(scenario, calculator)
        except EmiEngineError as e:
            logger.warning("Loan %s rejected: %s", scenario.loan_id, e)
            continue
        built += 1
    return built


def benchmark_build(num_loans: int, seed: int) -> list:
    """Benchmark schedule construction speed.

    Parameters
    ----------
    num_loans : int
        Number of loans to generate.
    seed : int
        Random seed.

    Returns
    -------
    list
        Built ``(scenario, model)`` pairs for the query benchmark.
    """
    generator = LoanScenarioGenerator(seed=seed, payment_rate=0.3)
    calculator = ProgressiveEMICalculator()
    scenarios = list(generator.generate_batch(num_loans))

    t0 = time.perf_counter()
    built = []
    for scenario in scenarios:
        try:
            built.append((scenario, replay_scenario(scenario, calculator)))
        except EmiEngineError as e:
            logger.warning("Loan %s rejected: %s", scenario.loan_id, e)
    elapsed = time.perf_counter() - t0
    periods = sum(len(model.repayment_periods) for _, model in built)
    print(f"  Schedules:     {len(built):>8,} in {elapsed:.2f}s  ({len(built) / max(elapsed, 0.001):,.0f}/sec)")
    print(f"  Periods:       {periods:>8,}")
    return built


def benchmark_queries(built: list) -> None:
    """Benchmark point-in-time queries on built schedules."""
    calculator = ProgressiveEMICalculator()
    t0 = time.perf_counter()
    count = 0
    for _, model in built:
        middle = model.repayment_periods[len(model.repayment_periods) // 2]
        calculator.get_due_amounts(model, middle.due_date, middle.from_date)
        calculator.get_outstanding_amounts_till_date(model, middle.due_date)
        count += 2
    elapsed = time.perf_counter() - t0
    print(f"  Queries:       {count:>8,} in {elapsed:.2f}s  ({count / max(elapsed, 0.001):,.0f}/sec)")


def benchmark_parallel(num_loans: int, seed: int, workers: int) -> None:
    """Benchmark schedule construction across worker processes."""
    chunk = max(1, num_loans // workers)
    jobs = [(chunk, seed + index) for index in range(workers)]
    t0 = time.perf_counter()
    with ProcessPoolExecutor(max_workers=workers) as executor:
        built = sum(executor.map(_replay_chunk, jobs))
    elapsed = time.perf_counter() - t0
    print(f"  Schedules:     {built:>8,} in {elapsed:.2f}s  ({built / max(elapsed, 0.001):,.0f}/sec, {workers} workers)")


def main() -> None:
    """Run benchmarks."""
    parser = argparse.ArgumentParser(description="Benchmark emi-engine performance")
    parser.add_argument("--scale", type=int, default=1000, help="Number of loans (default: 1000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--workers", type=int, default=0, help="Worker processes for the parallel run (0 skips it)")
    args = parser.parse_args()

    setup_logging("WARNING")

    print("=" * 60)
    print(f"  emi-engine Benchmark  |  scale={args.scale:,}  seed={args.seed}")
    print("=" * 60)

    print("\n[1] Schedule Build")
    built = benchmark_build(args.scale, args.seed)

    print("\n[2] Queries")
    benchmark_queries(built)

    if args.workers > 0:
        print("\n[3] Parallel Build")
        benchmark_parallel(args.scale, args.seed, args.workers)

    print("\n" + "=" * 60)
    print("  Benchmark complete")
    print("=" * 60)


if __name__ == "__main__":
    main()
