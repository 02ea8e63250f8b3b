#!/usr/bin/env python3
"""
Main entry point for the concentrated pool simulation.

Runs an arbitrage scenario against a single pool, prints a summary and
optionally exports the snapshots as CSV and the charts as PNG.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .analysis.charts import PoolChartGenerator
from .analysis.metrics import PoolMetricsCalculator
from .config.schemas import SimulationSettings
from .core.errors import PoolError
from .engine.config import PriceScenarios, SimulationConfig
from .simulation.engine import PoolSimulationEngine

logger = logging.getLogger("pcl_pool_sim")


def build_config(args: argparse.Namespace) -> SimulationConfig:
    config = SimulationConfig()
    settings = config.settings.model_dump()

    if args.scenario:
        scenario = PriceScenarios.get(args.scenario)
        settings["volatility"] = scenario["volatility"]
        settings["drift"] = scenario["drift"]
        settings["shock"] = scenario.get("shock", 0.0)

    for key in (
        "steps", "step_seconds", "initial_price", "volatility", "drift", "initial_liquidity", "seed",
        "shock", "shock_step",
    ):
        value = getattr(args, key)
        if value is not None:
            settings[key] = value

    config.settings = SimulationSettings(**settings)
    if args.maker_fee_share is not None:
        config.maker_fee_share = args.maker_fee_share
    return config


def print_results_summary(summary: dict):
    """Print a formatted summary of simulation results"""
    print("\n" + "=" * 60)
    print("POOL SIMULATION SUMMARY")
    print("=" * 60)
    for section, values in summary.items():
        print(f"\n{section.upper()}")
        for key, value in values.items():
            if isinstance(value, float):
                print(f"  {key:<24} {value:.6f}")
            else:
                print(f"  {key:<24} {value}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Concentrated liquidity pool simulation")
    parser.add_argument("--scenario", choices=["calm", "trending", "volatile", "flash_crash"], help="Preset market scenario")
    parser.add_argument("--steps", type=int, help="Number of simulation steps")
    parser.add_argument("--step-seconds", dest="step_seconds", type=int, help="Seconds between steps")
    parser.add_argument("--initial-price", dest="initial_price", help="Initial price, asset 0 per asset 1")
    parser.add_argument("--volatility", type=float, help="Per-step log-price volatility")
    parser.add_argument("--drift", type=float, help="Per-step log-price drift")
    parser.add_argument("--initial-liquidity", dest="initial_liquidity", type=int, help="Asset 0 deposit in whole tokens")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--shock", type=float, help="One-off relative market move, e.g. -0.2")
    parser.add_argument("--shock-step", dest="shock_step", type=int, help="Step at which the shock hits")
    parser.add_argument("--maker-fee-share", dest="maker_fee_share", help="Share of fees sent to the maker")
    parser.add_argument("--output-dir", dest="output_dir", type=Path, help="Write CSV, JSON and charts here")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
        engine = PoolSimulationEngine(config)
        results = engine.run_simulation()
    except ValidationError as e:
        logger.error("Invalid settings: %s", e)
        return 2
    except PoolError as e:
        logger.error("Simulation failed: %s", e)
        return 1

    metrics = PoolMetricsCalculator(results)
    summary = metrics.calculate_summary()
    print_results_summary(summary)

    if args.output_dir:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        metrics.frame.to_csv(args.output_dir / "snapshots.csv")
        with open(args.output_dir / "summary.json", "w") as f:
            json.dump({"summary": summary, "final_state": results["final_state"]}, f, indent=2)
        PoolChartGenerator().generate_charts(metrics.frame, args.output_dir / "charts")
        logger.info("Results written to %s", args.output_dir)

    return 0


if __name__ == "__main__":
    sys.exit(main())
