#!/usr/bin/env python3
"""
Run a backtest simulation from the command line and print the report.

Usage:
    python scripts/run_backtest.py
    python scripts/run_backtest.py --start 2024-01-01 --end 2024-12-31 \
        --capital 100000 --stocks EGL,SCB --seed 42
"""
import argparse
import random
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gse_monitor.analytics.backtesting import BacktestParameters, BacktestSimulator, Strategy
from gse_monitor.analytics.errors import ValuationError
from gse_monitor.config.settings import settings
from gse_monitor.utils.logger import setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Simulate a GSE backtest")
    parser.add_argument("--name", default="CLI backtest")
    parser.add_argument("--start", default="2024-01-01", help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", default="2024-12-31", help="End date (YYYY-MM-DD)")
    parser.add_argument("--capital", type=float, default=100000.0)
    parser.add_argument("--stocks", default="EGL,GCB,SCB", help="Comma-separated tickers")
    parser.add_argument(
        "--strategy", default=Strategy.BUY_AND_HOLD.value, choices=[s.value for s in Strategy]
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a repeatable run")
    parser.add_argument("--csv", default=None, help="Write the performance series to this file")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    setup_logging()
    args = parse_args(argv)

    parameters = BacktestParameters(
        name=args.name,
        start_date=args.start,
        end_date=args.end,
        initial_capital=args.capital,
        strategy=args.strategy,
        stocks=[t.strip().upper() for t in args.stocks.split(",") if t.strip()],
    )

    simulator = BacktestSimulator(rng=random.Random(args.seed))
    try:
        results = simulator.run(parameters)
    except ValuationError as e:
        print(f"Backtest rejected ({e.error_code}): {e}")
        return 1

    simulator.print_report(results, currency=settings.currency)

    if args.csv:
        results.to_frame().to_csv(args.csv)
        print(f"Performance series written to {args.csv}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
