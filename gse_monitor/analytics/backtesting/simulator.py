"""
Synthetic backtest simulator.

Produces a weekly random-walk portfolio series against a fixed-rate benchmark
and derives summary statistics from that series.

Features:
- Injectable random source (anything with `uniform(low, high)`:
  `random.Random`, `numpy.random.Generator`) for deterministic runs
- Lazy weekly performance series
- Metrics computed from the series: total/annualized return, Sharpe,
  max drawdown, win rate
- Benchmark curve independent of randomness (8% annual compounding)

Usage:
    from gse_monitor.analytics.backtesting import BacktestSimulator

    simulator = BacktestSimulator(rng=random.Random(42))
    results = simulator.run(parameters)

    print(results.metrics.total_return_pct)
    simulator.print_report(results)
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterator, List, Optional, Protocol

import numpy as np
import pandas as pd

from gse_monitor.analytics.backtesting.parameters import BacktestParameters
from gse_monitor.analytics.errors import (
    InvalidCapitalError,
    InvalidDateRangeError,
    NoStocksSelectedError,
)

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def uniform(self, low: float, high: float) -> float: ...


@dataclass
class SimulatorConfig:
    """Simulation constants."""
    step_days: int = 7  # Weekly data points
    max_period_return: float = 0.02  # Each step draws from [-2%, +2%]
    benchmark_annual_rate: float = 0.08  # 8% annual benchmark
    periods_per_year: int = 52
    risk_free_rate: float = 0.0  # Annual


@dataclass(frozen=True)
class PerformancePoint:
    """One point of the performance chart."""
    date: date
    elapsed_days: int
    portfolio_value: float
    benchmark_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'portfolioValue': round(self.portfolio_value, 2),
            'benchmark': round(self.benchmark_value, 2),
        }


@dataclass(frozen=True)
class BacktestMetrics:
    """Summary statistics of a simulated run."""
    total_return_pct: float
    annualized_return_pct: float
    sharpe_ratio: float
    max_drawdown_pct: float
    win_rate_pct: float
    total_trades: int
    final_value: float
    benchmark_return_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalReturn': round(self.total_return_pct, 2),
            'annualizedReturn': round(self.annualized_return_pct, 2),
            'sharpeRatio': round(self.sharpe_ratio, 2),
            'maxDrawdown': round(self.max_drawdown_pct, 2),
            'winRate': round(self.win_rate_pct, 1),
            'totalTrades': self.total_trades,
            'finalValue': round(self.final_value, 2),
            'benchmarkReturn': round(self.benchmark_return_pct, 2),
        }


@dataclass
class BacktestResults:
    """Performance series plus metrics."""
    performance_series: List[PerformancePoint]
    metrics: BacktestMetrics
    parameters: Optional[BacktestParameters] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """JSON document persisted as the backtest's results."""
        return {
            'performanceData': [p.to_dict() for p in self.performance_series],
            'metrics': self.metrics.to_dict(),
        }

    def to_frame(self) -> pd.DataFrame:
        """Performance series as a DataFrame indexed by date."""
        frame = pd.DataFrame(
            {
                'date': [p.date for p in self.performance_series],
                'portfolio_value': [p.portfolio_value for p in self.performance_series],
                'benchmark_value': [p.benchmark_value for p in self.performance_series],
            }
        )
        return frame.set_index('date')


def validate_parameters(parameters: BacktestParameters) -> int:
    """
    Validate a backtest request.

    Returns:
        Number of calendar days in the range

    Raises:
        NoStocksSelectedError, InvalidCapitalError, InvalidDateRangeError
    """
    if not parameters.stocks:
        raise NoStocksSelectedError("Select at least one stock to backtest")

    if parameters.initial_capital <= 0:
        raise InvalidCapitalError(
            f"Initial capital must be positive, got {parameters.initial_capital}"
        )

    total_days = parameters.total_days
    if total_days <= 0:
        raise InvalidDateRangeError(
            f"End date {parameters.end_date} must be after start date {parameters.start_date}"
        )

    return total_days


class BacktestSimulator:
    """
    Random-walk backtest simulator.

    Strategy, rebalance frequency and risk management settings are accepted
    but do not affect the simulated series.
    """

    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        rng: Optional[RandomSource] = None
    ):
        self.config = config or SimulatorConfig()
        self.rng = rng if rng is not None else random.Random()

    def benchmark_value(self, initial_capital: float, elapsed_days: int) -> float:
        """Fixed-rate benchmark after `elapsed_days`."""
        return initial_capital * (1 + self.config.benchmark_annual_rate) ** (elapsed_days / 365)

    def generate_performance_series(
        self,
        parameters: BacktestParameters
    ) -> Iterator[PerformancePoint]:
        """
        Lazily produce weekly performance points.

        Points fall on elapsed days 0, 7, 14, ... up to the last step that
        does not pass the end date. The first point equals the initial
        capital; each later point applies one random step.

        Parameters are validated eagerly, before the iterator is returned.
        """
        total_days = validate_parameters(parameters)
        return self._iter_points(parameters, total_days)

    def _iter_points(
        self,
        parameters: BacktestParameters,
        total_days: int
    ) -> Iterator[PerformancePoint]:
        bound = self.config.max_period_return
        portfolio_value = parameters.initial_capital

        for elapsed in range(0, total_days + 1, self.config.step_days):
            if elapsed > 0:
                portfolio_value *= 1 + self.rng.uniform(-bound, bound)

            yield PerformancePoint(
                date=parameters.start_date + timedelta(days=elapsed),
                elapsed_days=elapsed,
                portfolio_value=portfolio_value,
                benchmark_value=self.benchmark_value(parameters.initial_capital, elapsed),
            )

    def run(self, parameters: BacktestParameters) -> BacktestResults:
        """
        Run a backtest simulation.

        Args:
            parameters: Validated request parameters

        Returns:
            BacktestResults with the weekly series and summary metrics
        """
        logger.info(
            f"Simulating backtest '{parameters.name}': {parameters.start_date} -> "
            f"{parameters.end_date}, capital {parameters.initial_capital:,.2f}, "
            f"{len(parameters.stocks)} stocks, strategy={parameters.strategy.value}"
        )

        total_days = validate_parameters(parameters)
        series = list(self._iter_points(parameters, total_days))
        metrics = self._calculate_metrics(series, parameters.initial_capital, total_days)

        logger.info(
            f"Backtest '{parameters.name}' complete. "
            f"Return: {metrics.total_return_pct:.2f}%, Sharpe: {metrics.sharpe_ratio:.2f}"
        )

        return BacktestResults(
            performance_series=series,
            metrics=metrics,
            parameters=parameters,
        )

    def _calculate_metrics(
        self,
        series: List[PerformancePoint],
        initial_capital: float,
        total_days: int
    ) -> BacktestMetrics:
        """Summary statistics computed from the series."""
        if total_days <= 0:
            raise InvalidDateRangeError("Annualized return needs a positive number of days")

        values = np.array([p.portfolio_value for p in series], dtype=float)
        final_value = float(values[-1])

        total_return = (final_value - initial_capital) / initial_capital
        annual_return = (final_value / initial_capital) ** (365 / total_days) - 1

        returns = np.diff(values) / values[:-1]

        # Sharpe ratio (weekly returns, annualized)
        if len(returns) > 1 and np.std(returns) > 1e-12:
            excess_returns = returns - (self.config.risk_free_rate / self.config.periods_per_year)
            sharpe = (
                np.mean(excess_returns) / np.std(excess_returns)
                * np.sqrt(self.config.periods_per_year)
            )
        else:
            sharpe = 0.0

        # Maximum drawdown, reported as a positive percentage
        running_max = np.maximum.accumulate(values)
        drawdown = (values - running_max) / running_max
        max_drawdown = -float(np.min(drawdown))

        win_rate = float(np.mean(returns > 0)) if len(returns) else 0.0

        benchmark_final = series[-1].benchmark_value
        benchmark_return = (benchmark_final - initial_capital) / initial_capital

        return BacktestMetrics(
            total_return_pct=total_return * 100,
            annualized_return_pct=annual_return * 100,
            sharpe_ratio=float(sharpe),
            max_drawdown_pct=max_drawdown * 100,
            win_rate_pct=win_rate * 100,
            total_trades=int(len(returns)),
            final_value=final_value,
            benchmark_return_pct=benchmark_return * 100,
        )

    def get_summary(self, results: BacktestResults) -> pd.DataFrame:
        """Metrics as a two-column DataFrame."""
        metrics = results.metrics
        rows = [
            ('Total Return', f"{metrics.total_return_pct:.2f}%"),
            ('Annualized Return', f"{metrics.annualized_return_pct:.2f}%"),
            ('Benchmark Return', f"{metrics.benchmark_return_pct:.2f}%"),
            ('Sharpe Ratio', f"{metrics.sharpe_ratio:.2f}"),
            ('Max Drawdown', f"{metrics.max_drawdown_pct:.2f}%"),
            ('Win Rate', f"{metrics.win_rate_pct:.1f}%"),
            ('Periods', str(metrics.total_trades)),
        ]
        return pd.DataFrame(rows, columns=['Metric', 'Value'])

    def print_report(self, results: BacktestResults, currency: str = "GHS") -> None:
        """Print formatted backtest report."""
        name = results.parameters.name if results.parameters else 'Backtest'
        initial = results.performance_series[0].portfolio_value

        print("\n" + "=" * 60)
        print(f"BACKTEST REPORT - {name}")
        print("=" * 60)
        print(f"\nCapital: {currency} {initial:,.2f} -> {currency} {results.metrics.final_value:,.2f}")
        print(self.get_summary(results).to_string(index=False))
        print("=" * 60 + "\n")


def simulate_backtest(
    parameters: BacktestParameters,
    rng: Optional[RandomSource] = None,
    config: Optional[SimulatorConfig] = None
) -> BacktestResults:
    """Validate and run a backtest in one call."""
    return BacktestSimulator(config=config, rng=rng).run(parameters)
