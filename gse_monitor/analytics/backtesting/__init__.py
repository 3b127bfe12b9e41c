"""
Backtesting module.

Provides:
- Backtest parameters as stored by the dashboard
- Synthetic weekly performance series with an 8% benchmark
- Metrics computed from the series (return, Sharpe, drawdown, win rate)
- Backtest lifecycle states
"""

from .parameters import BacktestParameters, RebalanceFrequency, RiskManagement, Strategy
from .simulator import (
    BacktestMetrics,
    BacktestResults,
    BacktestSimulator,
    PerformancePoint,
    SimulatorConfig,
    simulate_backtest,
    validate_parameters,
)
from .status import BacktestStatus, ensure_transition

__all__ = [
    "BacktestMetrics",
    "BacktestParameters",
    "BacktestResults",
    "BacktestSimulator",
    "BacktestStatus",
    "PerformancePoint",
    "RebalanceFrequency",
    "RiskManagement",
    "SimulatorConfig",
    "Strategy",
    "ensure_transition",
    "simulate_backtest",
    "validate_parameters",
]
