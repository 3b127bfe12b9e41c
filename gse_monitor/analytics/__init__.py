"""
Valuation & metrics engine.

Pure functions over caller-supplied values:
- Position and portfolio valuation
- Trade aggregation into weighted-average-cost positions
- Synthetic backtest simulation and metrics
"""

from .errors import (
    DivisionByZeroError,
    InsufficientSharesError,
    InvalidCapitalError,
    InvalidDateRangeError,
    InvalidQuoteError,
    InvalidStatusTransitionError,
    NoStocksSelectedError,
    ValuationError,
)
from .trades import PositionState, TradeExecution, TradeType, apply_trade
from .valuation import (
    Holding,
    PortfolioSummary,
    PositionMetrics,
    aggregate_portfolio,
    compute_position_metrics,
    price_change_percent,
)

__all__ = [
    "DivisionByZeroError",
    "Holding",
    "InsufficientSharesError",
    "InvalidCapitalError",
    "InvalidDateRangeError",
    "InvalidQuoteError",
    "InvalidStatusTransitionError",
    "NoStocksSelectedError",
    "PortfolioSummary",
    "PositionMetrics",
    "PositionState",
    "TradeExecution",
    "TradeType",
    "ValuationError",
    "aggregate_portfolio",
    "apply_trade",
    "compute_position_metrics",
    "price_change_percent",
]
