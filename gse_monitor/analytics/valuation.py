"""
Position and portfolio valuation.

Pure functions over caller-supplied values: no database access, no session
state. The same inputs always produce the same outputs.

Usage:
    from gse_monitor.analytics.valuation import Holding, aggregate_portfolio

    summary = aggregate_portfolio([
        Holding(shares=10, avg_cost=5.0, current_price=6.0),
        Holding(shares=5, avg_cost=10.0, current_price=8.0),
    ])
    print(summary.total_gain_loss_percent)
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence

from gse_monitor.analytics.errors import DivisionByZeroError, InvalidQuoteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Holding:
    """A position resolved against its current quote."""
    shares: float
    avg_cost: float
    current_price: float
    ticker: str = ""


@dataclass(frozen=True)
class PositionMetrics:
    """Valuation of a single position."""
    market_value: float
    cost_basis: float
    gain_loss: float
    gain_loss_percent: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class PortfolioSummary:
    """Aggregate valuation of a portfolio."""
    total_value: float
    total_cost: float
    total_gain_loss: float
    total_gain_loss_percent: float
    winners: int
    losers: int
    ties: int
    positions: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_position_metrics(
    shares: float,
    avg_cost: float,
    current_price: float
) -> PositionMetrics:
    """
    Value one position at the current quote.

    Args:
        shares: Shares held (positive)
        avg_cost: Average cost per share (positive)
        current_price: Latest quote

    Returns:
        PositionMetrics with market value, cost basis and gain/loss

    Raises:
        InvalidQuoteError: current_price <= 0
        DivisionByZeroError: cost basis is zero
    """
    if current_price <= 0:
        raise InvalidQuoteError(f"Current price must be positive, got {current_price}")

    market_value = shares * current_price
    cost_basis = shares * avg_cost
    gain_loss = market_value - cost_basis

    if cost_basis <= 0:
        raise DivisionByZeroError(
            f"Cannot compute percentage return with cost basis {cost_basis}"
        )

    return PositionMetrics(
        market_value=market_value,
        cost_basis=cost_basis,
        gain_loss=gain_loss,
        gain_loss_percent=(gain_loss / cost_basis) * 100,
    )


def classify_holding(holding: Holding) -> int:
    """Return 1 for a winner, -1 for a loser, 0 when price equals cost."""
    if holding.current_price > holding.avg_cost:
        return 1
    if holding.current_price < holding.avg_cost:
        return -1
    return 0


def aggregate_portfolio(holdings: Sequence[Holding]) -> PortfolioSummary:
    """
    Aggregate a portfolio.

    An empty portfolio (or one with no cost basis) reports a 0% return
    rather than raising; per-position valuation still rejects bad quotes.
    """
    total_value = 0.0
    total_cost = 0.0
    winners = losers = ties = 0

    for holding in holdings:
        metrics = compute_position_metrics(
            holding.shares, holding.avg_cost, holding.current_price
        )
        total_value += metrics.market_value
        total_cost += metrics.cost_basis

        outcome = classify_holding(holding)
        if outcome > 0:
            winners += 1
        elif outcome < 0:
            losers += 1
        else:
            ties += 1

    total_gain_loss = total_value - total_cost
    total_gain_loss_percent = (total_gain_loss / total_cost) * 100 if total_cost > 0 else 0.0

    logger.debug(
        f"Aggregated {len(holdings)} positions: value={total_value:.2f}, "
        f"cost={total_cost:.2f}, W/L/T={winners}/{losers}/{ties}"
    )

    return PortfolioSummary(
        total_value=total_value,
        total_cost=total_cost,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=total_gain_loss_percent,
        winners=winners,
        losers=losers,
        ties=ties,
        positions=len(holdings),
    )


def value_holdings(holdings: Sequence[Holding]) -> List[PositionMetrics]:
    """Per-position metrics in input order."""
    return [
        compute_position_metrics(h.shares, h.avg_cost, h.current_price)
        for h in holdings
    ]


def price_change_percent(current_price: float, previous_close: float) -> float:
    """Daily change of a quote against its previous close, in percent."""
    if previous_close <= 0:
        raise InvalidQuoteError(f"Previous close must be positive, got {previous_close}")
    return ((current_price - previous_close) / previous_close) * 100
