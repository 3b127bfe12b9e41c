"""
Fold executed trades into weighted-average-cost positions.

One position per (user, stock): repeated buys and sells update the same
position instead of appending rows. Fees on a BUY are capitalised into the
average cost; a SELL reduces shares and leaves the average cost alone.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gse_monitor.analytics.errors import InsufficientSharesError, InvalidQuoteError

logger = logging.getLogger(__name__)

# Share quantities are stored with four decimal places
SHARE_DECIMALS = 4


class TradeType(enum.Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class PositionState:
    """Shares and average cost of a holding."""
    shares: float
    avg_cost: float


@dataclass(frozen=True)
class TradeExecution:
    """An executed buy or sell."""
    trade_type: TradeType
    shares: float
    price: float
    fees: float = 0.0
    executed_at: Optional[datetime] = None


def apply_trade(
    position: Optional[PositionState],
    trade: TradeExecution
) -> Optional[PositionState]:
    """
    Apply a trade to a position.

    Share quantities are rounded to SHARE_DECIMALS places first, so a SELL
    that leaves less than one stored unit closes the position.

    Args:
        position: Current position, or None when nothing is held
        trade: The executed trade

    Returns:
        The updated position, or None once a SELL closes it out

    Raises:
        ValueError: trade shares round to zero or below, or fees are negative
        InvalidQuoteError: trade price is not positive
        InsufficientSharesError: SELL for more shares than held
    """
    shares = round(trade.shares, SHARE_DECIMALS)
    if shares <= 0:
        raise ValueError(f"Trade shares must be positive, got {trade.shares}")
    if trade.price <= 0:
        raise InvalidQuoteError(f"Trade price must be positive, got {trade.price}")
    if trade.fees < 0:
        raise ValueError(f"Trade fees cannot be negative, got {trade.fees}")

    held_shares = position.shares if position else 0.0
    held_cost = position.avg_cost if position else 0.0

    if trade.trade_type == TradeType.BUY:
        new_shares = round(held_shares + shares, SHARE_DECIMALS)
        new_avg_cost = (
            held_shares * held_cost + shares * trade.price + trade.fees
        ) / new_shares
        logger.debug(
            f"BUY {shares} @ {trade.price:.2f}: "
            f"{held_shares} -> {new_shares} shares, avg {held_cost:.4f} -> {new_avg_cost:.4f}"
        )
        return PositionState(shares=new_shares, avg_cost=new_avg_cost)

    if shares > held_shares:
        raise InsufficientSharesError(
            f"Cannot sell {shares} shares, only {held_shares} held"
        )

    remaining = round(held_shares - shares, SHARE_DECIMALS)
    logger.debug(f"SELL {shares} @ {trade.price:.2f}: {held_shares} -> {remaining} shares")

    if remaining <= 0:
        return None
    return PositionState(shares=remaining, avg_cost=held_cost)
