"""
SQLAlchemy ORM Models

All database models defined here:
- Stock / StockPrice: GSE listings with score/tier and price history
- Alert: pipeline-generated notifications
- Position / Trade: per-user holdings and trade history
- Backtest: simulated strategy runs
- WatchlistItem: stocks a user follows
- Profile: per-user preferences
"""

from gse_monitor.models.stock import Stock, StockPrice, Tier
from gse_monitor.models.alert import Alert, TriggerType
from gse_monitor.models.portfolio import Position, Trade
from gse_monitor.models.backtest import Backtest
from gse_monitor.models.watchlist import WatchlistItem
from gse_monitor.models.profile import Profile

__all__ = [
    "Alert",
    "Backtest",
    "Position",
    "Profile",
    "Stock",
    "StockPrice",
    "Tier",
    "Trade",
    "TriggerType",
    "WatchlistItem",
]
