from gse_monitor.services.alert_service import AlertService
from gse_monitor.services.backtest_service import BacktestService
from gse_monitor.services.errors import NotFoundError
from gse_monitor.services.portfolio_service import PortfolioService
from gse_monitor.services.profile_service import ProfileService
from gse_monitor.services.stock_service import StockService
from gse_monitor.services.watchlist_service import WatchlistService

__all__ = [
    "AlertService",
    "BacktestService",
    "NotFoundError",
    "PortfolioService",
    "ProfileService",
    "StockService",
    "WatchlistService",
]
