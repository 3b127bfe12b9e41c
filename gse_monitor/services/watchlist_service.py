from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.models.stock import Stock
from gse_monitor.models.watchlist import WatchlistItem
from gse_monitor.services.errors import NotFoundError
from gse_monitor.services.portfolio_service import PortfolioService
from gse_monitor.utils.logger import get_logger

logger = get_logger(__name__)


class WatchlistService:
    """Stocks a user follows, plus a portfolio snapshot for the watchlist page"""

    def __init__(self, portfolio_service: PortfolioService | None = None):
        self.portfolio_service = portfolio_service or PortfolioService()

    async def list_stocks(self, user_id: str, db: AsyncSession) -> List[Stock]:
        result = await db.execute(
            select(WatchlistItem)
            .where(WatchlistItem.user_id == user_id)
            .order_by(WatchlistItem.created_at)
        )
        return [item.stock for item in result.unique().scalars().all() if item.stock]

    async def add(self, user_id: str, stock_id: str, db: AsyncSession) -> bool:
        """
        Follow a stock.

        Returns:
            True if added, False if it was already on the watchlist
        """
        if await db.get(Stock, stock_id) is None:
            raise NotFoundError("Stock", stock_id)

        existing = await db.execute(
            select(WatchlistItem).where(
                WatchlistItem.user_id == user_id,
                WatchlistItem.stock_id == stock_id
            )
        )
        if existing.unique().scalar_one_or_none():
            return False

        db.add(WatchlistItem(user_id=user_id, stock_id=stock_id))
        await db.commit()
        logger.info(f"{user_id} added {stock_id} to watchlist")
        return True

    async def remove(self, user_id: str, stock_id: str, db: AsyncSession) -> None:
        result = await db.execute(
            select(WatchlistItem).where(
                WatchlistItem.user_id == user_id,
                WatchlistItem.stock_id == stock_id
            )
        )
        item = result.unique().scalar_one_or_none()
        if item is None:
            raise NotFoundError("WatchlistItem", stock_id)

        await db.delete(item)
        await db.commit()
        logger.info(f"{user_id} removed {stock_id} from watchlist")

    async def overview(self, user_id: str, db: AsyncSession) -> Dict[str, Any]:
        """Watchlist stocks alongside the portfolio valuation."""
        stocks = await self.list_stocks(user_id, db)
        portfolio = await self.portfolio_service.get_summary(user_id, db)
        return {
            "stocks": stocks,
            "positions": portfolio["positions"],
            "summary": portfolio["summary"],
            "unpriced": portfolio["unpriced"],
        }
