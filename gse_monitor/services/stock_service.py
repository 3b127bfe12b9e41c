from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Sequence

import pandas as pd
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.analytics.valuation import price_change_percent
from gse_monitor.models.stock import Stock, StockPrice, Tier
from gse_monitor.services.errors import NotFoundError
from gse_monitor.utils.logger import get_logger

logger = get_logger(__name__)

TimeRange = Literal["1D", "1W", "1M", "3M", "1Y"]

RANGE_OFFSETS: Dict[str, pd.DateOffset] = {
    "1D": pd.DateOffset(days=1),
    "1W": pd.DateOffset(weeks=1),
    "1M": pd.DateOffset(months=1),
    "3M": pd.DateOffset(months=3),
    "1Y": pd.DateOffset(years=1),
}

SORTABLE_FIELDS = (
    "ticker", "company_name", "sector", "current_price", "previous_close",
    "volume", "market_cap", "pe_ratio", "pb_ratio", "roe", "dividend_yield", "score", "tier",
)


def range_start(time_range: str, now: Optional[datetime] = None) -> datetime:
    """Start of a chart window ending at `now`."""
    if time_range not in RANGE_OFFSETS:
        raise ValueError(f"Unknown time range '{time_range}', expected one of {list(RANGE_OFFSETS)}")
    now = now or datetime.now(timezone.utc)
    return (pd.Timestamp(now) - RANGE_OFFSETS[time_range]).to_pydatetime()


def daily_change(stock: Stock) -> Optional[float]:
    """Percent change against previous close, None when the quote is incomplete."""
    if stock.current_price is None or not stock.previous_close:
        return None
    return price_change_percent(stock.current_price, stock.previous_close)


class StockService:
    """Service layer for the GSE stock universe"""

    async def list_stocks(
        self,
        db: AsyncSession,
        active_only: bool = True
    ) -> List[Stock]:
        """All listings, best score first."""
        query = select(Stock).order_by(Stock.score.desc(), Stock.ticker)
        if active_only:
            query = query.where(Stock.is_active.is_(True))

        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_by_ticker(self, ticker: str, db: AsyncSession) -> Stock:
        result = await db.execute(select(Stock).where(Stock.ticker == ticker.upper()))
        stock = result.scalar_one_or_none()
        if stock is None:
            raise NotFoundError("Stock", ticker.upper())
        return stock

    async def get_price_history(
        self,
        stock_id: str,
        db: AsyncSession,
        time_range: TimeRange = "1D",
        now: Optional[datetime] = None
    ) -> List[StockPrice]:
        """
        Price history for a chart window.

        Args:
            stock_id: Stock primary key
            db: Database session
            time_range: One of 1D, 1W, 1M, 3M, 1Y
            now: End of the window (defaults to current UTC time)

        Returns:
            Prices in ascending timestamp order
        """
        start = range_start(time_range, now)

        result = await db.execute(
            select(StockPrice)
            .where(StockPrice.stock_id == stock_id, StockPrice.timestamp >= start)
            .order_by(StockPrice.timestamp.asc())
        )
        prices = list(result.scalars().all())
        logger.debug(f"{len(prices)} prices for {stock_id} since {start.isoformat()}")
        return prices

    @staticmethod
    def screen(
        stocks: Sequence[Stock],
        search: str = "",
        sector: Optional[str] = None,
        tier: Optional[str] = None,
        sort_field: str = "score",
        direction: Literal["asc", "desc"] = "desc"
    ) -> List[Stock]:
        """
        Filter and sort a stock list the way the stock table does.

        Search matches ticker or company name, case-insensitive. `sector` and
        `tier` of None or "all" disable that filter. Missing sort values go last.
        """
        if sort_field not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by '{sort_field}'")
        if direction not in ("asc", "desc"):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', got '{direction}'")

        term = (search or "").strip().lower()

        def matches(stock: Stock) -> bool:
            if term and term not in stock.ticker.lower() and term not in stock.company_name.lower():
                return False
            if sector and sector != "all" and stock.sector != sector:
                return False
            if tier and tier != "all" and stock.tier != tier:
                return False
            return True

        filtered = [s for s in stocks if matches(s)]

        present = [s for s in filtered if getattr(s, sort_field) is not None]
        missing = [s for s in filtered if getattr(s, sort_field) is None]

        def sort_key(stock: Stock):
            value = getattr(stock, sort_field)
            return value.lower() if isinstance(value, str) else value

        present.sort(key=sort_key, reverse=(direction == "desc"))
        return present + missing

    @staticmethod
    def sectors(stocks: Sequence[Stock]) -> List[str]:
        """Distinct non-empty sectors in first-seen order."""
        return list(dict.fromkeys(s.sector for s in stocks if s.sector))

    @staticmethod
    def market_overview(stocks: Sequence[Stock]) -> Dict:
        """
        Dashboard overview.

        Returns:
            Dictionary with 'market' (first five listings with daily change),
            'volume_leaders' (top eight by volume) and 'tiers' (A/B/C counts)
        """
        if not stocks:
            return {
                "market": [],
                "volume_leaders": [],
                "tiers": {tier.value: 0 for tier in Tier},
            }

        frame = pd.DataFrame(
            {
                "ticker": [s.ticker for s in stocks],
                "price": [s.current_price for s in stocks],
                "change": [daily_change(s) for s in stocks],
                "volume": [s.volume or 0 for s in stocks],
                "market_cap": [s.market_cap for s in stocks],
                "tier": [s.tier for s in stocks],
            }
        )

        market = frame.head(5)[["ticker", "price", "change", "volume", "market_cap"]]
        leaders = frame.nlargest(8, "volume")[["ticker", "volume", "price"]]
        tier_counts = frame["tier"].value_counts()

        return {
            "market": _records(market),
            "volume_leaders": _records(leaders),
            "tiers": {tier.value: int(tier_counts.get(tier.value, 0)) for tier in Tier},
        }


def _records(frame: pd.DataFrame) -> List[Dict]:
    """DataFrame rows as plain dicts with NaN replaced by None."""
    cleaned = frame.astype(object).where(pd.notna(frame), None)
    return cleaned.to_dict(orient="records")
