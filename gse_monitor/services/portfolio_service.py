from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from gse_monitor.analytics.trades import SHARE_DECIMALS, TradeType, apply_trade
from gse_monitor.analytics.valuation import Holding, aggregate_portfolio, value_holdings
from gse_monitor.config.settings import settings
from gse_monitor.models.portfolio import Position, Trade
from gse_monitor.models.stock import Stock
from gse_monitor.services.errors import ConflictError, NotFoundError
from gse_monitor.utils.logger import get_logger

logger = get_logger(__name__)


def has_quote(position: Position) -> bool:
    price = position.stock.current_price
    return price is not None and price > 0


def to_holding(position: Position) -> Holding:
    """Resolve a position against its stock's current quote."""
    return Holding(
        shares=position.shares,
        avg_cost=position.avg_cost,
        current_price=position.stock.current_price,
        ticker=position.stock.ticker,
    )


class PortfolioService:
    """Service layer for positions and trade history"""

    async def get_positions(self, user_id: str, db: AsyncSession) -> List[Position]:
        result = await db.execute(
            select(Position)
            .where(Position.user_id == user_id)
            .order_by(Position.created_at)
        )
        return list(result.unique().scalars().all())

    @staticmethod
    def summarize(positions: Sequence[Position]) -> Dict[str, Any]:
        """
        Value every position and the portfolio as a whole.

        A position in a stock without a current quote has no metrics and is
        left out of the aggregate; its ticker is listed under 'unpriced'.

        Returns:
            Dictionary with 'positions' (position, metrics or None pairs),
            'summary' and 'unpriced'
        """
        quoted = [p for p in positions if has_quote(p)]
        holdings = [to_holding(p) for p in quoted]
        metrics = dict(zip((p.id for p in quoted), value_holdings(holdings)))

        return {
            "positions": [(p, metrics.get(p.id)) for p in positions],
            "summary": aggregate_portfolio(holdings),
            "unpriced": [p.stock.ticker for p in positions if not has_quote(p)],
        }

    async def get_summary(self, user_id: str, db: AsyncSession) -> Dict[str, Any]:
        positions = await self.get_positions(user_id, db)
        return self.summarize(positions)

    async def _find_position(
        self,
        user_id: str,
        stock_id: str,
        db: AsyncSession
    ) -> Optional[Position]:
        result = await db.execute(
            select(Position)
            .where(Position.user_id == user_id, Position.stock_id == stock_id)
            .execution_options(populate_existing=True)
        )
        return result.unique().scalar_one_or_none()

    async def _require_stock(self, stock_id: str, db: AsyncSession) -> Stock:
        stock = await db.get(Stock, stock_id)
        if stock is None:
            raise NotFoundError("Stock", stock_id)
        return stock

    async def _commit_position_write(
        self,
        user_id: str,
        stock_id: str,
        db: AsyncSession,
        inserting: bool
    ) -> bool:
        """
        Commit staged position changes.

        Returns:
            False if a concurrent write to the same position won (the
            session is rolled back and the caller should re-read and retry)

        Raises:
            Any other database error, after rolling back
        """
        try:
            await db.commit()
            return True
        except StaleDataError as e:
            await db.rollback()
            logger.warning(f"Position {user_id}/{stock_id} was modified concurrently: {e}")
            return False
        except IntegrityError as e:
            await db.rollback()
            if not inserting:
                logger.error(f"Failed to save position {user_id}/{stock_id}: {e}")
                raise
            # Someone else opened the position first
            logger.warning(f"Position {user_id}/{stock_id} created concurrently: {e}")
            return False
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to save position {user_id}/{stock_id}: {e}")
            raise

    async def upsert_position(
        self,
        user_id: str,
        stock_id: str,
        shares: float,
        avg_cost: float,
        db: AsyncSession
    ) -> Position:
        """
        Insert or replace the caller's position in a stock.

        Keyed by (user, stock): an existing row is updated in place.
        """
        shares = round(shares, SHARE_DECIMALS)
        if shares <= 0:
            raise ValueError(f"Shares must be positive, got {shares}")
        if avg_cost <= 0:
            raise ValueError(f"Average cost must be positive, got {avg_cost}")

        await self._require_stock(stock_id, db)

        for _ in range(settings.position_write_attempts):
            position = await self._find_position(user_id, stock_id, db)
            inserting = position is None
            if inserting:
                position = Position(user_id=user_id, stock_id=stock_id, shares=shares, avg_cost=avg_cost)
                db.add(position)
            else:
                position.shares = shares
                position.avg_cost = avg_cost

            if await self._commit_position_write(user_id, stock_id, db, inserting):
                break
        else:
            raise ConflictError("Position", f"{user_id}/{stock_id}")

        await db.refresh(position)
        action = "Created" if inserting else "Updated"
        logger.info(f"{action} position {stock_id} for {user_id}: {shares} @ {avg_cost}")
        return position

    async def remove_position(self, user_id: str, position_id: str, db: AsyncSession) -> None:
        result = await db.execute(
            select(Position).where(Position.id == position_id, Position.user_id == user_id)
        )
        position = result.unique().scalar_one_or_none()
        if position is None:
            raise NotFoundError("Position", position_id)

        await db.delete(position)
        await db.commit()
        logger.info(f"Removed position {position_id} for {user_id}")

    async def record_trade(
        self,
        user_id: str,
        stock_id: str,
        trade_type: TradeType,
        shares: float,
        price: float,
        db: AsyncSession,
        fees: float = 0.0,
        executed_at: Optional[datetime] = None
    ) -> Tuple[Trade, Optional[Position]]:
        """
        Record an executed trade and fold it into the position.

        The new position is computed before anything is written, so an
        invalid trade (bad price, oversell) leaves both tables untouched.
        If a concurrent trade updates the same position first, the position
        is re-read and the trade applied again on top of it.

        Returns:
            (trade, position) where position is None once fully sold

        Raises:
            ConflictError: still losing after `position_write_attempts` tries
        """
        await self._require_stock(stock_id, db)

        for _ in range(settings.position_write_attempts):
            position = await self._find_position(user_id, stock_id, db)
            inserting = position is None
            trade = Trade(
                user_id=user_id,
                stock_id=stock_id,
                trade_type=TradeType(trade_type),
                shares=shares,
                price=price,
                fees=fees,
            )
            if executed_at is not None:
                trade.executed_at = executed_at

            new_state = apply_trade(position.state if position else None, trade.execution)

            db.add(trade)
            if new_state is None:
                if position is not None:
                    await db.delete(position)
                    position = None
            elif position is None:
                position = Position(
                    user_id=user_id,
                    stock_id=stock_id,
                    shares=new_state.shares,
                    avg_cost=new_state.avg_cost,
                )
                db.add(position)
            else:
                position.shares = new_state.shares
                position.avg_cost = new_state.avg_cost

            if await self._commit_position_write(user_id, stock_id, db, inserting):
                break
        else:
            raise ConflictError("Position", f"{user_id}/{stock_id}")

        await db.refresh(trade)
        if position is not None:
            await db.refresh(position)

        logger.info(
            f"Recorded {trade.trade_type.value} {shares} @ {price} for {user_id}/{stock_id}"
        )
        return trade, position

    async def recent_trades(
        self,
        user_id: str,
        db: AsyncSession,
        limit: Optional[int] = None
    ) -> List[Trade]:
        """Newest trades first."""
        result = await db.execute(
            select(Trade)
            .where(Trade.user_id == user_id)
            .order_by(Trade.executed_at.desc())
            .limit(limit or settings.recent_trades_limit)
        )
        return list(result.unique().scalars().all())
