from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.analytics.valuation import PositionMetrics
from gse_monitor.api.deps import get_current_user_id
from gse_monitor.api.schemas.portfolio import (
    PortfolioResponse,
    PositionDetail,
    PositionResponse,
    PositionUpsertRequest,
    TradeRequest,
    TradeResponse,
    TradeResultResponse,
)
from gse_monitor.database.config import get_db
from gse_monitor.models.portfolio import Position, Trade
from gse_monitor.services.portfolio_service import PortfolioService

router = APIRouter(prefix="/portfolio", tags=["portfolio"])

portfolio_service = PortfolioService()


def to_position_detail(position: Position, metrics: Optional[PositionMetrics]) -> PositionDetail:
    stock = position.stock
    return PositionDetail(
        id=position.id,
        stock_id=position.stock_id,
        shares=position.shares,
        avg_cost=position.avg_cost,
        ticker=stock.ticker,
        company_name=stock.company_name,
        tier=stock.tier,
        sector=stock.sector,
        current_price=stock.current_price,
        metrics=metrics.to_dict() if metrics is not None else None,
    )


def to_portfolio_response(valuation: dict) -> PortfolioResponse:
    return PortfolioResponse(
        positions=[to_position_detail(p, m) for p, m in valuation["positions"]],
        summary=valuation["summary"].to_dict(),
        unpriced=valuation["unpriced"],
    )


def to_trade_response(trade: Trade) -> TradeResponse:
    response = TradeResponse.model_validate(trade)
    # Only read the stock if it came back with the row; no lazy IO here
    if "stock" not in inspect(trade).unloaded and trade.stock is not None:
        response.ticker = trade.stock.ticker
    return response


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Positions valued at current quotes plus the portfolio aggregate."""
    valuation = await portfolio_service.get_summary(user_id, db)
    return to_portfolio_response(valuation)


@router.put("/positions", response_model=PositionResponse)
async def upsert_position(
    body: PositionUpsertRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    position = await portfolio_service.upsert_position(
        user_id, body.stock_id, body.shares, body.avg_cost, db
    )
    return PositionResponse.model_validate(position)


@router.delete("/positions/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_position(
    position_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await portfolio_service.remove_position(user_id, position_id, db)


@router.post("/trades", response_model=TradeResultResponse, status_code=status.HTTP_201_CREATED)
async def record_trade(
    body: TradeRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Record a BUY or SELL and return the resulting position (null once closed)."""
    trade, position = await portfolio_service.record_trade(
        user_id,
        body.stock_id,
        body.trade_type,
        body.shares,
        body.price,
        db,
        fees=body.fees,
        executed_at=body.executed_at,
    )
    return TradeResultResponse(
        trade=to_trade_response(trade),
        position=PositionResponse.model_validate(position) if position else None,
    )


@router.get("/trades", response_model=list[TradeResponse])
async def recent_trades(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    trades = await portfolio_service.recent_trades(user_id, db, limit=limit)
    return [to_trade_response(t) for t in trades]
