from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.api.deps import get_current_user_id
from gse_monitor.api.routes.alerts import to_alert_response
from gse_monitor.api.schemas.alerts import AlertResponse
from gse_monitor.api.schemas.stocks import (
    MarketOverviewResponse,
    PriceHistoryResponse,
    StockListResponse,
    StockResponse,
)
from gse_monitor.database.config import get_db
from gse_monitor.models.stock import Stock
from gse_monitor.services.alert_service import AlertService
from gse_monitor.services.stock_service import StockService, TimeRange, daily_change

router = APIRouter(prefix="/stocks", tags=["stocks"])

stock_service = StockService()
alert_service = AlertService()


def to_stock_response(stock: Stock) -> StockResponse:
    response = StockResponse.model_validate(stock)
    response.change_percent = daily_change(stock)
    return response


@router.get("", response_model=StockListResponse)
async def list_stocks(
    search: str = "",
    sector: str | None = None,
    tier: str | None = None,
    sort: str = "score",
    direction: Literal["asc", "desc"] = "desc",
    active_only: bool = True,
    db: AsyncSession = Depends(get_db),
):
    """Stock table: search, sector/tier filters and sorting."""
    stocks = await stock_service.list_stocks(db, active_only=active_only)
    try:
        screened = stock_service.screen(stocks, search, sector, tier, sort, direction)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return StockListResponse(
        total=len(screened),
        sectors=stock_service.sectors(stocks),
        stocks=[to_stock_response(s) for s in screened],
    )


@router.get("/overview", response_model=MarketOverviewResponse)
async def market_overview(db: AsyncSession = Depends(get_db)):
    """Market movers, volume leaders and tier distribution."""
    stocks = await stock_service.list_stocks(db)
    return stock_service.market_overview(stocks)


@router.get("/{ticker}", response_model=StockResponse)
async def get_stock(ticker: str, db: AsyncSession = Depends(get_db)):
    stock = await stock_service.get_by_ticker(ticker, db)
    return to_stock_response(stock)


@router.get("/{ticker}/prices", response_model=PriceHistoryResponse)
async def get_price_history(
    ticker: str,
    time_range: TimeRange = Query(default="1D", alias="range"),
    db: AsyncSession = Depends(get_db),
):
    stock = await stock_service.get_by_ticker(ticker, db)
    prices = await stock_service.get_price_history(stock.id, db, time_range)
    return PriceHistoryResponse(ticker=stock.ticker, range=time_range, prices=prices)


@router.get("/{ticker}/alerts", response_model=list[AlertResponse])
async def get_stock_alerts(
    ticker: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The caller's alerts for one stock, newest first."""
    stock = await stock_service.get_by_ticker(ticker, db)
    alerts = await alert_service.list_alerts(user_id, db, stock_id=stock.id)
    return [to_alert_response(a) for a in alerts]
