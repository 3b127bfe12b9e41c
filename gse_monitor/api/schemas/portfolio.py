from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from gse_monitor.analytics.trades import TradeType


class PositionUpsertRequest(BaseModel):
    stock_id: str
    shares: float = Field(..., gt=0)
    avg_cost: float = Field(..., gt=0)


class PositionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stock_id: str
    shares: float
    avg_cost: float


class PositionMetricsResponse(BaseModel):
    market_value: float
    cost_basis: float
    gain_loss: float
    gain_loss_percent: float


class PositionDetail(PositionResponse):
    ticker: str
    company_name: str
    tier: str
    sector: str | None
    current_price: float | None
    metrics: PositionMetricsResponse | None  # None while the stock has no quote


class PortfolioSummaryResponse(BaseModel):
    total_value: float
    total_cost: float
    total_gain_loss: float
    total_gain_loss_percent: float
    winners: int
    losers: int
    ties: int
    positions: int


class PortfolioResponse(BaseModel):
    positions: list[PositionDetail]
    summary: PortfolioSummaryResponse
    unpriced: list[str] = []  # Tickers held but left out of the summary


class TradeRequest(BaseModel):
    stock_id: str
    trade_type: TradeType
    shares: float = Field(..., gt=0)
    price: float
    fees: float = Field(default=0.0, ge=0)
    executed_at: Optional[datetime] = None


class TradeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stock_id: str
    ticker: str | None = None
    trade_type: TradeType
    shares: float
    price: float
    fees: float
    executed_at: datetime


class TradeResultResponse(BaseModel):
    trade: TradeResponse
    position: PositionResponse | None  # None once the position is closed
