from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ticker: str
    company_name: str
    sector: str | None
    current_price: float | None
    previous_close: float | None
    change_percent: float | None = None
    volume: int | None
    market_cap: int | None
    pe_ratio: float | None
    pb_ratio: float | None
    roe: float | None
    dividend_yield: float | None
    score: int = Field(..., ge=0, le=100)
    tier: str
    is_active: bool


class StockListResponse(BaseModel):
    total: int  # Matches after filtering
    sectors: list[str]  # All sectors in the unfiltered universe
    stocks: list[StockResponse]


class PricePoint(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    price: float
    volume: int | None
    timestamp: datetime


class PriceHistoryResponse(BaseModel):
    ticker: str
    range: str
    prices: list[PricePoint]


class MarketRow(BaseModel):
    ticker: str
    price: Optional[float] = None
    change: Optional[float] = None
    volume: Optional[int] = None
    market_cap: Optional[float] = None


class VolumeLeader(BaseModel):
    ticker: str
    volume: int
    price: Optional[float] = None


class MarketOverviewResponse(BaseModel):
    market: list[MarketRow]
    volume_leaders: list[VolumeLeader]
    tiers: dict[str, int]
