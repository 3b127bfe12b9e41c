from pydantic import BaseModel

from gse_monitor.api.schemas.portfolio import PortfolioResponse
from gse_monitor.api.schemas.stocks import StockResponse


class WatchlistResponse(BaseModel):
    stocks: list[StockResponse]
    portfolio: PortfolioResponse


class WatchlistChangeResponse(BaseModel):
    stock_id: str
    added: bool
