from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.api.deps import get_current_user_id
from gse_monitor.api.routes.portfolio import to_portfolio_response
from gse_monitor.api.routes.stocks import to_stock_response
from gse_monitor.api.schemas.watchlist import WatchlistChangeResponse, WatchlistResponse
from gse_monitor.database.config import get_db
from gse_monitor.services.watchlist_service import WatchlistService

router = APIRouter(prefix="/watchlist", tags=["watchlist"])

watchlist_service = WatchlistService()


@router.get("", response_model=WatchlistResponse)
async def get_watchlist(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    overview = await watchlist_service.overview(user_id, db)
    return WatchlistResponse(
        stocks=[to_stock_response(s) for s in overview["stocks"]],
        portfolio=to_portfolio_response(overview),
    )


@router.post("/{stock_id}", response_model=WatchlistChangeResponse)
async def add_to_watchlist(
    stock_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Follow a stock. Adding a stock twice is a no-op (added=false)."""
    added = await watchlist_service.add(user_id, stock_id, db)
    return WatchlistChangeResponse(stock_id=stock_id, added=added)


@router.delete("/{stock_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_watchlist(
    stock_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await watchlist_service.remove(user_id, stock_id, db)
