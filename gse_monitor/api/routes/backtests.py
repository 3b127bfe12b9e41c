from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.analytics.backtesting import BacktestParameters
from gse_monitor.api.deps import get_current_user_id
from gse_monitor.api.schemas.backtests import BacktestResponse
from gse_monitor.database.config import get_db
from gse_monitor.services.backtest_runner import backtest_runner
from gse_monitor.services.backtest_service import BacktestService

router = APIRouter(prefix="/backtests", tags=["backtests"])

backtest_service = BacktestService(runner=backtest_runner)


@router.post("", response_model=BacktestResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_backtest(
    body: BacktestParameters,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Start a backtest.

    Returns immediately with status 'running'; results appear once the
    scheduled completion has run. Poll GET /api/backtests/{id}.
    """
    return await backtest_service.start(user_id, body, db)


@router.get("", response_model=list[BacktestResponse])
async def list_backtests(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await backtest_service.list_backtests(user_id, db)


@router.get("/{backtest_id}", response_model=BacktestResponse)
async def get_backtest(
    backtest_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await backtest_service.get(user_id, backtest_id, db)


@router.delete("/{backtest_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_backtest(
    backtest_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await backtest_service.delete(user_id, backtest_id, db)
