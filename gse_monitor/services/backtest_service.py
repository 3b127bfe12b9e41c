from typing import TYPE_CHECKING, List, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.analytics.backtesting import (
    BacktestParameters,
    BacktestStatus,
    BacktestSimulator,
    SimulatorConfig,
    validate_parameters,
)
from gse_monitor.analytics.backtesting.simulator import RandomSource
from gse_monitor.analytics.errors import ValuationError
from gse_monitor.config.settings import settings
from gse_monitor.models.backtest import Backtest
from gse_monitor.services.errors import NotFoundError
from gse_monitor.utils.logger import get_logger

if TYPE_CHECKING:
    from gse_monitor.services.backtest_runner import BacktestRunner

logger = get_logger(__name__)


class BacktestService:
    """
    Create, complete and list a user's backtests.

    A backtest is validated before anything is written, inserted as
    'running', and completed later by the runner.
    """

    def __init__(self, runner: Optional["BacktestRunner"] = None):
        self.runner = runner

    async def start(
        self,
        user_id: str,
        parameters: BacktestParameters,
        db: AsyncSession
    ) -> Backtest:
        """
        Validate parameters and start a backtest.

        Raises:
            NoStocksSelectedError, InvalidCapitalError, InvalidDateRangeError
            before any row is written
        """
        validate_parameters(parameters)

        backtest = Backtest(
            user_id=user_id,
            name=parameters.name,
            parameters=parameters.to_storage(),
            status=BacktestStatus.PENDING.value,
        )
        backtest.transition_to(BacktestStatus.RUNNING)
        db.add(backtest)

        try:
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create backtest '{parameters.name}' for {user_id}: {e}")
            raise

        await db.refresh(backtest)
        logger.info(f"Started backtest {backtest.id} '{backtest.name}' for {user_id}")

        if self.runner is not None:
            self.runner.schedule(backtest.id)

        return backtest

    async def complete(
        self,
        backtest_id: str,
        db: AsyncSession,
        rng: Optional[RandomSource] = None
    ) -> Backtest:
        """
        Run the simulation for a stored backtest and persist the outcome.

        Stored parameters that no longer validate move the backtest to
        'failed' with the error recorded in its results. Terminal backtests
        are returned unchanged.
        """
        backtest = await db.get(Backtest, backtest_id)
        if backtest is None:
            raise NotFoundError("Backtest", backtest_id)

        if backtest.status_enum.is_terminal:
            logger.warning(f"Backtest {backtest_id} already {backtest.status}, skipping")
            return backtest

        if backtest.status_enum == BacktestStatus.PENDING:
            backtest.transition_to(BacktestStatus.RUNNING)

        simulator = BacktestSimulator(
            config=SimulatorConfig(risk_free_rate=settings.backtest_risk_free_rate),
            rng=rng,
        )

        try:
            results = simulator.run(backtest.params)
        except (ValuationError, ValidationError) as e:
            error_code = getattr(e, "error_code", "invalid_parameters")
            logger.warning(f"Backtest {backtest_id} failed: {e}")
            backtest.transition_to(
                BacktestStatus.FAILED,
                results={"error": str(e), "errorCode": error_code},
            )
        else:
            backtest.transition_to(BacktestStatus.COMPLETED, results=results.to_dict())

        try:
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to save backtest {backtest_id}: {e}")
            raise

        logger.info(f"Backtest {backtest_id} {backtest.status}")
        return backtest

    async def unfinished_ids(self, db: AsyncSession) -> List[str]:
        """Ids of every backtest, for any user, not yet completed or failed."""
        unfinished = [s.value for s in BacktestStatus if not s.is_terminal]
        result = await db.execute(
            select(Backtest.id)
            .where(Backtest.status.in_(unfinished))
            .order_by(Backtest.created_at)
        )
        return list(result.scalars().all())

    async def list_backtests(self, user_id: str, db: AsyncSession) -> List[Backtest]:
        """Newest first."""
        result = await db.execute(
            select(Backtest)
            .where(Backtest.user_id == user_id)
            .order_by(Backtest.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, user_id: str, backtest_id: str, db: AsyncSession) -> Backtest:
        result = await db.execute(
            select(Backtest).where(Backtest.id == backtest_id, Backtest.user_id == user_id)
        )
        backtest = result.scalar_one_or_none()
        if backtest is None:
            raise NotFoundError("Backtest", backtest_id)
        return backtest

    async def delete(self, user_id: str, backtest_id: str, db: AsyncSession) -> None:
        backtest = await self.get(user_id, backtest_id, db)
        await db.delete(backtest)
        await db.commit()
        logger.info(f"Deleted backtest {backtest_id} for {user_id}")
