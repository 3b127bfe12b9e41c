"""
Deferred backtest completion.

A started backtest is completed by a one-shot APScheduler job that fires a
fixed delay after start. Each job is keyed by its backtest id, opens its own
database session and mutates only that backtest's row. There is no
cancellation: once scheduled, a job always runs.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.config.settings import settings
from gse_monitor.database.config import AsyncSessionLocal
from gse_monitor.services.backtest_service import BacktestService
from gse_monitor.utils.logger import get_logger

logger = get_logger(__name__)


class BacktestRunner:
    """Schedules and runs backtest completion jobs"""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        delay_seconds: Optional[float] = None,
        scheduler: Optional[AsyncIOScheduler] = None
    ):
        self.session_factory = session_factory
        self.delay_seconds = (
            settings.backtest_completion_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self.service = BacktestService()

    def start(self) -> None:
        """Start the scheduler (needs a running event loop)."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Backtest runner started")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Backtest runner stopped")

    def schedule(self, backtest_id: str) -> str:
        """
        Queue completion of a backtest.

        Returns:
            The scheduler job id
        """
        run_date = datetime.now(timezone.utc) + timedelta(seconds=self.delay_seconds)
        job_id = f"backtest:{backtest_id}"

        self.scheduler.add_job(
            self.run_job,
            trigger=DateTrigger(run_date=run_date),
            args=[backtest_id],
            id=job_id,
            name=f"Complete backtest {backtest_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug(f"Scheduled {job_id} for {run_date.isoformat()}")
        return job_id

    async def resume(self) -> List[str]:
        """
        Reschedule backtests left unfinished, e.g. by a restart.

        Returns:
            The backtest ids that were scheduled
        """
        async with self.session_factory() as db:
            backtest_ids = await self.service.unfinished_ids(db)

        for backtest_id in backtest_ids:
            self.schedule(backtest_id)

        if backtest_ids:
            logger.info(f"Resumed {len(backtest_ids)} unfinished backtests")
        return backtest_ids

    async def run_job(self, backtest_id: str) -> None:
        """Complete one backtest in its own session."""
        try:
            async with self.session_factory() as db:
                await self.service.complete(backtest_id, db)
        except Exception as e:
            logger.error(f"Backtest job {backtest_id} failed: {e}", exc_info=True)


backtest_runner = BacktestRunner()
