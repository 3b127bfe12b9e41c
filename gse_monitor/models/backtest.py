"""
Backtest ORM Model

Parameters and results are stored as JSON documents in the dashboard's
camelCase format. Status follows pending -> running -> completed | failed;
terminal rows are never moved again.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, String
from sqlalchemy.sql import func

from gse_monitor.analytics.backtesting.parameters import BacktestParameters
from gse_monitor.analytics.backtesting.status import BacktestStatus, ensure_transition
from gse_monitor.database.config import Base
from gse_monitor.models.stock import new_id

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in BacktestStatus)


class Backtest(Base):
    __tablename__ = "backtests"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    parameters = Column(JSON, nullable=False)
    results = Column(JSON, nullable=True)
    status = Column(String(20), default=BacktestStatus.PENDING.value, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_backtests_status"),
        Index("idx_backtests_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Backtest {self.name!r} status={self.status}>"

    @property
    def status_enum(self) -> BacktestStatus:
        return BacktestStatus(self.status)

    @property
    def params(self) -> BacktestParameters:
        """Stored parameters parsed back into the request model."""
        return BacktestParameters.model_validate(self.parameters)

    def transition_to(
        self,
        status: BacktestStatus,
        results: Optional[Dict[str, Any]] = None
    ) -> None:
        """Move to `status`, stamping completed_at on terminal states."""
        target = ensure_transition(self.status_enum, status)
        self.status = target.value
        if results is not None:
            self.results = results
        if target.is_terminal:
            self.completed_at = datetime.now(timezone.utc)
