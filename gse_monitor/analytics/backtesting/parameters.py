"""
Backtest parameters.

Stored as JSON against the backtest row using the dashboard's camelCase keys
(`startDate`, `initialCapital`, `riskManagement.stopLoss`, ...). Snake_case
names are accepted too.

Capital, date range and stock selection are not constrained
here: the simulator validates them and raises the engine's own errors.
Strategy, rebalance frequency and risk management are stored but do not
influence the simulation.
"""

import enum
from datetime import date
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Strategy(str, enum.Enum):
    BUY_AND_HOLD = "buy_and_hold"
    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    TIER_BASED = "tier_based"
    VOLUME_BREAKOUT = "volume_breakout"


class RebalanceFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class RiskManagement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stop_loss_pct: float = Field(default=10.0, ge=0, alias="stopLoss")
    take_profit_pct: float = Field(default=20.0, ge=0, alias="takeProfit")
    max_position_size_pct: float = Field(default=20.0, gt=0, le=100, alias="maxPositionSize")


class BacktestParameters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    initial_capital: float = Field(..., alias="initialCapital")
    strategy: Strategy = Strategy.BUY_AND_HOLD
    stocks: List[str] = Field(default_factory=list)
    risk_management: RiskManagement = Field(
        default_factory=RiskManagement, alias="riskManagement"
    )
    rebalance_frequency: RebalanceFrequency = Field(
        default=RebalanceFrequency.MONTHLY, alias="rebalanceFrequency"
    )

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days

    def to_storage(self) -> Dict[str, Any]:
        """JSON document persisted on the backtest row."""
        return self.model_dump(mode="json", by_alias=True)
