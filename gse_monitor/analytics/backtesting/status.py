"""Backtest lifecycle: pending -> running -> completed | failed."""

import enum
from typing import Dict, FrozenSet

from gse_monitor.analytics.errors import InvalidStatusTransitionError


class BacktestStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: FrozenSet[BacktestStatus] = frozenset(
    {BacktestStatus.COMPLETED, BacktestStatus.FAILED}
)

ALLOWED_TRANSITIONS: Dict[BacktestStatus, FrozenSet[BacktestStatus]] = {
    BacktestStatus.PENDING: frozenset({BacktestStatus.RUNNING, BacktestStatus.FAILED}),
    BacktestStatus.RUNNING: frozenset({BacktestStatus.COMPLETED, BacktestStatus.FAILED}),
    BacktestStatus.COMPLETED: frozenset(),
    BacktestStatus.FAILED: frozenset(),
}


def ensure_transition(current: BacktestStatus, target: BacktestStatus) -> BacktestStatus:
    """Return `target` if the move is allowed, otherwise raise."""
    current = BacktestStatus(current)
    target = BacktestStatus(target)

    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(
            f"Backtest cannot move from '{current.value}' to '{target.value}'"
        )
    return target
