from sqlalchemy import (
    CheckConstraint, Column, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gse_monitor.analytics.trades import PositionState, TradeExecution, TradeType
from gse_monitor.database.config import Base
from gse_monitor.models.stock import Money, Quantity, new_id


class Position(Base):
    """A user's aggregated holding in one stock (table `portfolios`)."""

    __tablename__ = "portfolios"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    stock_id = Column(String(36), ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)

    shares = Column(Quantity, nullable=False)
    avg_cost = Column(Quantity, nullable=False)
    # Optimistic lock counter, maintained by the mapper
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    stock = relationship("Stock", lazy="joined")

    # One row per (user, stock)
    __table_args__ = (
        UniqueConstraint("user_id", "stock_id", name="uq_portfolios_user_stock"),
        CheckConstraint("shares > 0", name="ck_portfolios_shares_positive"),
        CheckConstraint("avg_cost > 0", name="ck_portfolios_avg_cost_positive"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Position user={self.user_id} stock={self.stock_id} {self.shares} @ {self.avg_cost}>"

    @property
    def state(self) -> PositionState:
        return PositionState(shares=self.shares, avg_cost=self.avg_cost)


class Trade(Base):
    """Immutable record of an executed buy or sell."""

    __tablename__ = "trades"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    stock_id = Column(String(36), ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)

    trade_type = Column(SQLEnum(TradeType, name="trade_type"), nullable=False)
    shares = Column(Quantity, nullable=False)
    price = Column(Money, nullable=False)
    fees = Column(Money, default=0, nullable=False)

    executed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    stock = relationship("Stock", lazy="joined")

    __table_args__ = (
        Index("idx_trades_user_executed", "user_id", "executed_at"),
    )

    def __repr__(self):
        return f"<Trade {self.trade_type.value} {self.shares} @ {self.price} stock={self.stock_id}>"

    @property
    def execution(self) -> TradeExecution:
        return TradeExecution(
            trade_type=self.trade_type,
            shares=self.shares,
            price=self.price,
            fees=self.fees or 0.0,
            executed_at=self.executed_at,
        )
