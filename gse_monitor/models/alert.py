"""
Alert ORM Model

Alerts are produced by the market data pipeline. Clients only flip the
is_read / is_dismissed flags; rows are never deleted by a user.
"""

import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gse_monitor.database.config import Base
from gse_monitor.models.stock import Money, new_id


class TriggerType(str, enum.Enum):
    VOLUME_SPIKE = "Volume Spike"
    PRICE_BREAKOUT = "Price Breakout"
    RSI_REVERSAL = "RSI Reversal"
    MA_CROSS = "MA Cross"
    EARNINGS_BEAT = "Earnings Beat"
    SUPPORT_RESISTANCE = "Support/Resistance"


_TRIGGER_VALUES = ", ".join(f"'{t.value}'" for t in TriggerType)


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(String(36), primary_key=True, default=new_id)
    stock_id = Column(String(36), ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=True, index=True)  # None = not addressed to a user

    trigger_type = Column(String(30), nullable=False)
    tier = Column(String(1), nullable=False)  # Tier at the time of the alert
    price = Column(Money, nullable=True)      # Price at the time of the alert
    rationale = Column(Text, nullable=True)

    is_read = Column(Boolean, default=False, nullable=False)
    is_dismissed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    stock = relationship("Stock", lazy="joined")

    __table_args__ = (
        CheckConstraint(f"trigger_type IN ({_TRIGGER_VALUES})", name="ck_alerts_trigger_type"),
        CheckConstraint("tier IN ('A', 'B', 'C')", name="ck_alerts_tier"),
        Index("idx_alerts_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Alert {self.trigger_type} stock={self.stock_id} read={self.is_read}>"
