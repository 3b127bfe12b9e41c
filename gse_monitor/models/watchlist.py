from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gse_monitor.database.config import Base
from gse_monitor.models.stock import new_id


class WatchlistItem(Base):
    __tablename__ = "watchlists"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    stock_id = Column(String(36), ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    stock = relationship("Stock", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "stock_id", name="uq_watchlists_user_stock"),
    )

    def __repr__(self):
        return f"<WatchlistItem user={self.user_id} stock={self.stock_id}>"
