import enum
from uuid import uuid4

from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index,
    Integer, Numeric, String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gse_monitor.database.config import Base


def new_id() -> str:
    return str(uuid4())


# Prices are DECIMAL(10,2) in the database, floats in Python
Money = Numeric(10, 2, asdecimal=False)
Ratio = Numeric(8, 2, asdecimal=False)
# Shares and average cost keep four places so weighted averages survive
Quantity = Numeric(14, 4, asdecimal=False)


class Tier(str, enum.Enum):
    A = "A"
    B = "B"
    C = "C"


class Stock(Base):
    __tablename__ = "stocks"

    id = Column(String(36), primary_key=True, default=new_id)
    ticker = Column(String(10), nullable=False, unique=True, index=True)
    company_name = Column(String(200), nullable=False)
    sector = Column(String(100), nullable=True)

    # Quote
    current_price = Column(Money, nullable=True)
    previous_close = Column(Money, nullable=True)
    volume = Column(BigInteger, default=0)
    market_cap = Column(BigInteger, nullable=True)

    # Fundamentals
    pe_ratio = Column(Ratio, nullable=True)
    pb_ratio = Column(Ratio, nullable=True)
    roe = Column(Ratio, nullable=True)
    dividend_yield = Column(Ratio, nullable=True)

    # Scoring (assigned by the data pipeline)
    score = Column(Integer, default=0, nullable=False)
    tier = Column(String(1), default=Tier.C.value, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    prices = relationship("StockPrice", back_populates="stock", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="ck_stocks_score_range"),
        CheckConstraint("tier IN ('A', 'B', 'C')", name="ck_stocks_tier"),
        Index("idx_stocks_active_score", "is_active", "score"),
    )

    def __repr__(self):
        return f"<Stock {self.ticker} tier={self.tier} score={self.score} ₵{self.current_price}>"


class StockPrice(Base):
    __tablename__ = "stock_prices"

    id = Column(String(36), primary_key=True, default=new_id)
    stock_id = Column(String(36), ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)
    price = Column(Money, nullable=False)
    volume = Column(BigInteger, default=0)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    stock = relationship("Stock", back_populates="prices")

    __table_args__ = (
        Index("idx_stock_prices_stock_timestamp", "stock_id", "timestamp"),
    )

    def __repr__(self):
        return f"<StockPrice {self.stock_id} {self.timestamp} ₵{self.price}>"
