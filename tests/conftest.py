"""
Shared fixtures.

Each test gets a fresh SQLite database file. Tables are created and seeded
through a synchronous engine; services and the API talk to the same file
through aiosqlite.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

import gse_monitor.models  # noqa: F401
from gse_monitor.database.config import Base
from gse_monitor.models.alert import Alert, TriggerType
from gse_monitor.models.stock import Stock, StockPrice

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

# Fixed "now" for price-window queries against the historical EGL series
NOW = datetime(2024, 6, 30, 12, 0)

STOCKS = [
    # ticker, company, sector, price, prev close, volume, score, tier, active
    ("SCB", "Standard Chartered Bank Ghana Limited", "Banking", 18.75, 18.50, 32000, 88, "A", True),
    ("EGL", "Ecobank Ghana Limited", "Banking", 5.25, 5.10, 125000, 85, "A", True),
    ("GCB", "GCB Bank Limited", "Banking", 4.80, 4.75, 89000, 78, "B", True),
    ("GOIL", "Ghana Oil Company Limited", "Oil & Gas", 2.15, 2.05, 156000, 72, "B", True),
    ("TLW", "Tullow Oil Plc", "Oil & Gas", 12.50, 12.30, 45000, 68, "C", True),
    ("DELIST", "Delisted Holdings", "Industrials", 0.10, 0.10, 0, 10, "C", False),
]

# One price inside each successively wider window ending at NOW
EGL_PRICE_TIMES = [
    datetime(2024, 6, 30, 10, 0),   # 1D
    datetime(2024, 6, 27, 15, 0),   # 1W
    datetime(2024, 6, 1, 15, 0),    # 1M
    datetime(2024, 4, 15, 15, 0),   # 3M
    datetime(2023, 8, 1, 15, 0),    # 1Y
    datetime(2022, 1, 3, 15, 0),    # outside every window
]


def seed(session: Session) -> dict:
    stocks = {}
    for ticker, company, sector, price, prev, volume, score, tier, active in STOCKS:
        stock = Stock(
            ticker=ticker, company_name=company, sector=sector,
            current_price=price, previous_close=prev, volume=volume,
            score=score, tier=tier, is_active=active,
        )
        session.add(stock)
        stocks[ticker] = stock
    session.flush()

    for i, timestamp in enumerate(EGL_PRICE_TIMES):
        session.add(StockPrice(
            stock_id=stocks["EGL"].id, price=5.0 + i * 0.01, volume=1000, timestamp=timestamp
        ))

    # Recent quote for API queries, which window against the real clock (naive UTC in SQLite)
    recent = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(hours=1)
    session.add(StockPrice(stock_id=stocks["GCB"].id, price=4.80, volume=500, timestamp=recent))

    alerts = {
        "goil_spike": Alert(
            stock_id=stocks["GOIL"].id, user_id=USER_ID,
            trigger_type=TriggerType.VOLUME_SPIKE.value, tier="B", price=2.15,
            rationale="Volume increased by 150% above 20-day average",
            created_at=datetime(2024, 6, 3, 9, 0),
        ),
        "egl_breakout": Alert(
            stock_id=stocks["EGL"].id, user_id=USER_ID,
            trigger_type=TriggerType.PRICE_BREAKOUT.value, tier="A", price=5.25,
            rationale="Price broke above 50-day moving average resistance",
            is_read=True,
            created_at=datetime(2024, 6, 2, 9, 0),
        ),
        "tlw_rsi": Alert(
            stock_id=stocks["TLW"].id, user_id=USER_ID,
            trigger_type=TriggerType.RSI_REVERSAL.value, tier="C", price=12.50,
            rationale="RSI moved from oversold to neutral territory",
            is_dismissed=True,
            created_at=datetime(2024, 6, 1, 9, 0),
        ),
        "other_user": Alert(
            stock_id=stocks["EGL"].id, user_id=OTHER_USER_ID,
            trigger_type=TriggerType.MA_CROSS.value, tier="A", price=5.20,
            created_at=datetime(2024, 6, 3, 10, 0),
        ),
    }
    session.add_all(alerts.values())
    session.commit()

    return {
        "stocks": {ticker: stock.id for ticker, stock in stocks.items()},
        "alerts": {key: alert.id for key, alert in alerts.items()},
    }


@pytest.fixture
def database(tmp_path):
    """Fresh, seeded database file."""
    path = tmp_path / "gse_monitor_test.db"

    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    with Session(sync_engine, expire_on_commit=False) as session:
        ids = seed(session)
    sync_engine.dispose()

    return {"url": f"sqlite+aiosqlite:///{path}", "ids": ids}


@pytest.fixture
def ids(database):
    return database["ids"]


@pytest.fixture
def session_factory(database):
    # NullPool: connections never outlive the event loop that opened them
    engine = create_async_engine(database["url"], poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
