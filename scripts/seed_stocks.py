#!/usr/bin/env python3
"""
Seed the GSE stock universe and sample alerts.

Creates the tables if needed, inserts ten GSE listings (skipping tickers that
already exist) and, when a user id is given, three sample alerts addressed to
that user.

Usage:
    python scripts/seed_stocks.py
    python scripts/seed_stocks.py <user-id>
"""
import asyncio
import sys
from pathlib import Path

from sqlalchemy import select

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gse_monitor.database.config import AsyncSessionLocal, init_db
from gse_monitor.models.alert import Alert, TriggerType
from gse_monitor.models.stock import Stock
from gse_monitor.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

GSE_STOCKS = [
    # ticker, company, sector, price, prev close, volume, market cap, P/E, P/B, ROE, yield, score, tier
    ("EGL", "Ecobank Ghana Limited", "Banking", 5.25, 5.10, 125000, 2100000000, 8.5, 1.2, 15.2, 4.5, 85, "A"),
    ("GCB", "GCB Bank Limited", "Banking", 4.80, 4.75, 89000, 1800000000, 7.8, 1.1, 14.8, 5.2, 78, "B"),
    ("GOIL", "Ghana Oil Company Limited", "Oil & Gas", 2.15, 2.05, 156000, 950000000, 12.3, 0.8, 8.9, 3.1, 72, "B"),
    ("TLW", "Tullow Oil Plc", "Oil & Gas", 12.50, 12.30, 45000, 3200000000, 15.2, 2.1, 6.5, 2.8, 68, "C"),
    ("TOTAL", "Total Petroleum Ghana Limited", "Oil & Gas", 3.45, 3.40, 78000, 1200000000, 10.8, 1.5, 11.2, 4.0, 75, "B"),
    ("GWEB", "Golden Web Limited", "Technology", 0.85, 0.82, 234000, 180000000, 18.5, 3.2, 12.8, 1.5, 82, "A"),
    ("SCB", "Standard Chartered Bank Ghana Limited", "Banking", 18.75, 18.50, 32000, 4200000000, 9.2, 1.8, 18.5, 6.8, 88, "A"),
    ("CAL", "CAL Bank Limited", "Banking", 0.95, 0.92, 187000, 320000000, 6.5, 0.9, 13.5, 4.2, 79, "B"),
    ("GGBL", "Ghana Gasoline and Bitumen Limited", "Oil & Gas", 0.55, 0.53, 298000, 95000000, 22.1, 1.1, 4.8, 1.2, 58, "C"),
    ("SOGEGH", "Societe Generale Ghana Limited", "Banking", 1.25, 1.22, 145000, 450000000, 8.9, 1.3, 12.1, 3.8, 74, "B"),
]

SAMPLE_ALERTS = [
    ("GWEB", TriggerType.VOLUME_SPIKE, "Volume increased by 150% above 20-day average"),
    ("EGL", TriggerType.PRICE_BREAKOUT, "Price broke above 50-day moving average resistance"),
    ("SCB", TriggerType.RSI_REVERSAL, "RSI moved from oversold to neutral territory"),
]


async def seed(user_id: str | None = None) -> dict:
    await init_db()

    stats = {"stocks": 0, "alerts": 0}
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Stock))
        by_ticker = {s.ticker: s for s in result.scalars().all()}

        for (ticker, company, sector, price, prev, volume, cap, pe, pb, roe, dy, score, tier) in GSE_STOCKS:
            if ticker in by_ticker:
                continue
            stock = Stock(
                ticker=ticker, company_name=company, sector=sector,
                current_price=price, previous_close=prev, volume=volume, market_cap=cap,
                pe_ratio=pe, pb_ratio=pb, roe=roe, dividend_yield=dy, score=score, tier=tier,
            )
            db.add(stock)
            by_ticker[ticker] = stock
            stats["stocks"] += 1

        await db.flush()

        if user_id:
            for ticker, trigger, rationale in SAMPLE_ALERTS:
                stock = by_ticker[ticker]
                db.add(Alert(
                    stock_id=stock.id,
                    user_id=user_id,
                    trigger_type=trigger.value,
                    tier=stock.tier,
                    price=stock.current_price,
                    rationale=rationale,
                ))
                stats["alerts"] += 1

        await db.commit()

    logger.info(f"Seeded {stats['stocks']} stocks and {stats['alerts']} alerts")
    return stats


async def main():
    setup_logging()
    user_id = sys.argv[1] if len(sys.argv) > 1 else None
    await seed(user_id)


if __name__ == '__main__':
    asyncio.run(main())
