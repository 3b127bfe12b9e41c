"""
Integration tests for the service layer against SQLite.

Tests verify that:
1. Stock queries filter inactive listings and window price history
2. Trades fold into positions, concurrent trades all land and invalid trades write nothing
3. Watchlist adds are idempotent
4. Alerts stay scoped to their owner and only flags change
5. Backtests validate before writing and complete through the lifecycle
"""

import asyncio
import random
from datetime import date
from unittest.mock import AsyncMock, Mock

import pytest

from gse_monitor.analytics.backtesting import BacktestParameters
from gse_monitor.analytics.errors import (
    InsufficientSharesError,
    InvalidQuoteError,
    NoStocksSelectedError,
)
from gse_monitor.analytics.trades import TradeType
from gse_monitor.models.backtest import Backtest
from gse_monitor.services.alert_service import AlertService
from gse_monitor.services.backtest_runner import BacktestRunner
from gse_monitor.services.backtest_service import BacktestService
from gse_monitor.models.stock import Stock
from gse_monitor.services.errors import ConflictError, NotFoundError
from gse_monitor.services.portfolio_service import PortfolioService
from gse_monitor.services.profile_service import ProfileService
from gse_monitor.services.stock_service import StockService
from gse_monitor.services.watchlist_service import WatchlistService

from tests.conftest import NOW, OTHER_USER_ID, USER_ID


def make_params(**overrides):
    values = dict(
        name="Banks 2024",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        initial_capital=100000,
        stocks=["EGL", "GCB"],
    )
    values.update(overrides)
    return BacktestParameters(**values)


class TestStockService:

    @pytest.mark.asyncio
    async def test_active_stocks_by_score(self, db):
        stocks = await StockService().list_stocks(db)

        assert [s.ticker for s in stocks] == ["SCB", "EGL", "GCB", "GOIL", "TLW"]

    @pytest.mark.asyncio
    async def test_include_inactive(self, db):
        stocks = await StockService().list_stocks(db, active_only=False)

        assert "DELIST" in {s.ticker for s in stocks}

    @pytest.mark.asyncio
    async def test_get_by_ticker_is_case_insensitive(self, db):
        stock = await StockService().get_by_ticker("egl", db)

        assert stock.company_name == "Ecobank Ghana Limited"

    @pytest.mark.asyncio
    async def test_unknown_ticker(self, db):
        with pytest.raises(NotFoundError):
            await StockService().get_by_ticker("NOPE", db)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "time_range,expected", [("1D", 1), ("1W", 2), ("1M", 3), ("3M", 4), ("1Y", 5)]
    )
    async def test_price_windows(self, db, ids, time_range, expected):
        prices = await StockService().get_price_history(
            ids["stocks"]["EGL"], db, time_range, now=NOW
        )

        assert len(prices) == expected
        timestamps = [p.timestamp for p in prices]
        assert timestamps == sorted(timestamps)


class TestPortfolioService:

    @pytest.mark.asyncio
    async def test_empty_portfolio(self, db):
        valuation = await PortfolioService().get_summary(USER_ID, db)

        assert valuation["positions"] == []
        assert valuation["summary"].positions == 0
        assert valuation["summary"].total_gain_loss_percent == 0

    @pytest.mark.asyncio
    async def test_upsert_is_keyed_by_user_and_stock(self, db, ids):
        service = PortfolioService()
        egl = ids["stocks"]["EGL"]

        first = await service.upsert_position(USER_ID, egl, 100, 5.0, db)
        second = await service.upsert_position(USER_ID, egl, 200, 4.5, db)

        assert first.id == second.id
        positions = await service.get_positions(USER_ID, db)
        assert len(positions) == 1
        assert positions[0].shares == 200
        assert positions[0].avg_cost == 4.5

    @pytest.mark.asyncio
    async def test_summary_values_positions(self, db, ids):
        service = PortfolioService()
        await service.upsert_position(USER_ID, ids["stocks"]["EGL"], 100, 5.0, db)
        await service.upsert_position(USER_ID, ids["stocks"]["TLW"], 10, 12.50, db)

        valuation = await service.get_summary(USER_ID, db)
        summary = valuation["summary"]

        # EGL 525 vs 500; TLW 125 vs 125
        assert summary.total_value == pytest.approx(650.0)
        assert summary.total_cost == pytest.approx(625.0)
        assert summary.total_gain_loss_percent == pytest.approx(4.0)
        assert (summary.winners, summary.losers, summary.ties) == (1, 0, 1)

    @pytest.mark.asyncio
    async def test_unknown_stock(self, db):
        with pytest.raises(NotFoundError):
            await PortfolioService().upsert_position(USER_ID, "missing", 1, 1.0, db)

    @pytest.mark.asyncio
    async def test_remove_is_scoped_to_owner(self, db, ids):
        service = PortfolioService()
        position = await service.upsert_position(USER_ID, ids["stocks"]["EGL"], 1, 5.0, db)

        with pytest.raises(NotFoundError):
            await service.remove_position(OTHER_USER_ID, position.id, db)

        await service.remove_position(USER_ID, position.id, db)
        assert await service.get_positions(USER_ID, db) == []

    @pytest.mark.asyncio
    async def test_trades_fold_into_position(self, db, ids):
        service = PortfolioService()
        goil = ids["stocks"]["GOIL"]

        _, position = await service.record_trade(
            USER_ID, goil, TradeType.BUY, 100, 5.0, db, fees=10.0
        )
        assert position.avg_cost == pytest.approx(5.1)

        _, position = await service.record_trade(USER_ID, goil, TradeType.BUY, 100, 6.0, db)
        assert position.shares == 200
        assert position.avg_cost == pytest.approx(5.55)

        _, position = await service.record_trade(USER_ID, goil, TradeType.SELL, 50, 7.0, db)
        assert position.shares == 150
        assert position.avg_cost == pytest.approx(5.55)

        trade, position = await service.record_trade(USER_ID, goil, TradeType.SELL, 150, 7.0, db)
        assert position is None
        assert trade.trade_type == TradeType.SELL
        assert await service.get_positions(USER_ID, db) == []
        assert len(await service.recent_trades(USER_ID, db)) == 4

    @pytest.mark.asyncio
    async def test_oversell_writes_nothing(self, db, ids):
        service = PortfolioService()
        goil = ids["stocks"]["GOIL"]
        await service.record_trade(USER_ID, goil, TradeType.BUY, 10, 2.0, db)

        with pytest.raises(InsufficientSharesError):
            await service.record_trade(USER_ID, goil, TradeType.SELL, 11, 2.5, db)

        positions = await service.get_positions(USER_ID, db)
        assert positions[0].shares == 10
        assert len(await service.recent_trades(USER_ID, db)) == 1

    @pytest.mark.asyncio
    async def test_bad_price_writes_nothing(self, db, ids):
        service = PortfolioService()

        with pytest.raises(InvalidQuoteError):
            await service.record_trade(USER_ID, ids["stocks"]["GOIL"], TradeType.BUY, 10, 0.0, db)

        assert await service.recent_trades(USER_ID, db) == []

    @pytest.mark.asyncio
    async def test_recent_trades_limit(self, db, ids):
        service = PortfolioService()
        for _ in range(3):
            await service.record_trade(USER_ID, ids["stocks"]["EGL"], TradeType.BUY, 1, 5.0, db)

        assert len(await service.recent_trades(USER_ID, db, limit=2)) == 2
        assert await service.recent_trades(OTHER_USER_ID, db) == []

    @pytest.mark.asyncio
    async def test_concurrent_buys_all_land(self, db, session_factory, ids):
        goil = ids["stocks"]["GOIL"]
        await PortfolioService().record_trade(USER_ID, goil, TradeType.BUY, 10, 5.0, db)

        async def buy():
            async with session_factory() as session:
                await PortfolioService().record_trade(USER_ID, goil, TradeType.BUY, 10, 5.0, session)

        await asyncio.gather(buy(), buy())

        async with session_factory() as fresh:
            positions = await PortfolioService().get_positions(USER_ID, fresh)
            trades = await PortfolioService().recent_trades(USER_ID, fresh)
        assert len(trades) == 3
        assert len(positions) == 1
        assert positions[0].shares == 30
        assert positions[0].avg_cost == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_concurrent_first_buys_share_one_position(self, session_factory, ids):
        egl = ids["stocks"]["EGL"]

        async def buy(price):
            async with session_factory() as session:
                await PortfolioService().record_trade(USER_ID, egl, TradeType.BUY, 10, price, session)

        await asyncio.gather(buy(4.0), buy(6.0))

        async with session_factory() as fresh:
            positions = await PortfolioService().get_positions(USER_ID, fresh)
        assert len(positions) == 1
        assert positions[0].shares == 20
        assert positions[0].avg_cost == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_losing_every_retry_raises_conflict(self, db, ids, monkeypatch):
        monkeypatch.setattr(
            PortfolioService, "_commit_position_write", AsyncMock(return_value=False)
        )

        with pytest.raises(ConflictError):
            await PortfolioService().record_trade(
                USER_ID, ids["stocks"]["GOIL"], TradeType.BUY, 10, 5.0, db
            )

    @pytest.mark.asyncio
    async def test_sell_leaving_sub_unit_remainder_closes(self, db, ids):
        service = PortfolioService()
        goil = ids["stocks"]["GOIL"]
        await service.record_trade(USER_ID, goil, TradeType.BUY, 1, 2.0, db)

        _, position = await service.record_trade(USER_ID, goil, TradeType.SELL, 0.99999, 2.5, db)

        assert position is None
        assert await service.get_positions(USER_ID, db) == []

    @pytest.mark.asyncio
    async def test_unquoted_position_left_out_of_summary(self, db, ids):
        service = PortfolioService()
        goil = await db.get(Stock, ids["stocks"]["GOIL"])
        goil.current_price = None
        await db.commit()

        await service.upsert_position(USER_ID, ids["stocks"]["EGL"], 100, 5.0, db)
        await service.upsert_position(USER_ID, goil.id, 10, 2.0, db)

        valuation = await service.get_summary(USER_ID, db)

        metrics = {p.stock.ticker: m for p, m in valuation["positions"]}
        assert metrics["GOIL"] is None
        assert metrics["EGL"].market_value == pytest.approx(525.0)
        assert valuation["unpriced"] == ["GOIL"]
        assert valuation["summary"].positions == 1
        assert valuation["summary"].total_value == pytest.approx(525.0)


class TestWatchlistService:

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, db, ids):
        service = WatchlistService()
        scb = ids["stocks"]["SCB"]

        assert await service.add(USER_ID, scb, db) is True
        assert await service.add(USER_ID, scb, db) is False
        assert [s.ticker for s in await service.list_stocks(USER_ID, db)] == ["SCB"]
        assert await service.list_stocks(OTHER_USER_ID, db) == []

    @pytest.mark.asyncio
    async def test_remove(self, db, ids):
        service = WatchlistService()
        scb = ids["stocks"]["SCB"]
        await service.add(USER_ID, scb, db)

        await service.remove(USER_ID, scb, db)

        assert await service.list_stocks(USER_ID, db) == []
        with pytest.raises(NotFoundError):
            await service.remove(USER_ID, scb, db)

    @pytest.mark.asyncio
    async def test_unknown_stock(self, db):
        with pytest.raises(NotFoundError):
            await WatchlistService().add(USER_ID, "missing", db)

    @pytest.mark.asyncio
    async def test_overview_includes_portfolio(self, db, ids):
        service = WatchlistService()
        await service.add(USER_ID, ids["stocks"]["GCB"], db)
        await PortfolioService().upsert_position(USER_ID, ids["stocks"]["EGL"], 100, 5.0, db)

        overview = await service.overview(USER_ID, db)

        assert [s.ticker for s in overview["stocks"]] == ["GCB"]
        assert len(overview["positions"]) == 1
        assert overview["summary"].total_value == pytest.approx(525.0)


class TestAlertService:

    @pytest.mark.asyncio
    async def test_only_own_alerts_newest_first(self, db, ids):
        alerts = await AlertService().list_alerts(USER_ID, db)

        assert [a.id for a in alerts] == [
            ids["alerts"]["goil_spike"],
            ids["alerts"]["egl_breakout"],
            ids["alerts"]["tlw_rsi"],
        ]

    @pytest.mark.asyncio
    async def test_alerts_for_one_stock(self, db, ids):
        alerts = await AlertService().list_alerts(USER_ID, db, stock_id=ids["stocks"]["EGL"])

        assert [a.id for a in alerts] == [ids["alerts"]["egl_breakout"]]

    @pytest.mark.asyncio
    async def test_mark_read_and_dismiss(self, db, session_factory, ids):
        service = AlertService()
        alert_id = ids["alerts"]["goil_spike"]

        await service.mark_read(USER_ID, alert_id, db)
        await service.dismiss(USER_ID, alert_id, db)

        async with session_factory() as fresh:
            alerts = await service.list_alerts(USER_ID, fresh)
        stored = next(a for a in alerts if a.id == alert_id)
        assert stored.is_read is True
        assert stored.is_dismissed is True
        assert len(alerts) == 3

    @pytest.mark.asyncio
    async def test_other_users_alert_not_found(self, db, ids):
        with pytest.raises(NotFoundError):
            await AlertService().mark_read(USER_ID, ids["alerts"]["other_user"], db)


class TestBacktestService:

    @pytest.mark.asyncio
    async def test_start_inserts_running_and_schedules(self, db):
        runner = Mock()
        backtest = await BacktestService(runner=runner).start(USER_ID, make_params(), db)

        assert backtest.status == "running"
        assert backtest.results is None
        assert backtest.parameters["initialCapital"] == 100000
        runner.schedule.assert_called_once_with(backtest.id)

    @pytest.mark.asyncio
    async def test_invalid_parameters_write_nothing(self, db):
        runner = Mock()
        service = BacktestService(runner=runner)

        with pytest.raises(NoStocksSelectedError):
            await service.start(USER_ID, make_params(stocks=[]), db)

        assert await service.list_backtests(USER_ID, db) == []
        runner.schedule.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete(self, db, session_factory):
        service = BacktestService()
        backtest = await service.start(USER_ID, make_params(), db)

        async with session_factory() as job_session:
            await service.complete(backtest.id, job_session, rng=random.Random(42))

        async with session_factory() as fresh:
            stored = await service.get(USER_ID, backtest.id, fresh)
        assert stored.status == "completed"
        assert stored.completed_at is not None
        assert len(stored.results["performanceData"]) == 53
        assert stored.results["performanceData"][0]["portfolioValue"] == 100000
        assert "sharpeRatio" in stored.results["metrics"]

    @pytest.mark.asyncio
    async def test_terminal_backtest_is_left_alone(self, db):
        service = BacktestService()
        backtest = await service.start(USER_ID, make_params(), db)
        await service.complete(backtest.id, db, rng=random.Random(1))
        results = backtest.results

        again = await service.complete(backtest.id, db, rng=random.Random(2))

        assert again.status == "completed"
        assert again.results == results

    @pytest.mark.asyncio
    async def test_stored_parameters_that_fail_validation(self, db):
        backtest = Backtest(
            user_id=USER_ID,
            name="Broken",
            parameters=make_params(initial_capital=0).to_storage(),
            status="running",
        )
        db.add(backtest)
        await db.commit()

        completed = await BacktestService().complete(backtest.id, db)

        assert completed.status == "failed"
        assert completed.results["errorCode"] == "invalid_capital"
        assert completed.completed_at is not None

    @pytest.mark.asyncio
    async def test_unparseable_parameters_fail(self, db):
        backtest = Backtest(user_id=USER_ID, name="Garbage", parameters={"foo": 1}, status="pending")
        db.add(backtest)
        await db.commit()

        completed = await BacktestService().complete(backtest.id, db)

        assert completed.status == "failed"
        assert completed.results["errorCode"] == "invalid_parameters"

    @pytest.mark.asyncio
    async def test_scoped_get_and_delete(self, db):
        service = BacktestService()
        backtest = await service.start(USER_ID, make_params(), db)

        with pytest.raises(NotFoundError):
            await service.get(OTHER_USER_ID, backtest.id, db)
        with pytest.raises(NotFoundError):
            await service.delete(OTHER_USER_ID, backtest.id, db)

        await service.delete(USER_ID, backtest.id, db)
        assert await service.list_backtests(USER_ID, db) == []


class TestBacktestRunner:

    def test_schedule_one_job_per_backtest(self):
        scheduler = Mock()
        runner = BacktestRunner(delay_seconds=3, scheduler=scheduler)

        job_id = runner.schedule("abc")

        assert job_id == "backtest:abc"
        kwargs = scheduler.add_job.call_args.kwargs
        assert kwargs["id"] == "backtest:abc"
        assert kwargs["args"] == ["abc"]
        assert kwargs["replace_existing"] is True

    @pytest.mark.asyncio
    async def test_run_job_completes_in_own_session(self, db, session_factory):
        backtest = await BacktestService().start(USER_ID, make_params(), db)
        runner = BacktestRunner(session_factory=session_factory, delay_seconds=0, scheduler=Mock())

        await runner.run_job(backtest.id)

        async with session_factory() as fresh:
            stored = await BacktestService().get(USER_ID, backtest.id, fresh)
        assert stored.status == "completed"

    @pytest.mark.asyncio
    async def test_run_job_logs_missing_backtest(self, session_factory, caplog):
        runner = BacktestRunner(session_factory=session_factory, scheduler=Mock())

        await runner.run_job("missing")

        assert "Backtest job missing failed" in caplog.text

    @pytest.mark.asyncio
    async def test_resume_reschedules_unfinished(self, db, session_factory):
        service = BacktestService()
        running = await service.start(USER_ID, make_params(), db)
        done = await service.start(USER_ID, make_params(name="Done"), db)
        await service.complete(done.id, db, rng=random.Random(1))
        scheduler = Mock()
        runner = BacktestRunner(session_factory=session_factory, scheduler=scheduler)

        resumed = await runner.resume()

        assert resumed == [running.id]
        scheduler.add_job.assert_called_once()
        assert scheduler.add_job.call_args.kwargs["args"] == [running.id]


class TestProfileService:

    @pytest.mark.asyncio
    async def test_created_on_first_read(self, db):
        service = ProfileService()

        profile = await service.get_or_create(USER_ID, db)
        again = await service.get_or_create(USER_ID, db)

        assert profile.id == again.id
        assert profile.full_name == "User"
        assert profile.email_alerts is True
        assert profile.data_refresh_interval == "5m"

    @pytest.mark.asyncio
    async def test_update(self, db):
        profile = await ProfileService().update(
            USER_ID, db, location="Accra", data_refresh_interval="15m", sms_alerts=True
        )

        assert profile.location == "Accra"
        assert profile.data_refresh_interval == "15m"
        assert profile.sms_alerts is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("changes", [{"data_refresh_interval": "2h"}, {"id": "someone"}])
    async def test_rejected_updates(self, db, changes):
        with pytest.raises(ValueError):
            await ProfileService().update(USER_ID, db, **changes)
