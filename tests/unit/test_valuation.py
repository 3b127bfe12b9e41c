"""
Unit Tests for Position and Portfolio Valuation

Run with: pytest tests/unit/test_valuation.py -v
"""

import pytest

from gse_monitor.analytics.errors import DivisionByZeroError, InvalidQuoteError, ValuationError
from gse_monitor.analytics.valuation import (
    Holding,
    aggregate_portfolio,
    classify_holding,
    compute_position_metrics,
    price_change_percent,
    value_holdings,
)

TOLERANCE = 1e-9


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def mixed_holdings():
    """One winner, one loser. Value 100, cost 100."""
    return [
        Holding(shares=10, avg_cost=5.0, current_price=6.0, ticker="EGL"),
        Holding(shares=5, avg_cost=10.0, current_price=8.0, ticker="GCB"),
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# Position Metrics
# ═══════════════════════════════════════════════════════════════════════════════


class TestPositionMetrics:

    def test_gain(self):
        metrics = compute_position_metrics(shares=100, avg_cost=10.0, current_price=12.0)

        assert metrics.market_value == pytest.approx(1200.0, abs=TOLERANCE)
        assert metrics.cost_basis == pytest.approx(1000.0, abs=TOLERANCE)
        assert metrics.gain_loss == pytest.approx(200.0, abs=TOLERANCE)
        assert metrics.gain_loss_percent == pytest.approx(20.0, abs=TOLERANCE)

    def test_loss(self):
        metrics = compute_position_metrics(shares=50, avg_cost=4.0, current_price=3.0)

        assert metrics.gain_loss == pytest.approx(-50.0, abs=TOLERANCE)
        assert metrics.gain_loss_percent == pytest.approx(-25.0, abs=TOLERANCE)

    def test_gain_loss_is_value_minus_cost(self):
        metrics = compute_position_metrics(shares=37, avg_cost=5.13, current_price=5.25)

        assert metrics.gain_loss == pytest.approx(
            metrics.market_value - metrics.cost_basis, abs=TOLERANCE
        )

    @pytest.mark.parametrize("price", [0.0, -1.5])
    def test_non_positive_price_rejected(self, price):
        with pytest.raises(InvalidQuoteError) as exc_info:
            compute_position_metrics(shares=10, avg_cost=5.0, current_price=price)

        assert exc_info.value.error_code == "invalid_quote"

    def test_zero_cost_basis_rejected(self):
        with pytest.raises(DivisionByZeroError):
            compute_position_metrics(shares=10, avg_cost=0.0, current_price=5.0)

    def test_division_error_is_both_kinds(self):
        """Callers catching ZeroDivisionError or ValuationError both see it."""
        with pytest.raises(ZeroDivisionError):
            compute_position_metrics(shares=10, avg_cost=0.0, current_price=5.0)
        with pytest.raises(ValuationError):
            compute_position_metrics(shares=10, avg_cost=0.0, current_price=5.0)

    def test_to_dict(self):
        metrics = compute_position_metrics(shares=2, avg_cost=1.0, current_price=1.5)

        assert metrics.to_dict() == {
            "market_value": 3.0,
            "cost_basis": 2.0,
            "gain_loss": 1.0,
            "gain_loss_percent": 50.0,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Portfolio Aggregation
# ═══════════════════════════════════════════════════════════════════════════════


class TestAggregatePortfolio:

    def test_empty_portfolio(self):
        summary = aggregate_portfolio([])

        assert summary.total_value == 0
        assert summary.total_cost == 0
        assert summary.total_gain_loss == 0
        assert summary.total_gain_loss_percent == 0
        assert (summary.winners, summary.losers, summary.ties) == (0, 0, 0)
        assert summary.positions == 0

    def test_winner_and_loser_cancel_out(self, mixed_holdings):
        summary = aggregate_portfolio(mixed_holdings)

        assert summary.total_value == pytest.approx(100.0, abs=TOLERANCE)
        assert summary.total_cost == pytest.approx(100.0, abs=TOLERANCE)
        assert summary.total_gain_loss == pytest.approx(0.0, abs=TOLERANCE)
        assert summary.total_gain_loss_percent == pytest.approx(0.0, abs=TOLERANCE)
        assert summary.winners == 1
        assert summary.losers == 1
        assert summary.ties == 0
        assert summary.positions == 2

    def test_totals_are_sums_of_positions(self, mixed_holdings):
        holdings = mixed_holdings + [Holding(shares=3, avg_cost=2.0, current_price=2.5)]
        summary = aggregate_portfolio(holdings)
        metrics = value_holdings(holdings)

        assert summary.total_value == pytest.approx(sum(m.market_value for m in metrics))
        assert summary.total_cost == pytest.approx(sum(m.cost_basis for m in metrics))
        assert summary.total_gain_loss_percent == pytest.approx(
            summary.total_gain_loss / summary.total_cost * 100
        )

    def test_one_winner_one_loser_one_tie(self):
        holdings = [
            Holding(shares=10, avg_cost=5.0, current_price=6.0),
            Holding(shares=10, avg_cost=5.0, current_price=4.0),
            Holding(shares=10, avg_cost=5.0, current_price=5.0),
        ]
        summary = aggregate_portfolio(holdings)

        assert (summary.winners, summary.losers, summary.ties) == (1, 1, 1)
        assert summary.positions == 3

    def test_counts_partition_positions(self):
        holdings = [
            Holding(shares=1, avg_cost=5.0, current_price=6.0),
            Holding(shares=1, avg_cost=5.0, current_price=5.0),
            Holding(shares=1, avg_cost=5.0, current_price=5.0),
            Holding(shares=1, avg_cost=5.0, current_price=4.0),
        ]
        summary = aggregate_portfolio(holdings)

        assert summary.winners == 1
        assert summary.ties == 2
        assert summary.losers == 1
        assert summary.winners + summary.losers + summary.ties == summary.positions

    def test_bad_quote_propagates(self, mixed_holdings):
        holdings = mixed_holdings + [Holding(shares=1, avg_cost=5.0, current_price=0.0)]

        with pytest.raises(InvalidQuoteError):
            aggregate_portfolio(holdings)

    def test_same_input_same_output(self, mixed_holdings):
        assert aggregate_portfolio(mixed_holdings) == aggregate_portfolio(mixed_holdings)


def test_classify_holding():
    assert classify_holding(Holding(shares=1, avg_cost=1.0, current_price=1.01)) == 1
    assert classify_holding(Holding(shares=1, avg_cost=1.0, current_price=0.99)) == -1
    assert classify_holding(Holding(shares=1, avg_cost=1.0, current_price=1.0)) == 0


class TestPriceChange:

    def test_daily_change(self):
        assert price_change_percent(5.25, 5.10) == pytest.approx(2.9411764705882, rel=1e-9)

    def test_unchanged(self):
        assert price_change_percent(4.0, 4.0) == 0

    def test_zero_previous_close_rejected(self):
        with pytest.raises(InvalidQuoteError):
            price_change_percent(1.0, 0.0)
