"""
Valuation and backtest error taxonomy.

All errors are raised before any state is mutated and are never retried.
Each class carries a stable `error_code` that the API returns to clients.
"""


class ValuationError(ValueError):
    """Base class for engine validation failures."""

    error_code = "valuation_error"


class InvalidQuoteError(ValuationError):
    """A non-positive price where a positive price is required."""

    error_code = "invalid_quote"


class DivisionByZeroError(ValuationError, ZeroDivisionError):
    """Cost basis of zero where a percentage return is requested."""

    error_code = "division_by_zero"


class InvalidDateRangeError(ValuationError):
    """Backtest end date is not after its start date."""

    error_code = "invalid_date_range"


class InvalidCapitalError(ValuationError):
    """Backtest initial capital is not positive."""

    error_code = "invalid_capital"


class NoStocksSelectedError(ValuationError):
    """Backtest was requested without any stocks."""

    error_code = "no_stocks_selected"


class InsufficientSharesError(ValuationError):
    """A SELL trade exceeds the shares held in the position."""

    error_code = "insufficient_shares"


class InvalidStatusTransitionError(ValuationError):
    """A backtest status change not allowed by the lifecycle."""

    error_code = "invalid_status_transition"
