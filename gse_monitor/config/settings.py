"""
Application settings.

Values come from environment variables (or a local .env file).
Import the shared instance:

    from gse_monitor.config.settings import settings
"""

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the GSE Monitor API and background jobs."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "GSE Monitor API"
    environment: Literal["development", "test", "production"] = "development"

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./gse_monitor.db",
        description="SQLAlchemy async database URL",
    )
    sql_echo: bool = False

    # API
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:8080"]

    # Logging
    log_level: str = "INFO"

    # Display
    currency: str = "GHS"

    # Backtesting
    backtest_completion_delay_seconds: float = Field(default=3.0, ge=0)
    backtest_risk_free_rate: float = 0.0  # Annual, e.g. 0.02 for 2%

    # Listing limits
    recent_trades_limit: int = Field(default=10, gt=0)
    recent_alerts_limit: int = Field(default=10, gt=0)

    # Position writes retried after losing a concurrent update
    position_write_attempts: int = Field(default=5, gt=0)


settings = Settings()
