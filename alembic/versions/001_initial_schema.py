"""Initial GSE monitor schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

Creates:
1. stocks and stock_prices (market data, written by the data pipeline)
2. alerts (per-user, flags only)
3. portfolios, trades and watchlists (per-user holdings)
4. backtests (JSON parameters/results, status lifecycle)
5. profiles (notification preferences)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

money = sa.Numeric(10, 2)
ratio = sa.Numeric(8, 2)
quantity = sa.Numeric(14, 4)


def _timestamps(updated: bool = False) -> list:
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )
    return columns


def upgrade() -> None:
    op.create_table(
        'stocks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('ticker', sa.String(10), nullable=False, unique=True),
        sa.Column('company_name', sa.String(200), nullable=False),
        sa.Column('sector', sa.String(100)),
        sa.Column('current_price', money),
        sa.Column('previous_close', money),
        sa.Column('volume', sa.BigInteger, server_default='0'),
        sa.Column('market_cap', sa.BigInteger),
        sa.Column('pe_ratio', ratio),
        sa.Column('pb_ratio', ratio),
        sa.Column('roe', ratio),
        sa.Column('dividend_yield', ratio),
        sa.Column('score', sa.Integer, server_default='0', nullable=False),
        sa.Column('tier', sa.String(1), server_default='C', nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true(), nullable=False),
        *_timestamps(updated=True),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_stocks_score_range'),
        sa.CheckConstraint("tier IN ('A', 'B', 'C')", name='ck_stocks_tier'),
    )
    op.create_index('ix_stocks_ticker', 'stocks', ['ticker'], unique=True)
    op.create_index('idx_stocks_active_score', 'stocks', ['is_active', 'score'])

    op.create_table(
        'stock_prices',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('stock_id', sa.String(36), sa.ForeignKey('stocks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('price', money, nullable=False),
        sa.Column('volume', sa.BigInteger, server_default='0'),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_stock_prices_stock_timestamp', 'stock_prices', ['stock_id', 'timestamp'])

    op.create_table(
        'alerts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('stock_id', sa.String(36), sa.ForeignKey('stocks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36)),
        sa.Column('trigger_type', sa.String(30), nullable=False),
        sa.Column('tier', sa.String(1), nullable=False),
        sa.Column('price', money),
        sa.Column('rationale', sa.Text),
        sa.Column('is_read', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('is_dismissed', sa.Boolean, server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "trigger_type IN ('Volume Spike', 'Price Breakout', 'RSI Reversal', "
            "'MA Cross', 'Earnings Beat', 'Support/Resistance')",
            name='ck_alerts_trigger_type',
        ),
        sa.CheckConstraint("tier IN ('A', 'B', 'C')", name='ck_alerts_tier'),
    )
    op.create_index('ix_alerts_user_id', 'alerts', ['user_id'])
    op.create_index('idx_alerts_user_created', 'alerts', ['user_id', 'created_at'])

    op.create_table(
        'portfolios',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('stock_id', sa.String(36), sa.ForeignKey('stocks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('shares', quantity, nullable=False),
        sa.Column('avg_cost', quantity, nullable=False),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        *_timestamps(updated=True),
        sa.UniqueConstraint('user_id', 'stock_id', name='uq_portfolios_user_stock'),
        sa.CheckConstraint('shares > 0', name='ck_portfolios_shares_positive'),
        sa.CheckConstraint('avg_cost > 0', name='ck_portfolios_avg_cost_positive'),
    )
    op.create_index('ix_portfolios_user_id', 'portfolios', ['user_id'])

    op.create_table(
        'trades',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('stock_id', sa.String(36), sa.ForeignKey('stocks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('trade_type', sa.Enum('BUY', 'SELL', name='trade_type'), nullable=False),
        sa.Column('shares', quantity, nullable=False),
        sa.Column('price', money, nullable=False),
        sa.Column('fees', money, server_default='0', nullable=False),
        sa.Column('executed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_trades_user_id', 'trades', ['user_id'])
    op.create_index('idx_trades_user_executed', 'trades', ['user_id', 'executed_at'])

    op.create_table(
        'watchlists',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('stock_id', sa.String(36), sa.ForeignKey('stocks.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'stock_id', name='uq_watchlists_user_stock'),
    )
    op.create_index('ix_watchlists_user_id', 'watchlists', ['user_id'])

    op.create_table(
        'backtests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('parameters', sa.JSON, nullable=False),
        sa.Column('results', sa.JSON),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        *_timestamps(),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')", name='ck_backtests_status'
        ),
    )
    op.create_index('ix_backtests_user_id', 'backtests', ['user_id'])
    op.create_index('idx_backtests_user_created', 'backtests', ['user_id', 'created_at'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, unique=True),
        sa.Column('full_name', sa.String(200)),
        sa.Column('phone', sa.String(50)),
        sa.Column('location', sa.String(200)),
        sa.Column('email_alerts', sa.Boolean, server_default=sa.true(), nullable=False),
        sa.Column('sms_alerts', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('telegram_alerts', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('telegram_chat_id', sa.String(100)),
        sa.Column('data_refresh_interval', sa.String(3), server_default='5m', nullable=False),
        *_timestamps(updated=True),
        sa.CheckConstraint(
            "data_refresh_interval IN ('1m', '5m', '15m', '30m', '1h')",
            name='ck_profiles_refresh_interval',
        ),
    )


def downgrade() -> None:
    """Drop every table, children before parents."""
    for table in ('profiles', 'backtests', 'watchlists', 'trades', 'portfolios', 'alerts', 'stock_prices'):
        op.drop_table(table)
    sa.Enum(name='trade_type').drop(op.get_bind(), checkfirst=True)
    op.drop_table('stocks')
