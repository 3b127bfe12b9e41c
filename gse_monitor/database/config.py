"""
Database configuration.

Async SQLAlchemy engine, session factory, declarative Base and the
FastAPI `get_db` dependency.
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from gse_monitor.config.settings import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    future=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create all tables (development / tests). Production uses alembic."""
    # Register models on Base.metadata
    import gse_monitor.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
