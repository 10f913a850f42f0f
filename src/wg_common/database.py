"""Async SQLAlchemy engine and session factory.

The API serves one session per request through ``get_db_session``. The
settlement batch opens one session per market straight from
``async_session_factory``, so concurrent markets never share a connection
or a transaction; the pool has to be at least SETTLEMENT_MAX_CONCURRENCY
wide for them to run in parallel.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the reference ORM models (DDL lives in alembic)."""


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=max(settings.DB_POOL_SIZE, settings.SETTLEMENT_MAX_CONCURRENCY),
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def check_database() -> None:
    """Raise if PostgreSQL is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    async with async_session_factory() as session:
        yield session
