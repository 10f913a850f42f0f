"""Integration-test fixtures.

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session. Tests are skipped when PostgreSQL is not reachable
or the migrations have not been applied.
"""

import pytest
import pytest_asyncio
from sqlalchemy import text

from src.wg_common.database import engine


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def migrated_db() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM bets LIMIT 1"))
    except Exception as e:  # noqa: BLE001
        pytest.skip(f"PostgreSQL with migrations not available: {type(e).__name__}")
