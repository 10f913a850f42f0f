"""Shared test fixtures."""

import os

# Settings are read at import time; JWT_SECRET has no default.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ADMIN_USER_IDS", '["admin-1"]')

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
