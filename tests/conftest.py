"""Shared test fixtures."""

import os

# Settings has no JWT_SECRET default; provide one before the app is imported
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
