"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session. The whole directory is skipped
when PostgreSQL or Redis is not reachable.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from config.settings import settings
from src.fa_common.database import engine
from src.fa_common.redis_client import get_redis
from src.main import app

ADMIN_PASSWORD = "AdminPass123"


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def _require_services() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        await (await get_redis()).ping()
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"integration services unavailable: {exc}")


async def _login_client(username: str, password: str) -> AsyncClient:
    transport = ASGITransport(app=app)
    ac = AsyncClient(transport=transport, base_url="http://test")
    # May already exist if running tests multiple times, which is fine
    await ac.post("/api/v1/auth/register", json={"username": username, "password": password})
    login_resp = await ac.post(
        "/api/v1/auth/login", json={"username": username, "password": password}
    )
    token = login_resp.json()["data"]["access_token"]
    ac.headers.update({"Authorization": f"Bearer {token}"})
    return ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client that keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def auth_client() -> AsyncClient:
    """Client for a fresh, non-admin manager."""
    ac = await _login_client(f"mgr_{uuid.uuid4().hex[:8]}", "TestPass123")
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_client() -> AsyncClient:
    """Client logged in as the configured admin username."""
    ac = await _login_client(settings.ADMIN_USERNAME, ADMIN_PASSWORD)
    yield ac
    await ac.aclose()
