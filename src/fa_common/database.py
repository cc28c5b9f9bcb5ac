import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.fa_common.errors import LedgerUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


async def retry_read(
    db: AsyncSession,
    query: Callable[[], Awaitable[T]],
    attempts: int | None = None,
    backoff_s: float = 0.05,
) -> T:
    """Run an idempotent read, retrying when the ledger store drops the connection.

    Only for read-only queries: a mutating transaction must never pass through
    here, a failed write is surfaced to the caller as-is.
    """
    max_attempts = attempts or settings.READ_RETRY_ATTEMPTS
    for attempt in range(1, max_attempts + 1):
        try:
            return await query()
        except (OperationalError, InterfaceError) as exc:
            await db.rollback()
            if attempt == max_attempts:
                raise LedgerUnavailableError() from exc
            logger.warning("read failed (attempt %d/%d): %s", attempt, max_attempts, exc)
            await asyncio.sleep(backoff_s * attempt)
    raise LedgerUnavailableError()
