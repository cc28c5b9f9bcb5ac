"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError

from config.settings import settings
from src.fa_admin.api.router import router as admin_router
from src.fa_auction.api.router import router as auction_router
from src.fa_common.database import engine
from src.fa_common.errors import AppError, LedgerUnavailableError
from src.fa_common.redis_client import close_redis, get_redis
from src.fa_common.response import error_response
from src.fa_gateway.api.router import router as auth_router
from src.fa_gateway.middleware.rate_limit import RateLimitMiddleware
from src.fa_gateway.middleware.request_log import RequestLogMiddleware
from src.fa_league.api.router import router as league_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Starlette runs the last-added middleware first: RequestLog wraps RateLimit
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.detail)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def ledger_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("ledger store unavailable: %s", exc)
    err = LedgerUnavailableError()
    resp = error_response(err.code, err.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


app.include_router(auth_router, prefix="/api/v1")
app.include_router(auction_router, prefix="/api/v1")
app.include_router(league_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
