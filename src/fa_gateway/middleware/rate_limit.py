"""Fixed-window rate limiting for bid endpoints.

Redis INCR + EXPIRE per client IP per 60 s window:
    key   = "ratelimit:{ip}:bids"
    count = INCR key; EXPIRE key 60 on first hit
    count > BID_RATE_LIMIT_PER_MINUTE -> 429 (code 9001) with Retry-After

Client IP is taken from X-Forwarded-For (first hop) when present.
"""

import logging
import re

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.fa_common.errors import RateLimitError
from src.fa_common.redis_client import get_redis
from src.fa_common.response import error_response

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60

_BID_PATH = re.compile(r"^/api/v1/(admin/)?auction/lots/[^/]+/bids$")


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limit: int | None = None) -> None:
        super().__init__(app)
        self._limit = limit or settings.BID_RATE_LIMIT_PER_MINUTE

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "POST" or not _BID_PATH.match(request.url.path):
            return await call_next(request)

        key = f"ratelimit:{client_ip(request)}:bids"
        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, WINDOW_SECONDS)

        if count > self._limit:
            ttl = await redis.ttl(key)
            retry_after = ttl if ttl and ttl > 0 else WINDOW_SECONDS
            logger.warning("rate limit hit: key=%s count=%d", key, count)
            exc = RateLimitError(retry_after)
            resp = error_response(exc.code, exc.message, exc.detail)
            resp.request_id = getattr(request.state, "request_id", resp.request_id)
            return JSONResponse(
                status_code=exc.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
