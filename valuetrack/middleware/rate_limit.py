# valuetrack/middleware/rate_limit.py
"""
Rate limiting with slowapi.

Every route gets RATE_LIMIT_DEFAULT through SlowAPIMiddleware; writes and
full rebuilds are decorated with tighter limits. Limits are keyed by the
client address and kept in memory (single-process deployment).

Set RATE_LIMIT_ENABLED=false to turn limiting off (tests, local scripts).

Usage:
    from valuetrack.middleware.rate_limit import limiter, RATE_LIMIT_WRITE

    @router.post("/accounts")
    @limiter.limit(RATE_LIMIT_WRITE)
    def create_account(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from valuetrack.config import settings
from valuetrack.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_RECALCULATE,
    RATE_LIMIT_WRITE,
)
from valuetrack.utils.context import get_correlation_id

logger = logging.getLogger(__name__)

# Retry hint when the exceeded window cannot be read from the limit
DEFAULT_RETRY_AFTER_SECONDS = 60


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 response in the same shape as every other API error."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"
    retry_after = DEFAULT_RETRY_AFTER_SECONDS
    limit = getattr(exc, "limit", None)
    if limit is not None:
        retry_after = int(limit.limit.get_expiry())

    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": retry_after},
            "correlation_id": get_correlation_id(),
        },
        headers={"Retry-After": str(retry_after)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_RECALCULATE",
    "RATE_LIMIT_HEALTH",
]
