# valuetrack/middleware/__init__.py
"""
ASGI middleware:
- Correlation ID tracking for request tracing
- slowapi rate limiting

Usage:
    from valuetrack.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from valuetrack.middleware.correlation import CorrelationIdMiddleware
from valuetrack.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
    RATE_LIMIT_RECALCULATE,
    RATE_LIMIT_HEALTH,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_RECALCULATE",
    "RATE_LIMIT_HEALTH",
]
