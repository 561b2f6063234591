# valuetrack/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

For each request the middleware takes the caller's X-Correlation-ID (or
X-Request-ID) header when it is a sane token, otherwise generates a UUID,
stores it in context for logging, and echoes it in the response headers.

Background recalculation jobs queued during the request inherit the ID, so
their log lines can be traced back to the request that caused them.

Client Usage:
    curl -H "X-Correlation-ID: my-trace-123" http://localhost:8000/health
    # response header → X-Correlation-ID: my-trace-123
"""

import logging
import re
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from valuetrack.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Header values end up in log lines; accept only short plain tokens
_VALID_ID = re.compile(r"[A-Za-z0-9._:\-]{1,128}")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assigns every request a correlation ID and echoes it back."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = resolve_correlation_id(
            request.headers.get(CORRELATION_ID_HEADER),
            request.headers.get(REQUEST_ID_HEADER),
        )
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()


def resolve_correlation_id(*candidates: str | None) -> str:
    """
    First acceptable header value, or a fresh UUID.

    Example:
        >>> resolve_correlation_id(None, "req-42")
        'req-42'
    """
    for candidate in candidates:
        if candidate and _VALID_ID.fullmatch(candidate):
            return candidate
        if candidate:
            logger.debug("Ignoring malformed correlation id header")
    return str(uuid.uuid4())
