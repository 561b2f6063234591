# valuetrack/utils/context.py
"""
Correlation ID storage for request and job tracing.

The correlation ID lives in a ContextVar, so it follows async/await calls
within a request. Work handed to the recalculation worker thread does not
inherit the context automatically; the job captures the ID when it is queued
and the worker re-enters it with `correlation_scope`.

Usage:
    from valuetrack.utils.context import get_correlation_id, correlation_scope

    job_correlation_id = get_correlation_id()
    ...
    with correlation_scope(job_correlation_id):
        run_job()
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the current correlation ID, or None outside a request/job."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current context.

    Called by CorrelationIdMiddleware at the start of each request.
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID at the end of a request."""
    _correlation_id_var.set(None)


@contextmanager
def correlation_scope(correlation_id: str | None) -> Iterator[None]:
    """
    Run a block under the given correlation ID, restoring the previous one.

    Args:
        correlation_id: ID to apply; None leaves the block untagged
    """
    token = _correlation_id_var.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id_var.reset(token)
