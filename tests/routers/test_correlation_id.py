# tests/routers/test_correlation_id.py
"""
Tests for correlation ID middleware and context management.
"""

import uuid

from fastapi.testclient import TestClient

from valuetrack.middleware.correlation import resolve_correlation_id
from valuetrack.utils.context import (
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_scope_restores_previous_id(self):
        set_correlation_id("outer")

        with correlation_scope("job-1"):
            assert get_correlation_id() == "job-1"

        assert get_correlation_id() == "outer"
        clear_correlation_id()

    def test_scope_restores_after_exception(self):
        clear_correlation_id()
        try:
            with correlation_scope("job-2"):
                raise ValueError("fail")
        except ValueError:
            pass

        assert get_correlation_id() is None


class TestResolveCorrelationId:
    """Tests for header selection."""

    def test_first_valid_candidate_wins(self):
        assert resolve_correlation_id("abc-1", "req-2") == "abc-1"
        assert resolve_correlation_id(None, "req-2") == "req-2"

    def test_malformed_header_is_replaced(self):
        value = resolve_correlation_id("bad id\nwith newline")

        assert uuid.UUID(value)

    def test_overlong_header_is_replaced(self):
        value = resolve_correlation_id("x" * 200)

        assert value != "x" * 200


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    def test_generated_id_is_uuid(self, client: TestClient):
        response = client.get("/health")

        assert uuid.UUID(response.headers["x-correlation-id"])

    def test_request_id_header_is_accepted(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "req-77"})

        assert response.headers["x-correlation-id"] == "req-77"

