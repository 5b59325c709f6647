"""Tests for correlation ID middleware."""

import pytest

from starlette.testclient import TestClient
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from middleware.correlation import (
    CorrelationIdMiddleware,
    get_correlation_id,
    set_correlation_id,
    correlation_id_context,
    CORRELATION_ID_HEADER,
    REQUEST_ID_HEADER,
)
from services.logging_config import request_id_var


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_set_and_get(self):
        """Set and get correlation ID."""
        token = set_correlation_id("test-correlation-123")
        try:
            assert get_correlation_id() == "test-correlation-123"
        finally:
            request_id_var.reset(token)

    def test_shared_with_logging_context(self):
        """The logging request id is the correlation id."""
        token = set_correlation_id("shared-id")
        try:
            assert request_id_var.get() == "shared-id"
        finally:
            request_id_var.reset(token)


class TestCorrelationIdContextManager:
    """Tests for correlation_id_context context manager."""

    def test_generates_id_when_not_provided(self):
        """Context manager generates UUID when no ID provided."""
        with correlation_id_context() as cid:
            assert len(cid) == 36  # UUID format
            assert get_correlation_id() == cid

    def test_uses_provided_id(self):
        with correlation_id_context("batch-reprice") as cid:
            assert cid == "batch-reprice"
            assert get_correlation_id() == "batch-reprice"

    def test_restores_previous_value(self):
        token = set_correlation_id("outer")
        try:
            with correlation_id_context("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"
        finally:
            request_id_var.reset(token)


@pytest.fixture
def app_client():
    """Bare Starlette app that reports the correlation id it saw."""

    async def endpoint(request):
        return JSONResponse({
            "context_id": get_correlation_id(),
            "state_id": request.state.correlation_id,
        })

    app = Starlette(routes=[Route("/", endpoint)])
    app.add_middleware(CorrelationIdMiddleware, generator=lambda: "generated-id")
    return TestClient(app)


class TestCorrelationIdMiddleware:
    """Tests for CorrelationIdMiddleware."""

    def test_generates_id(self, app_client):
        response = app_client.get("/")
        assert response.json() == {"context_id": "generated-id", "state_id": "generated-id"}
        assert response.headers[CORRELATION_ID_HEADER] == "generated-id"
        assert response.headers[REQUEST_ID_HEADER] == "generated-id"

    def test_uses_correlation_header(self, app_client):
        response = app_client.get("/", headers={CORRELATION_ID_HEADER: "from-client"})
        assert response.json()["context_id"] == "from-client"
        assert response.headers[REQUEST_ID_HEADER] == "from-client"

    def test_falls_back_to_request_id_header(self, app_client):
        response = app_client.get("/", headers={REQUEST_ID_HEADER: "req-7"})
        assert response.json()["state_id"] == "req-7"
        assert response.headers[CORRELATION_ID_HEADER] == "req-7"

    def test_context_cleared_after_request(self, app_client):
        app_client.get("/", headers={CORRELATION_ID_HEADER: "short-lived"})
        assert get_correlation_id() is None
