"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from throttle_service.core.errors import (
    AppError,
    InvalidPolicyError,
    RateLimitExceededAppError,
    UnknownPolicyError,
    ValidationAppError,
)
from throttle_service.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(code="test_validation", message="Test validation error")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "test_validation"
        assert data["error"]["message"] == "Test validation error"
        assert "request_id" in data["error"]

    def test_invalid_policy_returns_400_with_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-policy")
        async def endpoint():
            raise InvalidPolicyError(
                code="invalid_policy",
                message="limit must be a positive integer",
                details={"field": "limit", "actual_value": 0},
            )

        response = client.get("/test-policy")

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "limit", "actual_value": 0}

    def test_unknown_policy_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-unknown")
        async def endpoint():
            raise UnknownPolicyError(code="unknown_policy", message="Unknown rate limit policy: x")

        response = client.get("/test-unknown")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "unknown_policy"

    def test_rate_limit_exceeded_returns_429_with_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-429")
        async def endpoint():
            raise RateLimitExceededAppError(
                code="rate_limit_exceeded",
                message="Rate limit exceeded. Try again later.",
                details={"retry_after": 12},
                headers={"Retry-After": "12"},
            )

        response = client.get("/test-429")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        assert response.json()["error"]["details"]["retry_after"] == 12

    def test_error_response_format_is_consistent(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-format")
        async def endpoint():
            raise ValidationAppError(code="test", message="test")

        data = client.get("/test-format").json()

        assert set(data["error"]) == {"code", "message", "request_id"}


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_hides_internals(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("lock stripe table corrupted")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "stripe" not in data["error"]["message"]
        assert "RuntimeError" not in bytes(response.body).decode()
        assert "request_id" in data["error"]


def test_setup_exception_handlers_is_repeatable():
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
    assert Exception in app.exception_handlers
