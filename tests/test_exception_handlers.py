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

from app.core.errors import (
    AppError,
    ConfigurationError,
    DirectoryAppError,
    InvalidKeyError,
    NotFoundAppError,
    ValidationAppError,
)
from app.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_code_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (ValidationAppError(code="v", message="m"), 400),
        (InvalidKeyError(code="k", message="m"), 400),
        (NotFoundAppError(code="n", message="m"), 404),
        (ConfigurationError(code="c", message="m"), 500),
        (DirectoryAppError(code="d", message="m"), 500),
        (AppError(code="a", message="m"), 400),
    ],
)
def test_status_code_mapping(exc: AppError, expected: int) -> None:
    assert status_code_for(exc) == expected


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="username_invalid",
                message="Username cannot contain '@'",
                details={"field": "username"},
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "username_invalid"
        assert data["error"]["details"] == {"field": "username"}
        assert "request_id" in data["error"]

    def test_not_found_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-not-found")
        async def test_endpoint():
            raise NotFoundAppError(code="user_lookup_failed", message="Invalid user lookup.")

        response = client.get("/test-not-found")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Invalid user lookup."

    def test_configuration_error_hides_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-config")
        async def test_endpoint():
            raise ConfigurationError(
                code="rate_limit_config_invalid",
                message="window_ms must be a positive integer",
                details={"field": "window_ms", "actual_value": 0},
            )

        response = client.get("/test-config")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "rate_limit_config_invalid"
        assert "details" not in error


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def test_endpoint():
            raise RuntimeError("directory connection refused")

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "connection refused" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert "request_id" in data["error"]
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


def test_setup_exception_handlers_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
