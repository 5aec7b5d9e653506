"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable so no .env file is loaded.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LOG_LEVEL", "INFO")

from typing import Callable  # noqa: E402
from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.adapters.directory import InMemoryUsernameDirectory  # noqa: E402
from app.adapters.rate_limit import RateLimiterConfig, create_limiter  # noqa: E402
from app.core.app_factory import create_app  # noqa: E402
from app.core.rate_limit import USERNAME_LOOKUP_POLICY  # noqa: E402


@pytest.fixture
def directory() -> InMemoryUsernameDirectory:
    """Directory with one complete and one incomplete record."""
    return InMemoryUsernameDirectory(
        {
            "alice": {"email": "alice@example.com", "uid": "u-1"},
            "ghost": {"uid": "u-2"},
        }
    )


@pytest.fixture
def clock() -> Mock:
    """Controllable epoch-millisecond clock for limiters built by tests."""
    return Mock(return_value=1_700_000_000_000)


@pytest.fixture
def make_app(directory: InMemoryUsernameDirectory, clock: Mock) -> Callable[..., FastAPI]:
    """Build an app whose lookup limiter uses the test clock."""

    def _make(*, window_ms: int = 60_000, max_requests: int = 2, **kwargs) -> FastAPI:
        limiter = create_limiter(
            RateLimiterConfig(window_ms=window_ms, max_requests_per_window=max_requests, **kwargs),
            clock=clock,
        )
        return create_app(directory=directory, rate_limiters={USERNAME_LOOKUP_POLICY: limiter})

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    return make_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
