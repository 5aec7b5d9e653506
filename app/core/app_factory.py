"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
per-app state) so tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.adapters.directory import AbstractUsernameDirectory, InMemoryUsernameDirectory
from app.adapters.rate_limit import AbstractRateLimiter
from app.api.routes import auth_router, health_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.rate_limit import build_rate_limiters


def create_app(
    *,
    directory: AbstractUsernameDirectory | None = None,
    rate_limiters: dict[str, AbstractRateLimiter] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        directory: Username directory; an empty in-memory one when omitted.
        rate_limiters: Limiters by policy name; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.

    Raises:
        ConfigurationError: If a configured rate limit policy is invalid.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Username Lookup Guard",
        description=(
            "Username to email resolution for username-based sign-in, guarded "
            "by a per-client sliding window rate limiter against enumeration."
        ),
        version="0.1.0",
    )

    # Each app owns its limiters; nothing is shared across instances.
    app.state.rate_limiters = rate_limiters if rate_limiters is not None else build_rate_limiters()
    app.state.username_directory = directory if directory is not None else InMemoryUsernameDirectory()

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(auth_router, prefix="/v1")
    app.include_router(health_router)

    return app
