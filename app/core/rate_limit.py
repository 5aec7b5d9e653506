"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Explicit ownership: limiters are built once per app by ``create_app`` and
  kept on ``app.state.rate_limiters``, one independent store per policy.
- Minimal coupling: routes depend on ``rate_limit(<policy name>)`` only.
- Safe defaults: a misconfigured policy fails app startup instead of
  silently allowing unlimited traffic.

Rate limiting strategy:
- Sliding window per client address.
- Behind a trusted proxy, the first X-Forwarded-For hop is the client.
"""

from __future__ import annotations

import hashlib
import logging
import math
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from app.adapters.rate_limit import (
    AbstractRateLimiter,
    InMemorySlidingWindowRateLimiter,
    RateLimiterConfig,
    Reject,
    create_limiter,
)
from app.core.config import RateLimitPolicy, settings
from app.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

USERNAME_LOOKUP_POLICY = "username_lookup"

# Used when the server cannot see the peer address (local dev, some test clients)
FALLBACK_CLIENT_KEY = "127.0.0.1"


def build_limiter(
    policy: RateLimitPolicy,
    *,
    clock: Callable[[], int] | None = None,
) -> InMemorySlidingWindowRateLimiter:
    """Build a limiter for one policy.

    Raises:
        ConfigurationError: If the policy values are invalid.
    """

    config = RateLimiterConfig(
        window_ms=policy.window_ms,
        max_requests_per_window=policy.max_requests,
        max_tracked_keys=policy.max_tracked_keys,
        key_ttl_ms=policy.key_ttl_ms,
    )
    return create_limiter(config, clock=clock)


def build_rate_limiters() -> dict[str, AbstractRateLimiter]:
    """Build every configured limiter, keyed by policy name."""

    return {
        USERNAME_LOOKUP_POLICY: build_limiter(settings.username_lookup_rate_limit),
    }


def get_client_key(request: Request) -> str:
    """Derive the caller identity used as the rate limit key.

    Args:
        request: FastAPI request.

    Returns:
        str: Client address, or the loopback fallback when unknown.
    """

    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host
    return FALLBACK_CLIENT_KEY


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _get_limiter(request: Request, name: str) -> AbstractRateLimiter:
    limiters: dict[str, AbstractRateLimiter] = getattr(request.app.state, "rate_limiters", {})
    try:
        return limiters[name]
    except KeyError:
        raise ConfigurationError(
            code="rate_limiter_missing",
            message=f"No rate limiter registered for policy '{name}'",
        ) from None


def rate_limit(name: str) -> Callable[[Request], Awaitable[None]]:
    """Return a FastAPI dependency enforcing the named policy.

    Args:
        name: Policy name registered in ``app.state.rate_limiters``.

    Returns:
        Async dependency raising HTTP 429 when the caller is over the limit.
    """

    async def enforce_rate_limit(request: Request) -> None:
        """Check the caller against the policy.

        Raises:
            HTTPException: 429 Too Many Requests when rate limit is exceeded.
        """

        if not settings.app.rate_limit_enabled:
            return

        limiter = _get_limiter(request, name)
        key = get_client_key(request)
        key_hash = _hash_limiter_key(key)

        decision = limiter.check(key)
        if not isinstance(decision, Reject):
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "policy": name,
                    "key_hash": key_hash,
                    "limit": decision.limit,
                    "remaining": decision.remaining,
                },
            )
            return

        retry_after_s = math.ceil(decision.retry_after_ms / 1000)
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "policy": name,
                "key_hash": key_hash,
                "limit": decision.limit,
                "retry_after_ms": decision.retry_after_ms,
            },
        )

        headers: dict[str, str] = {}
        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after_s)
            headers["X-RateLimit-Limit"] = str(decision.limit)
            headers["X-RateLimit-Remaining"] = "0"

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too Many Requests",
            headers=headers or None,
        )

    return enforce_rate_limit
