"""Rate limiting adapters.

This package keeps the HTTP layer decoupled from the limiter itself: routes
depend on the decision types and ``AbstractRateLimiter``, while the in-memory
sliding window implementation owns its bounded store.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Admit,
    Decision,
    RateLimiterConfig,
    Reject,
)
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter, create_limiter

__all__ = [
    "AbstractRateLimiter",
    "Admit",
    "Decision",
    "InMemorySlidingWindowRateLimiter",
    "RateLimiterConfig",
    "Reject",
    "create_limiter",
]
