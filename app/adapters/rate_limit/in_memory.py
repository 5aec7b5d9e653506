"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers or instances multiplies the
  effective limit.
- Thread-safe: the whole read-prune-compare-append sequence runs under one
  lock, so concurrent calls for a key can never over-admit.
- Memory-bounded: keys live in an LRU cache with idle expiry. Under heavy
  key churn the evicted tail is effectively unlimited rather than growing
  memory without bound.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Admit,
    Decision,
    RateLimiterConfig,
    Reject,
)
from app.core.errors import ConfigurationError, InvalidKeyError
from app.utils.lru_ttl_cache import LRUTTLCache


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


def _require_positive_int(field: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(
            code="rate_limit_config_invalid",
            message=f"{field} must be a positive integer",
            details={"field": field, "actual_value": value},
        )


def validate_config(config: RateLimiterConfig) -> None:
    """Validate limiter parameters.

    Window and limit are checked first so a bad value there always fails
    the same way regardless of the optional parameters.

    Raises:
        ConfigurationError: If any parameter is not a positive integer.
    """
    _require_positive_int("window_ms", config.window_ms)
    _require_positive_int("max_requests_per_window", config.max_requests_per_window)
    _require_positive_int("max_tracked_keys", config.max_tracked_keys)
    if config.key_ttl_ms is not None:
        _require_positive_int("key_ttl_ms", config.key_ttl_ms)


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting admitted request timestamps per key.

    A request is admitted while fewer than ``max_requests_per_window``
    admitted timestamps fall in the half-open window ``(now - window, now]``.
    Rejected attempts are never recorded.

    Timestamps newer than ``now`` (clock regression) are kept as in-window,
    which biases toward rejecting.
    """

    def __init__(
        self,
        config: RateLimiterConfig,
        *,
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        """Initialize the limiter and its bounded store.

        Args:
            config: Window, limit and store bounds.
            clock: Time source returning epoch milliseconds.

        Raises:
            ConfigurationError: If the config is invalid.
        """
        validate_config(config)

        self._config = config
        self._window_ms = config.window_ms
        self._limit = config.max_requests_per_window
        self._clock = clock
        self._lock = threading.RLock()
        self._store: LRUTTLCache[list[int]] = LRUTTLCache(
            max_entries=config.max_tracked_keys,
            ttl_ms=config.effective_key_ttl_ms,
        )

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    def check(self, key: str, now_ms: int | None = None) -> Decision:
        """Admit or reject one request for ``key``.

        Args:
            key: Caller identity (e.g., IP address).
            now_ms: Current epoch milliseconds; the limiter clock when omitted.

        Returns:
            Admit when the request was recorded, Reject otherwise.

        Raises:
            InvalidKeyError: If key is empty or not a string.
        """
        if not isinstance(key, str) or not key:
            raise InvalidKeyError(
                code="rate_limit_key_invalid",
                message="key must be a non-empty string",
            )

        now = self._clock() if now_ms is None else now_ms
        cutoff = now - self._window_ms

        with self._lock:
            timestamps = self._store.get(key, now)
            if timestamps is None:
                timestamps = []
                is_new = True
            else:
                timestamps[:] = [ts for ts in timestamps if ts > cutoff]
                is_new = False

            if len(timestamps) >= self._limit:
                oldest = min(timestamps)
                retry_after = max(0, self._window_ms - (now - oldest))
                return Reject(limit=self._limit, retry_after_ms=retry_after)

            timestamps.append(now)
            if is_new:
                self._store.set(key, timestamps, now)

            return Admit(limit=self._limit, remaining=self._limit - len(timestamps))

    def sweep(self, now_ms: int | None = None) -> int:
        """Purge keys idle for longer than the key TTL.

        Returns:
            Number of keys removed.
        """
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            return self._store.sweep(now)

    def reset(self) -> None:
        """Forget every tracked key."""
        with self._lock:
            self._store.clear()

    def stats(self) -> dict[str, int]:
        """Return store metrics (size, hits, misses, evictions, expirations)."""
        stats = self._store.stats()
        stats["window_ms"] = self._window_ms
        stats["max_requests_per_window"] = self._limit
        return stats


def create_limiter(
    config: RateLimiterConfig,
    *,
    clock: Callable[[], int] | None = None,
) -> InMemorySlidingWindowRateLimiter:
    """Build a limiter with its own independent store.

    Args:
        config: Limiter parameters.
        clock: Optional time source returning epoch milliseconds.

    Raises:
        ConfigurationError: If the config is invalid.
    """
    if clock is None:
        return InMemorySlidingWindowRateLimiter(config)
    return InMemorySlidingWindowRateLimiter(config, clock=clock)
