"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so
request handlers only see the decision types and the ``check`` contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal, Union

DEFAULT_MAX_TRACKED_KEYS = 500


@dataclass(frozen=True)
class RateLimiterConfig:
    """Construction parameters for a rate limiter.

    Attributes:
        window_ms: Size of the trailing window in milliseconds.
        max_requests_per_window: Admitted requests per key within the window.
        max_tracked_keys: Upper bound on distinct keys held in memory.
        key_ttl_ms: Idle time before a key is forgotten (defaults to window_ms).
    """

    window_ms: int
    max_requests_per_window: int
    max_tracked_keys: int = DEFAULT_MAX_TRACKED_KEYS
    key_ttl_ms: int | None = None

    @property
    def effective_key_ttl_ms(self) -> int:
        return self.window_ms if self.key_ttl_ms is None else self.key_ttl_ms


@dataclass(frozen=True)
class Admit:
    """The request may proceed; its timestamp has been recorded.

    Attributes:
        limit: Max requests per window.
        remaining: Requests still available in the current window.
    """

    limit: int
    remaining: int
    allowed: Literal[True] = True


@dataclass(frozen=True)
class Reject:
    """The request is denied and was not counted.

    Attributes:
        limit: Max requests per window.
        retry_after_ms: Time until the oldest counted request leaves the window.
    """

    limit: int
    retry_after_ms: int
    allowed: Literal[False] = False


Decision = Union[Admit, Reject]


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str, now_ms: int | None = None) -> Decision:
        """Decide whether a request from ``key`` is admitted.

        Args:
            key: Caller identity (e.g., IP address). Must be non-empty.
            now_ms: Current epoch milliseconds; the limiter clock when omitted.

        Returns:
            Admit or Reject.
        """
        raise NotImplementedError
