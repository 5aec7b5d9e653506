"""Username directory interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

UsernameRecord = Mapping[str, Any]


class AbstractUsernameDirectory(ABC):
    """Read-only mapping from normalized username to its stored record."""

    @abstractmethod
    def get(self, username: str) -> UsernameRecord | None:
        """Return the record for an already lower-cased username, or None."""
        raise NotImplementedError
