"""In-memory username directory used for local runs and tests."""

from __future__ import annotations

import threading
from typing import Mapping

from app.adapters.directory.base import AbstractUsernameDirectory, UsernameRecord


class InMemoryUsernameDirectory(AbstractUsernameDirectory):
    """Thread-safe dict-backed directory keyed by lower-cased username."""

    def __init__(self, records: Mapping[str, UsernameRecord] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, UsernameRecord] = {
            username.lower(): dict(record) for username, record in (records or {}).items()
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, username: str) -> UsernameRecord | None:
        with self._lock:
            return self._records.get(username)

    def put(self, username: str, record: UsernameRecord) -> None:
        with self._lock:
            self._records[username.lower()] = dict(record)
