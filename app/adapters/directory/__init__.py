"""Username directory adapters.

The lookup route resolves usernames through ``AbstractUsernameDirectory``;
the production document store lives outside this service and plugs in
behind the same interface.
"""

from app.adapters.directory.base import AbstractUsernameDirectory, UsernameRecord
from app.adapters.directory.in_memory import InMemoryUsernameDirectory

__all__ = ["AbstractUsernameDirectory", "InMemoryUsernameDirectory", "UsernameRecord"]
