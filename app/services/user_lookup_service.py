"""Username to email resolution for username-based sign-in.

The service never tells a caller whether a username is unknown versus
malformed beyond the input checks; every miss looks the same from outside.
"""

from __future__ import annotations

import logging

from app.adapters.directory.base import AbstractUsernameDirectory
from app.core.errors import DirectoryAppError, NotFoundAppError, ValidationAppError

logger = logging.getLogger(__name__)


def normalize_username(username: str | None) -> str:
    """Validate and lower-case a username query value.

    Args:
        username: Raw query parameter value.

    Returns:
        Lower-cased, stripped username.

    Raises:
        ValidationAppError: If the username is missing or looks like an email.
    """
    value = (username or "").strip()
    if not value:
        raise ValidationAppError(
            code="username_required",
            message="Username query parameter is required.",
        )
    if "@" in value:
        raise ValidationAppError(
            code="username_invalid",
            message='Username cannot contain "@" symbol.',
        )
    return value.lower()


class UserLookupService:
    """Resolves usernames against a directory adapter."""

    def __init__(self, directory: AbstractUsernameDirectory) -> None:
        self._directory = directory

    def email_for_username(self, username: str | None) -> str:
        """Return the email registered for ``username``.

        Raises:
            ValidationAppError: Missing or malformed username.
            NotFoundAppError: Unknown username (generic message).
            DirectoryAppError: Record exists but carries no email.
        """
        normalized = normalize_username(username)

        record = self._directory.get(normalized)
        if record is None:
            logger.info("user_lookup.not_found", extra={"username": normalized})
            raise NotFoundAppError(
                code="user_lookup_failed",
                message="Invalid user lookup.",
            )

        email = record.get("email")
        if not email:
            logger.error("user_lookup.incomplete_record", extra={"username": normalized})
            raise DirectoryAppError(
                code="user_data_incomplete",
                message="Internal server error: User data incomplete.",
            )

        return str(email)
