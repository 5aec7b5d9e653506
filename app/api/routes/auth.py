from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from app.core.rate_limit import USERNAME_LOOKUP_POLICY, rate_limit
from app.schemas.auth import EmailForUsernameResponse
from app.services.user_lookup_service import UserLookupService

router = APIRouter(tags=["Auth"])


def get_user_lookup_service(request: Request) -> UserLookupService:
    """Build the lookup service over the directory owned by the app."""

    return UserLookupService(request.app.state.username_directory)


@router.get(
    "/auth/email-for-username",
    response_model=EmailForUsernameResponse,
    dependencies=[Depends(rate_limit(USERNAME_LOOKUP_POLICY))],
)
def email_for_username(
    username: str | None = Query(None, description="Username to resolve (case-insensitive)."),
    service: UserLookupService = Depends(get_user_lookup_service),
) -> EmailForUsernameResponse:
    """Resolve a username to its email address.

    Rate limited per client address; over-limit callers get 429 before any
    lookup happens. Unknown usernames return a generic 404 so responses do
    not confirm which usernames exist.

    Returns:
        EmailForUsernameResponse: The registered email.
    """

    return EmailForUsernameResponse(email=service.email_for_username(username))
