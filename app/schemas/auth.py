"""Pydantic schemas for authentication lookup responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class EmailForUsernameResponse(BaseModel):
    """Email address resolved from a username, used by username sign-in."""

    email: str = Field(..., description="Email address registered for the username.")
