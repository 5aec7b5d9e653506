from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint.

    Returns:
        dict: ``status`` plus the number of clients each rate limiter tracks.
    """

    limiters = getattr(request.app.state, "rate_limiters", {})
    return {
        "status": "ok",
        "rate_limiters": {name: len(limiter) for name, limiter in limiters.items()},
    }
