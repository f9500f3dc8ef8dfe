"""Development stand-in for the EcoPoints backend.

Serves a small fixed set of fixtures in the shapes the real backend uses
(wrapped user profile, `challengeID`/`name`/`isCompleted` challenges), so the
client can be exercised without a running backend. Every other path answers
404, which drives the client's synthesis fallbacks.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse


router = APIRouter(tags=["mock-backend"])
logger = logging.getLogger(__name__)

MOCK_TOKEN = "mock-jwt-token-12345"

SAMPLE_USER: dict[str, Any] = {
    "id": "2",
    "name": "Demo User",
    "email": "demo@ecopoints.com",
    "totalPoints": 1250,
}

CHALLENGES: list[dict[str, Any]] = [
    {
        "challengeID": 1,
        "name": "10K Steps a Day",
        "description": "Walk instead of driving for short trips",
        "points": 100,
        "isCompleted": False,
        "target": 10,
        "progress": 2,
        "userId": 2,
    },
    {
        "challengeID": 2,
        "name": "Car-Free Week",
        "description": "Avoid using your car for one week",
        "points": 80,
        "isCompleted": False,
        "target": 7,
        "progress": 0,
        "userId": 3,
    },
    {
        "challengeID": 3,
        "name": "Plant-Based Month",
        "description": "Eat plant-based meals",
        "points": 120,
        "isCompleted": False,
        "target": 30,
        "progress": 5,
        "userId": 4,
    },
]

BADGES: list[dict[str, Any]] = [
    {"id": "b1", "title": "7-Day Streak", "description": "Completed 7-day streak", "points": 100},
    {"id": "b2", "title": "Recycling Champion", "description": "10 recycling activities", "points": 150},
]


@router.get("/challenges")
async def list_challenges(userId: str | None = None) -> list[dict[str, Any]]:  # noqa: N803
    """All challenges, or those of one user when `userId` is given."""
    if userId:
        return [challenge for challenge in CHALLENGES if str(challenge["userId"]) == userId]
    return CHALLENGES


@router.get("/auth/me")
@router.get("/user/profile")
async def current_user() -> dict[str, Any]:
    """The demo user in a `{success, data}` envelope."""
    return {"success": True, "data": SAMPLE_USER}


@router.post("/auth/oauth/{provider}")
async def oauth_exchange(provider: str) -> dict[str, Any]:
    """Accept any code and answer with a fixed token and the demo user."""
    logger.info("Mock OAuth exchange", extra={"provider": provider})
    return {"token": MOCK_TOKEN, "user": SAMPLE_USER}


@router.get("/user/badges")
@router.get("/badges")
async def list_badges() -> list[dict[str, Any]]:
    return BADGES


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
async def not_found(request: Request, path: str) -> JSONResponse:
    """Anything not modeled above."""
    logger.debug("Mock backend has no route for %s /%s", request.method, path)
    return JSONResponse(status_code=404, content={"message": "Not Found"})
