from ecopoints.services import (
    activity_service,
    analytics_service,
    auth_service,
    badge_service,
    challenge_service,
    status_service,
    user_service,
)


__all__ = [
    "activity_service",
    "analytics_service",
    "auth_service",
    "badge_service",
    "challenge_service",
    "status_service",
    "user_service",
]
