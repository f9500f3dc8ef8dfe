"""Service layer return types."""

from ecopoints.models.service_models import (
    AuthResponse,
    BackendStatus,
    Badge,
    LeaderboardEntry,
    UserStats,
    WeeklyProgressPoint,
)


__all__ = [
    "AuthResponse",
    "BackendStatus",
    "Badge",
    "LeaderboardEntry",
    "UserStats",
    "WeeklyProgressPoint",
]
