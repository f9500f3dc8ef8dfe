"""Domain models and DTOs."""

from ecopoints.domain.activity import ActivityCategory, ActivityLog, ActivityType
from ecopoints.domain.challenge import Challenge, ChallengeStatus
from ecopoints.domain.user import AuthProvider, OpaqueId, User


__all__ = [
    "ActivityCategory",
    "ActivityLog",
    "ActivityType",
    "AuthProvider",
    "Challenge",
    "ChallengeStatus",
    "OpaqueId",
    "User",
]
