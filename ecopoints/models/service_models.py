"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting the
heterogeneous backend payloads into typed objects.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from ecopoints.domain.activity import ActivityLog
from ecopoints.domain.user import User


class LeaderboardEntry(BaseModel):
    """User entry in the points leaderboard."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    name: str
    total_points: int = Field(default=0, alias="totalPoints")
    total_co2g_saved: float = Field(default=0.0, alias="totalCo2gSaved")
    rank: int


class WeeklyProgressPoint(BaseModel):
    """Points earned on one day of the trailing week."""

    day: str
    points: int


class UserStats(BaseModel):
    """Dashboard statistics for the current user."""

    model_config = ConfigDict(populate_by_name=True)

    total_points: int = Field(default=0, alias="totalPoints")
    weekly_points: int = Field(default=0, alias="weeklyPoints")
    monthly_points: int = Field(default=0, alias="monthlyPoints")
    current_streak: int = Field(default=0, alias="currentStreak")
    rank: int = 0
    recent_activities: list[ActivityLog] = Field(default_factory=list, alias="recentActivities")
    weekly_progress: list[WeeklyProgressPoint] = Field(default_factory=list, alias="weeklyProgress")


class AuthResponse(BaseModel):
    """Normalized result of a login, sign-up or OAuth exchange."""

    user: User | None = None
    token: str = ""


class Badge(BaseModel):
    """Achievement earned by the user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    points: int = 0
    earned_date: str | None = Field(default=None, alias="earnedDate")


class BackendStatus(StrEnum):
    """Reachability of the backend."""

    ONLINE = "online"
    OFFLINE = "offline"
