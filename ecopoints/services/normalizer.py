"""Canonicalization of heterogeneous backend records.

A single alias table lists, for every canonical field of every entity, the
source paths the backend has used for it, in priority order. The first path
that is present and not null wins. Numeric fields are parsed explicitly and
fall back to 0.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from dateutil import parser as date_parser

from ecopoints.core.envelope import pick, to_bool, to_int, to_number, unwrap_list, unwrap_object
from ecopoints.domain.activity import ActivityCategory, ActivityLog, ActivityType
from ecopoints.domain.challenge import Challenge, ChallengeStatus
from ecopoints.domain.user import AuthProvider, User
from ecopoints.models.service_models import AuthResponse, Badge, LeaderboardEntry, UserStats, WeeklyProgressPoint


logger = logging.getLogger(__name__)

T = TypeVar("T")


FIELD_ALIASES: dict[str, dict[str, tuple[str, ...]]] = {
    "user": {
        "id": ("id",),
        "name": ("name", "username", "login"),
        "email": ("email",),
        "avatar": ("avatar", "picture", "avatar_url", "avatarUrl"),
        "provider": ("provider",),
    },
    "activity_type": {
        "id": ("id", "activityTypeId", "typeId"),
        "name": ("name", "title"),
        "description": ("description",),
        "points": ("points",),
        "category": ("category",),
        "co2g_saved": ("co2gSaved", "co2g_saved", "co2Saved"),
        "icon": ("icon",),
    },
    "activity_log": {
        "id": ("activityId", "id"),
        "user_id": ("user.id", "userId", "user_id"),
        "user_name": ("user.name", "userName", "user_name"),
        "activity_type_id": ("activityType.id", "activityTypeId", "activity_type_id"),
        "points": ("activityType.points", "points"),
        "co2g_saved": ("activityType.co2gSaved", "co2gSaved", "co2g_saved"),
        "category": ("category", "activityType.category"),
        "created_at": ("occurredAt", "createdAt", "created_at", "timestamp"),
        "description": ("description",),
    },
    "leaderboard_entry": {
        "user_id": ("userId", "user.id", "user_id", "id"),
        "name": ("name", "userName", "user.name", "username"),
        "total_points": ("totalPoints", "total_points", "points", "score"),
        "total_co2g_saved": ("totalCo2gSaved", "total_co2g_saved", "co2gSaved"),
        "rank": ("rank", "position"),
    },
    "challenge": {
        "id": ("id", "challengeID", "challengeId"),
        "title": ("title", "name"),
        "description": ("description",),
        "points": ("points",),
        "progress": ("progress",),
        "target": ("target", "goal"),
        "status": ("status",),
        "completed": ("isCompleted", "completed"),
    },
    "user_stats": {
        "total_points": ("totalPoints", "total_points", "points"),
        "weekly_points": ("weeklyPoints", "weekly_points"),
        "monthly_points": ("monthlyPoints", "monthly_points"),
        "current_streak": ("currentStreak", "current_streak", "streak"),
        "rank": ("rank",),
        "recent_activities": ("recentActivities", "recent_activities"),
        "weekly_progress": ("weeklyProgress", "weekly_progress"),
    },
    "badge": {
        "id": ("id", "badgeId"),
        "title": ("title", "name"),
        "description": ("description",),
        "points": ("points",),
        "earned_date": ("earnedDate", "earned_at", "earnedAt"),
    },
}

# Resource-specific envelope keys tried after data/items/results.
LIST_KEYS: dict[str, tuple[str, ...]] = {
    "user": ("users", "userDtoList"),
    "activity_type": ("activities", "activityTypes"),
    "activity_log": ("activityLogs", "logs"),
    "leaderboard_entry": ("leaderboard", "entries"),
    "challenge": ("challenges",),
    "badge": ("badges",),
}

TOKEN_KEYS: tuple[str, ...] = ("token", "accessToken", "jwt", "authToken")
USER_KEYS: tuple[str, ...] = ("user", "profile", "account")


def canonicalize(entity: str, record: Any) -> dict[str, Any]:  # noqa: ANN401
    """Resolve every canonical field of an entity from a raw record."""
    aliases = FIELD_ALIASES[entity]
    return {field: pick(record, *paths) for field, paths in aliases.items()}


def parse_category(value: Any) -> ActivityCategory:  # noqa: ANN401
    """Match a category case-insensitively; unknown values become Other."""
    if isinstance(value, str):
        for category in ActivityCategory:
            if category.value.lower() == value.strip().lower():
                return category
    return ActivityCategory.OTHER


def parse_timestamp(value: Any) -> datetime | None:  # noqa: ANN401
    """Parse an ISO-ish timestamp or epoch milliseconds; None when unusable."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000).astimezone()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            return date_parser.parse(value)
        except (ValueError, OverflowError):
            logger.debug("Unparseable timestamp %r", value)
            return None
    return None


def _opaque(value: Any) -> str | int | None:  # noqa: ANN401
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str | int):
        return value
    return str(value)


def _text(value: Any) -> str | None:  # noqa: ANN401
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def canonical_user(record: Any, *, provider: AuthProvider | str | None = None) -> User | None:  # noqa: ANN401
    """Build a canonical User, or None when the record carries no identity."""
    if not isinstance(record, Mapping):
        return None
    fields = canonicalize("user", record)
    if fields["id"] is None and fields["email"] is None and fields["name"] is None:
        return None

    tag = provider or fields["provider"]
    try:
        parsed_provider = AuthProvider(tag) if tag else None
    except ValueError:
        parsed_provider = None

    return User(
        id=_opaque(fields["id"]),
        name=_text(fields["name"]),
        email=_text(fields["email"]),
        avatar=_text(fields["avatar"]),
        provider=parsed_provider,
    )


def canonical_activity_type(record: Any) -> ActivityType:  # noqa: ANN401
    """Build a canonical ActivityType; co2g_saved defaults to 0."""
    fields = canonicalize("activity_type", record)
    return ActivityType(
        id=_opaque(fields["id"]),
        name=_text(fields["name"]) or "",
        description=_text(fields["description"]),
        points=max(0, to_int(fields["points"])),
        category=parse_category(fields["category"]),
        co2g_saved=max(0.0, to_number(fields["co2g_saved"])),
        icon=_text(fields["icon"]),
    )


def canonical_activity_log(record: Any) -> ActivityLog:  # noqa: ANN401
    """Build a canonical ActivityLog, keeping the embedded activity type when present."""
    fields = canonicalize("activity_log", record)
    embedded_type = pick(record, "activityType")
    return ActivityLog(
        id=_opaque(fields["id"]),
        user_id=_opaque(fields["user_id"]),
        user_name=_text(fields["user_name"]),
        activity_type_id=_opaque(fields["activity_type_id"]),
        activity_type=canonical_activity_type(embedded_type) if isinstance(embedded_type, Mapping) else None,
        points=max(0, to_int(fields["points"])),
        co2g_saved=max(0.0, to_number(fields["co2g_saved"])),
        category=parse_category(fields["category"]),
        created_at=parse_timestamp(fields["created_at"]),
        description=_text(fields["description"]),
    )


def canonical_leaderboard_entry(record: Any, *, position: int) -> LeaderboardEntry:  # noqa: ANN401
    """Build a canonical LeaderboardEntry; a missing rank becomes the 1-based position."""
    fields = canonicalize("leaderboard_entry", record)
    rank = to_int(fields["rank"])
    return LeaderboardEntry(
        user_id=str(fields["user_id"]) if fields["user_id"] is not None else "",
        name=_text(fields["name"]) or "",
        total_points=to_int(fields["total_points"]),
        total_co2g_saved=to_number(fields["total_co2g_saved"]),
        rank=rank if rank > 0 else position,
    )


def derive_challenge_status(
    *,
    progress: int,
    target: int,
    completed: bool,
    raw_status: Any,  # noqa: ANN401
) -> ChallengeStatus:
    """Completed when flagged or progress reached target; expired only when the backend says so."""
    if completed or progress >= target:
        return ChallengeStatus.COMPLETED
    if isinstance(raw_status, str) and raw_status.strip().lower() == ChallengeStatus.EXPIRED:
        return ChallengeStatus.EXPIRED
    return ChallengeStatus.ACTIVE


def canonical_challenge(record: Any, *, position: int = 0) -> Challenge:  # noqa: ANN401
    """Build a canonical Challenge; isCompleted and completed are equivalent flags."""
    fields = canonicalize("challenge", record)
    progress = max(0, to_int(fields["progress"]))
    target = to_int(fields["target"])
    if target <= 0:
        target = 1
    raw_id = _opaque(fields["id"])
    return Challenge(
        id=raw_id if raw_id is not None else f"challenge-{position}",
        title=_text(fields["title"]) or "",
        description=_text(fields["description"]) or "",
        points=max(0, to_int(fields["points"])),
        progress=progress,
        target=target,
        status=derive_challenge_status(
            progress=progress,
            target=target,
            completed=to_bool(fields["completed"]),
            raw_status=fields["status"],
        ),
    )


def canonical_badge(record: Any, *, position: int = 0) -> Badge:  # noqa: ANN401
    fields = canonicalize("badge", record)
    return Badge(
        id=str(fields["id"]) if fields["id"] is not None else f"badge-{position}",
        title=_text(fields["title"]) or "",
        description=_text(fields["description"]) or "",
        points=max(0, to_int(fields["points"])),
        earned_date=_text(fields["earned_date"]),
    )


def canonical_user_stats(record: Any) -> UserStats | None:  # noqa: ANN401
    """Build UserStats from a stats payload; None when it carries no stats field at all."""
    fields = canonicalize("user_stats", record)
    if all(value is None for value in fields.values()):
        return None

    recent = fields["recent_activities"] if isinstance(fields["recent_activities"], list) else []
    progress = fields["weekly_progress"] if isinstance(fields["weekly_progress"], list) else []
    return UserStats(
        total_points=to_int(fields["total_points"]),
        weekly_points=to_int(fields["weekly_points"]),
        monthly_points=to_int(fields["monthly_points"]),
        current_streak=to_int(fields["current_streak"]),
        rank=to_int(fields["rank"]),
        recent_activities=[canonical_activity_log(item) for item in recent if isinstance(item, Mapping)],
        weekly_progress=[
            WeeklyProgressPoint(day=_text(item.get("day")) or "", points=to_int(item.get("points")))
            for item in progress
            if isinstance(item, Mapping)
        ],
    )


def canonical_list(
    payload: Any,  # noqa: ANN401
    entity: str,
    build: Callable[[Any], T],
) -> list[T]:
    """Unwrap a list response and canonicalize each mapping item.

    Non-mapping items are skipped.
    """
    items = unwrap_list(payload, LIST_KEYS.get(entity, ()))
    return [build(item) for item in items if isinstance(item, Mapping)]


def canonical_positioned_list(
    payload: Any,  # noqa: ANN401
    entity: str,
    build: Callable[..., T],
) -> list[T]:
    """Like canonical_list, but passes each item's 1-based position to the builder."""
    items = [item for item in unwrap_list(payload, LIST_KEYS.get(entity, ())) if isinstance(item, Mapping)]
    return [build(item, position=index) for index, item in enumerate(items, start=1)]


def first_text(record: Mapping[str, Any], keys: Iterable[str]) -> str | None:
    """Return the first truthy string among the keys."""
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def normalize_auth_response(
    payload: Any,  # noqa: ANN401
    *,
    provider: AuthProvider | str | None = None,
) -> AuthResponse:
    """Extract the token and user from a login, sign-up or OAuth response.

    The user may be wrapped under user/profile/account or be the payload itself.
    """
    data = unwrap_object(payload)
    token = first_text(data, TOKEN_KEYS) or ""

    user_record: Any = data
    for key in USER_KEYS:
        if isinstance(data.get(key), Mapping):
            user_record = data[key]
            break

    return AuthResponse(user=canonical_user(user_record, provider=provider), token=token)
