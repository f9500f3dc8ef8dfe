"""Analytics service for dashboard statistics and the leaderboard.

This module provides functions for:
- Fetching the current user's dashboard statistics
- Fetching the points leaderboard
- Synthesizing both from raw activity logs when the backend cannot serve them

Key Concepts:
- Endpoint unavailable: a 404 or 500 answer. Only this class of failure, or a
  valid but empty payload, switches to synthesis. Authorization and
  validation errors always propagate.
- Effective points: a log's own points, else its activity type's points, else 0.
- Logs without a timestamp are treated as having happened now, so they count
  towards every window.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from ecopoints.core.api_client import ApiClient
from ecopoints.core.config import constants
from ecopoints.core.envelope import unwrap_object
from ecopoints.core.errors import ApiError, EndpointUnavailableError, UnauthorizedError
from ecopoints.core.logging import log_with_context, span
from ecopoints.domain.activity import ActivityLog
from ecopoints.domain.user import OpaqueId
from ecopoints.models.service_models import LeaderboardEntry, UserStats, WeeklyProgressPoint
from ecopoints.services import activity_service
from ecopoints.services.normalizer import (
    canonical_leaderboard_entry,
    canonical_positioned_list,
    canonical_user_stats,
)


logger = logging.getLogger(__name__)


def effective_points(log: ActivityLog) -> int:
    if log.points:
        return log.points
    if log.activity_type is not None:
        return log.activity_type.points
    return 0


def effective_co2(log: ActivityLog) -> float:
    if log.co2g_saved:
        return log.co2g_saved
    if log.activity_type is not None:
        return log.activity_type.co2g_saved
    return 0.0


def _local_time(log: ActivityLog, now: datetime) -> datetime:
    """Return the log's timestamp in local time, or now when it has none."""
    if log.created_at is None:
        return now
    # Naive timestamps are taken to be local time.
    return log.created_at.astimezone()


def filter_logs_for_user(logs: Iterable[ActivityLog], user_id: OpaqueId | None) -> list[ActivityLog]:
    """Keep the logs belonging to the user, comparing ids as strings; no filter without a user."""
    if user_id is None:
        return list(logs)
    wanted = str(user_id)
    return [log for log in logs if log.user_id is not None and str(log.user_id) == wanted]


def synthesize_user_stats(
    logs: Iterable[ActivityLog],
    *,
    user_id: OpaqueId | None = None,
    now: datetime | None = None,
) -> UserStats:
    """Compute dashboard statistics from activity logs.

    Args:
        logs: Canonical activity logs, in backend order
        user_id: Restrict to this user's logs when given
        now: Reference time (defaults to the current wall-clock time)

    Returns:
        UserStats with streak and rank left at 0
    """
    now = (now or datetime.now()).astimezone()
    activities = filter_logs_for_user(logs, user_id)

    weekly_cutoff = now - timedelta(days=constants.WEEKLY_WINDOW_DAYS)
    monthly_cutoff = now - timedelta(days=constants.MONTHLY_WINDOW_DAYS)

    total_points = 0
    weekly_points = 0
    monthly_points = 0
    points_by_day: dict[date, int] = {}

    for log in activities:
        points = effective_points(log)
        occurred = _local_time(log, now)
        total_points += points
        if occurred >= weekly_cutoff:
            weekly_points += points
        if occurred >= monthly_cutoff:
            monthly_points += points
        day = occurred.date()
        points_by_day[day] = points_by_day.get(day, 0) + points

    today = now.date()
    weekly_progress = []
    for offset in range(constants.WEEKLY_PROGRESS_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        weekly_progress.append(WeeklyProgressPoint(day=day.strftime("%a"), points=points_by_day.get(day, 0)))

    return UserStats(
        total_points=total_points,
        weekly_points=weekly_points,
        monthly_points=monthly_points,
        current_streak=0,
        rank=0,
        recent_activities=activities[: constants.RECENT_ACTIVITIES_LIMIT],
        weekly_progress=weekly_progress,
    )


def synthesize_leaderboard(logs: Iterable[ActivityLog]) -> list[LeaderboardEntry]:
    """Rank users by the points of their activity logs.

    Groups by user id, keeps the first name seen for each user, sorts by total
    points descending and assigns 1-based ranks. Ties keep first-seen order.
    Logs without a user id are skipped.
    """
    groups: dict[str, dict] = {}
    for log in logs:
        if log.user_id is None:
            logger.debug("Skipping activity log %s without user id", log.id)
            continue
        key = str(log.user_id)
        group = groups.setdefault(key, {"name": None, "total_points": 0, "total_co2g_saved": 0.0})
        if group["name"] is None and log.user_name:
            group["name"] = log.user_name
        group["total_points"] += effective_points(log)
        group["total_co2g_saved"] += effective_co2(log)

    ordered = sorted(groups.items(), key=lambda item: item[1]["total_points"], reverse=True)
    return [
        LeaderboardEntry(
            user_id=user_id,
            name=data["name"] or constants.UNKNOWN_USER_NAME,
            total_points=data["total_points"],
            total_co2g_saved=data["total_co2g_saved"],
            rank=position,
        )
        for position, (user_id, data) in enumerate(ordered, start=1)
    ]


async def _fetch_logs_for_fallback(client: ApiClient, original: ApiError | None) -> list[ActivityLog]:
    """Fetch the logs that feed a synthesis; failures surface as the original error."""
    try:
        return await activity_service.get_all_activity_logs(client)
    except UnauthorizedError:
        raise
    except ApiError as e:
        if original is None:
            raise
        logger.error("Fallback synthesis failed: %s", e)
        raise original from e


async def get_user_stats(client: ApiClient) -> UserStats:
    """Get the current user's dashboard statistics.

    Falls back to synthesis from activity logs when /user/stats is unavailable
    (404/500) or answers with an empty payload.

    Raises:
        ApiError: For any other failure, or when the fallback itself fails
    """
    with span("analytics_service.get_user_stats"):
        original: ApiError | None = None
        try:
            response = await client.get("/user/stats")
        except EndpointUnavailableError as e:
            original = e
        else:
            stats = canonical_user_stats(unwrap_object(response))
            if stats is not None:
                return stats

        user_id = client.session.get_user_id()
        log_with_context(
            logger,
            "warning",
            "Stats endpoint unavailable, computing from activity logs",
            status_code=original.status_code if original else None,
            user_id=user_id,
        )
        logs = await _fetch_logs_for_fallback(client, original)
        return synthesize_user_stats(logs, user_id=user_id)


async def get_leaderboard(client: ApiClient) -> list[LeaderboardEntry]:
    """Get the points leaderboard.

    Falls back to synthesis from activity logs when /leaderboard is unavailable
    (404/500) or answers with an empty list.

    Raises:
        ApiError: For any other failure, or when the fallback itself fails
    """
    with span("analytics_service.get_leaderboard"):
        original: ApiError | None = None
        try:
            response = await client.get("/leaderboard")
        except EndpointUnavailableError as e:
            original = e
        else:
            entries = canonical_positioned_list(response, "leaderboard_entry", canonical_leaderboard_entry)
            if entries:
                logger.info("Fetched leaderboard with %d entries", len(entries))
                return entries

        log_with_context(
            logger,
            "warning",
            "Leaderboard endpoint unavailable, computing from activity logs",
            status_code=original.status_code if original else None,
        )
        logs = await _fetch_logs_for_fallback(client, original)
        leaderboard = synthesize_leaderboard(logs)
        logger.info("Synthesized leaderboard with %d entries", len(leaderboard))
        return leaderboard
