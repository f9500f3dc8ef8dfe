"""Activity service for activity logs and activity types."""

import logging
from datetime import UTC, datetime
from typing import Any

from ecopoints.core.api_client import ApiClient
from ecopoints.core.envelope import to_number, unwrap_object
from ecopoints.core.logging import span
from ecopoints.domain.activity import ActivityLog, ActivityType
from ecopoints.domain.user import OpaqueId
from ecopoints.services.normalizer import canonical_activity_log, canonical_activity_type, canonical_list


logger = logging.getLogger(__name__)


# Activity logs (/activity-logs)


async def get_all_activity_logs(client: ApiClient) -> list[ActivityLog]:
    """Fetch every activity log, canonicalized."""
    with span("activity_service.get_all_activity_logs"):
        response = await client.get("/activity-logs")
        logs = canonical_list(response, "activity_log", canonical_activity_log)
        logger.debug("Fetched %d activity logs", len(logs))
        return logs


async def get_activity_logs_by_user(client: ApiClient, *, user_id: OpaqueId) -> list[ActivityLog]:
    with span("activity_service.get_activity_logs_by_user"):
        response = await client.get(f"/activity-logs/user/{user_id}")
        return canonical_list(response, "activity_log", canonical_activity_log)


async def get_activity_log(client: ApiClient, *, log_id: OpaqueId) -> ActivityLog:
    with span("activity_service.get_activity_log"):
        response = await client.get(f"/activity-logs/{log_id}")
        return canonical_activity_log(unwrap_object(response))


async def create_activity_log(
    client: ApiClient,
    *,
    user_id: OpaqueId,
    activity_type_id: OpaqueId,
    description: str | None = None,
    occurred_at: datetime | None = None,
) -> ActivityLog:
    """Log an activity for a user.

    Args:
        client: API client
        user_id: ID of the user logging the activity
        activity_type_id: ID of the activity type
        description: Optional note
        occurred_at: When it happened (defaults to now)

    Returns:
        The created log, canonicalized
    """
    with span("activity_service.create_activity_log"):
        payload = {
            "userId": user_id,
            "activityTypeId": activity_type_id,
            "description": description,
            "occurredAt": (occurred_at or datetime.now(UTC)).isoformat(),
        }
        response = await client.post("/activity-logs", payload)
        log = canonical_activity_log(unwrap_object(response))
        logger.info("Created activity log %s for user %s", log.id, user_id)
        return log


async def delete_activity_log(client: ApiClient, *, log_id: OpaqueId) -> None:
    with span("activity_service.delete_activity_log"):
        await client.delete(f"/activity-logs/{log_id}")
        logger.info("Deleted activity log %s", log_id)


# Activity types (/activities)


def build_activity_type_payload(data: dict[str, Any]) -> dict[str, Any]:
    """Build the create payload for an activity type.

    The backend column co2g_saved is NOT NULL, so the value is always sent,
    defaulting to 0, under both its camelCase and snake_case names.
    """
    payload = {key: value for key, value in data.items() if key not in {"co2gSaved", "co2g_saved"}}
    raw_co2 = data.get("co2gSaved")
    if raw_co2 is None:
        raw_co2 = data.get("co2g_saved")
    co2 = max(0.0, to_number(raw_co2))
    payload["co2gSaved"] = co2
    payload["co2g_saved"] = co2
    return payload


async def get_all_activity_types(client: ApiClient) -> list[ActivityType]:
    with span("activity_service.get_all_activity_types"):
        response = await client.get("/activities")
        return canonical_list(response, "activity_type", canonical_activity_type)


async def get_activity_type(client: ApiClient, *, activity_type_id: OpaqueId) -> ActivityType:
    with span("activity_service.get_activity_type"):
        response = await client.get(f"/activities/{activity_type_id}")
        return canonical_activity_type(unwrap_object(response))


async def create_activity_type(client: ApiClient, *, data: dict[str, Any]) -> ActivityType:
    """Create a custom activity type and remember locally that one was created."""
    with span("activity_service.create_activity_type"):
        response = await client.post("/activities", build_activity_type_payload(data))
        activity_type = canonical_activity_type(unwrap_object(response))
        client.session.mark_custom_activity_created()
        logger.info("Created activity type %s", activity_type.id)
        return activity_type


async def update_activity_type(client: ApiClient, *, activity_type_id: OpaqueId, data: dict[str, Any]) -> ActivityType:
    with span("activity_service.update_activity_type"):
        response = await client.put(f"/activities/{activity_type_id}", data)
        return canonical_activity_type(unwrap_object(response))


async def delete_activity_type(client: ApiClient, *, activity_type_id: OpaqueId) -> None:
    with span("activity_service.delete_activity_type"):
        await client.delete(f"/activities/{activity_type_id}")
        logger.info("Deleted activity type %s", activity_type_id)
