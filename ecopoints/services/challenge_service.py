"""Challenge service: backend challenges merged with client-computed milestones.

Milestones are derived only from state the client can observe itself: how many
activities the current user has logged, and whether this client ever created a
custom activity type. They keep the challenge list useful while the backend
challenge feature is incomplete.
"""

import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import NamedTuple

from ecopoints.core.api_client import ApiClient
from ecopoints.core.errors import EndpointUnavailableError, NotFoundError
from ecopoints.core.logging import span
from ecopoints.domain.challenge import Challenge, ChallengeStatus
from ecopoints.domain.user import OpaqueId
from ecopoints.services import activity_service
from ecopoints.services.analytics_service import filter_logs_for_user
from ecopoints.services.normalizer import canonical_challenge, canonical_positioned_list


logger = logging.getLogger(__name__)


class MilestoneSource(StrEnum):
    """Client-observable counter a milestone tracks."""

    ACTIVITY_LOGS = "activity_logs"
    CUSTOM_ACTIVITY = "custom_activity"


class Milestone(NamedTuple):
    """Fixed milestone definition."""

    id: str
    title: str
    description: str
    points: int
    target: int
    source: MilestoneSource


MILESTONE_CATALOGUE: tuple[Milestone, ...] = (
    Milestone(
        id="milestone-first-activity",
        title="First Step",
        description="Log your first eco-friendly activity",
        points=10,
        target=1,
        source=MilestoneSource.ACTIVITY_LOGS,
    ),
    Milestone(
        id="milestone-5-activities",
        title="Getting Started",
        description="Log 5 eco-friendly activities",
        points=50,
        target=5,
        source=MilestoneSource.ACTIVITY_LOGS,
    ),
    Milestone(
        id="milestone-10-activities",
        title="Eco Enthusiast",
        description="Log 10 eco-friendly activities",
        points=100,
        target=10,
        source=MilestoneSource.ACTIVITY_LOGS,
    ),
    Milestone(
        id="milestone-25-activities",
        title="Green Champion",
        description="Log 25 eco-friendly activities",
        points=250,
        target=25,
        source=MilestoneSource.ACTIVITY_LOGS,
    ),
    Milestone(
        id="milestone-custom-activity",
        title="Make It Yours",
        description="Create your own custom activity type",
        points=25,
        target=1,
        source=MilestoneSource.CUSTOM_ACTIVITY,
    ),
)


def build_milestones(*, activity_count: int, has_custom_activity: bool) -> list[Challenge]:
    """Evaluate the milestone catalogue against the observed counters.

    Args:
        activity_count: Number of activities the current user has logged
        has_custom_activity: Whether a custom activity type was ever created

    Returns:
        One Challenge per milestone, in catalogue order
    """
    observed = {
        MilestoneSource.ACTIVITY_LOGS: max(0, activity_count),
        MilestoneSource.CUSTOM_ACTIVITY: 1 if has_custom_activity else 0,
    }
    milestones = []
    for milestone in MILESTONE_CATALOGUE:
        progress = min(observed[milestone.source], milestone.target)
        milestones.append(
            Challenge(
                id=milestone.id,
                title=milestone.title,
                description=milestone.description,
                points=milestone.points,
                progress=progress,
                target=milestone.target,
                status=ChallengeStatus.COMPLETED if progress == milestone.target else ChallengeStatus.ACTIVE,
            )
        )
    return milestones


def merge_challenges(backend: Iterable[Challenge], milestones: Iterable[Challenge]) -> list[Challenge]:
    """Backend challenges in their order, then milestones the backend did not already return.

    Ids are compared as strings. The result depends only on the inputs.
    """
    merged = list(backend)
    backend_ids = {str(challenge.id) for challenge in merged}
    merged.extend(milestone for milestone in milestones if str(milestone.id) not in backend_ids)
    return merged


async def _fetch_challenge_list(client: ApiClient, path: str) -> list[Challenge]:
    response = await client.get(path)
    return canonical_positioned_list(response, "challenge", canonical_challenge)


async def get_backend_challenges(client: ApiClient, *, user_id: OpaqueId | None = None) -> list[Challenge]:
    """Fetch challenges from the backend.

    The user-scoped list is tried first; when it is empty or unavailable the
    global list is fetched. A missing global endpoint yields an empty list.
    """
    with span("challenge_service.get_backend_challenges"):
        if user_id is not None:
            try:
                challenges = await _fetch_challenge_list(client, f"/challenges/user/{user_id}")
            except EndpointUnavailableError as e:
                logger.info("User challenges unavailable (%s), trying global list", e.status_code)
            else:
                if challenges:
                    return challenges
                logger.debug("No user challenges for %s, trying global list", user_id)

        try:
            return await _fetch_challenge_list(client, "/challenges")
        except NotFoundError:
            logger.warning("Challenges endpoint not implemented in backend")
            return []


async def count_user_activities(client: ApiClient, *, user_id: OpaqueId | None) -> int:
    """Count the current user's activity logs; 0 when the log endpoint is unavailable."""
    try:
        logs = await activity_service.get_all_activity_logs(client)
    except EndpointUnavailableError as e:
        logger.warning("Activity logs unavailable (%s), milestones start from zero", e.status_code)
        return 0
    return len(filter_logs_for_user(logs, user_id))


async def get_challenges(client: ApiClient) -> list[Challenge]:
    """Assemble the challenge list shown to the current user.

    Requests run one after another: backend challenges, then the activity
    count for the milestones.
    """
    with span("challenge_service.get_challenges"):
        user_id = client.session.get_user_id()
        backend = await get_backend_challenges(client, user_id=user_id)
        activity_count = await count_user_activities(client, user_id=user_id)
        milestones = build_milestones(
            activity_count=activity_count,
            has_custom_activity=client.session.has_created_custom_activity(),
        )
        merged = merge_challenges(backend, milestones)
        logger.info(
            "Assembled %d challenges (%d from backend)",
            len(merged),
            len(backend),
            extra={"user_id": user_id},
        )
        return merged
