"""Badge service."""

import logging

from ecopoints.core.api_client import ApiClient
from ecopoints.core.errors import EndpointUnavailableError
from ecopoints.core.logging import span
from ecopoints.domain.challenge import Challenge, ChallengeStatus
from ecopoints.models.service_models import Badge
from ecopoints.services import challenge_service
from ecopoints.services.normalizer import canonical_badge, canonical_positioned_list


logger = logging.getLogger(__name__)


def badges_from_challenges(challenges: list[Challenge]) -> list[Badge]:
    """One badge per completed challenge, in challenge order."""
    return [
        Badge(
            id=f"badge-{challenge.id}",
            title=challenge.title,
            description=f"Completed the {challenge.title} challenge",
            points=challenge.points,
        )
        for challenge in challenges
        if challenge.status == ChallengeStatus.COMPLETED
    ]


async def get_badges(client: ApiClient) -> list[Badge]:
    """Fetch earned badges, deriving them from completed challenges when the backend has none."""
    with span("badge_service.get_badges"):
        for path in ("/user/badges", "/badges"):
            try:
                response = await client.get(path)
            except EndpointUnavailableError:
                logger.debug("Badge endpoint %s unavailable", path)
                continue
            badges = canonical_positioned_list(response, "badge", canonical_badge)
            if badges:
                return badges

        logger.info("No badges from backend, deriving from completed challenges")
        challenges = await challenge_service.get_challenges(client)
        return badges_from_challenges(challenges)
