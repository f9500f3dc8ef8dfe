"""Integration tests: the client services against the bundled mock backend."""

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi.testclient import TestClient

from ecopoints.core.api_client import ApiClient
from ecopoints.core.errors import NotFoundError
from ecopoints.domain.challenge import ChallengeStatus
from ecopoints.domain.user import AuthProvider
from ecopoints.interface.mock_backend import MOCK_TOKEN
from ecopoints.main import app
from ecopoints.models.service_models import BackendStatus
from ecopoints.services import (
    analytics_service,
    auth_service,
    badge_service,
    challenge_service,
    status_service,
)


pytestmark = pytest.mark.integration


@pytest.fixture
async def mock_api(session_store) -> AsyncIterator[ApiClient]:
    """API client talking to the mock backend mounted under /api."""
    async with ApiClient(
        base_url="http://testserver/api",
        session=session_store,
        transport=httpx.ASGITransport(app=app),
    ) as client:
        yield client


@pytest.fixture
async def signed_in_api(mock_api) -> ApiClient:
    await auth_service.exchange_oauth_code(mock_api, provider=AuthProvider.GITHUB, code="any-code")
    return mock_api


async def test_oauth_exchange_stores_session(mock_api, session_store):
    """Test the mock exchange yields the demo user and token."""
    auth = await auth_service.exchange_oauth_code(mock_api, provider="github", code="any-code")

    assert auth.token == MOCK_TOKEN
    assert auth.user.name == "Demo User"
    assert auth.user.provider == AuthProvider.GITHUB
    assert session_store.get_token() == MOCK_TOKEN
    assert session_store.get_user_id() == "2"


async def test_profile_unwrapped_from_envelope(mock_api):
    user = await auth_service.get_user_profile(mock_api)

    assert user.id == "2"
    assert user.email == "demo@ecopoints.com"


async def test_challenges_fall_back_to_global_list(signed_in_api):
    """Test the unimplemented user-scoped route falls through to the global list."""
    challenges = await challenge_service.get_challenges(signed_in_api)

    backend_titles = [challenge.title for challenge in challenges[:3]]
    assert backend_titles == ["10K Steps a Day", "Car-Free Week", "Plant-Based Month"]
    assert [challenge.id for challenge in challenges[:3]] == [1, 2, 3]
    assert all(challenge.status == ChallengeStatus.ACTIVE for challenge in challenges[:3])
    assert [challenge.id for challenge in challenges[3:]] == [
        milestone.id for milestone in challenge_service.MILESTONE_CATALOGUE
    ]


async def test_badges_from_backend(signed_in_api):
    badges = await badge_service.get_badges(signed_in_api)

    assert [badge.id for badge in badges] == ["b1", "b2"]


async def test_leaderboard_without_any_source_raises_endpoint_error(signed_in_api):
    """Test the endpoint error surfaces when the synthesis input is missing too."""
    with pytest.raises(NotFoundError, match="Not Found"):
        await analytics_service.get_leaderboard(signed_in_api)


async def test_stats_without_any_source_raises_endpoint_error(signed_in_api):
    with pytest.raises(NotFoundError):
        await analytics_service.get_user_stats(signed_in_api)


async def test_status_offline_without_user_listing(mock_api):
    """Test the mock backend has no /auth listing, so the probe reports offline."""
    assert await status_service.check_backend_status(mock_api) == BackendStatus.OFFLINE


def test_challenges_filtered_by_user_query():
    client = TestClient(app)

    response = client.get("/api/challenges", params={"userId": "3"})

    assert response.status_code == 200
    assert [challenge["name"] for challenge in response.json()] == ["Car-Free Week"]


def test_unknown_route_answers_not_found():
    client = TestClient(app)

    response = client.delete("/api/activities/1")

    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}
