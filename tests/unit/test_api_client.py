"""Tests for the HTTP transport."""

import json

import httpx
import pytest

from ecopoints.core.api_client import ApiClient
from ecopoints.core.errors import (
    ClientRequestError,
    InternalServerError,
    NetworkError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
)
from tests.conftest import BACKEND_URL


@pytest.mark.unit
class TestRequest:
    """Tests for ApiClient.request."""

    async def test_bearer_token_attached(self, backend, logged_in_session, api_client):
        """Test the stored token is sent on every request."""
        backend.add("GET", "/activities", json=[])

        await api_client.get("/activities")

        assert backend.requests[0].headers["Authorization"] == "Bearer test-token"
        assert backend.requests[0].headers["Content-Type"] == "application/json"

    async def test_no_token_no_header(self, backend, api_client):
        backend.add("GET", "/activities", json=[])

        await api_client.get("/activities")

        assert "Authorization" not in backend.requests[0].headers

    async def test_returns_decoded_json(self, backend, api_client):
        backend.add("GET", "/user/stats", json={"totalPoints": 5})

        assert await api_client.get("/user/stats") == {"totalPoints": 5}

    async def test_empty_body_returns_none(self, backend, api_client):
        backend.add("DELETE", "/activities/3", status=204)

        assert await api_client.delete("/activities/3") is None

    async def test_text_body_returned_raw(self, backend, api_client):
        backend.add_handler("GET", "/ping", lambda request: httpx.Response(200, text="pong"))

        assert await api_client.get("/ping") == "pong"

    async def test_post_sends_json(self, backend, api_client):
        backend.add("POST", "/activities", json={"id": 1})

        await api_client.post("/activities", {"name": "Bike"})

        assert json.loads(backend.requests[0].read()) == {"name": "Bike"}

    async def test_query_params(self, backend, api_client):
        backend.add("GET", "/challenges", json=[])

        await api_client.get("/challenges", params={"userId": 2})

        assert backend.requests[0].url.params["userId"] == "2"

    async def test_base_url_prefix_kept(self, session_store):
        """Test paths are appended to a base URL that has its own path."""
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={})

        async with ApiClient(
            base_url="http://backend.test/api/", session=session_store, transport=httpx.MockTransport(handler)
        ) as client:
            await client.get("/auth")

        assert seen == ["/api/auth"]


@pytest.mark.unit
class TestErrorClassification:
    """Tests for non-2xx and transport failures."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (404, NotFoundError),
            (500, InternalServerError),
            (502, ServiceError),
            (403, ClientRequestError),
            (400, ClientRequestError),
        ],
    )
    async def test_status_raises_classified_error(self, backend, api_client, status, expected):
        backend.add("GET", "/leaderboard", status=status, json={"message": "server says no"})

        with pytest.raises(expected) as exc_info:
            await api_client.get("/leaderboard")

        assert exc_info.value.status_code == status
        assert exc_info.value.message == "server says no"

    async def test_error_field_message(self, backend, api_client):
        backend.add("POST", "/auth/login", status=400, json={"error": "Invalid credentials"})

        with pytest.raises(ClientRequestError, match="Invalid credentials"):
            await api_client.post("/auth/login", {})

    async def test_generic_message_without_body(self, backend, api_client):
        backend.add("GET", "/user/stats", status=500)

        with pytest.raises(InternalServerError) as exc_info:
            await api_client.get("/user/stats")

        assert exc_info.value.message == "An unexpected error occurred"

    async def test_transport_failure_is_network_error(self, backend, api_client):
        backend.fail("GET", "/activities")

        with pytest.raises(NetworkError) as exc_info:
            await api_client.get("/activities")

        assert exc_info.value.status_code is None

    async def test_other_errors_keep_session(self, backend, logged_in_session, api_client):
        backend.add("GET", "/user/stats", status=403, json={"message": "Forbidden"})

        with pytest.raises(ClientRequestError):
            await api_client.get("/user/stats")

        assert logged_in_session.get_token() == "test-token"
        assert api_client.redirect_target is None


@pytest.mark.unit
class TestUnauthorized:
    """Tests for 401 session invalidation."""

    async def test_401_clears_session_and_redirects(self, backend, logged_in_session, api_client):
        """Test a 401 erases token and user, then targets the login surface."""
        backend.add("GET", "/user/stats", status=401, json={"message": "Token expired"})

        with pytest.raises(UnauthorizedError, match="Token expired"):
            await api_client.get("/user/stats")

        assert logged_in_session.get_token() is None
        assert logged_in_session.get_user() is None
        assert api_client.redirect_target == "/login"

    async def test_401_is_not_retried(self, backend, logged_in_session, api_client):
        backend.add("GET", "/user/stats", status=401)

        with pytest.raises(UnauthorizedError):
            await api_client.get("/user/stats")

        assert len(backend.requests) == 1

    async def test_on_unauthorized_callback(self, backend, logged_in_session):
        redirects = []
        backend.add("GET", "/auth/me", status=401)

        async with ApiClient(
            base_url=BACKEND_URL,
            session=logged_in_session,
            transport=httpx.MockTransport(backend.handler),
            on_unauthorized=redirects.append,
            login_path="/signin",
        ) as client:
            with pytest.raises(UnauthorizedError):
                await client.get("/auth/me")

        assert redirects == ["/signin"]

    async def test_session_cleared_before_callback(self, backend, logged_in_session):
        """Test observers see the invalidated session when they are notified."""
        tokens_seen = []
        backend.add("GET", "/auth/me", status=401)

        async with ApiClient(
            base_url=BACKEND_URL,
            session=logged_in_session,
            transport=httpx.MockTransport(backend.handler),
            on_unauthorized=lambda _path: tokens_seen.append(logged_in_session.get_token()),
        ) as client:
            with pytest.raises(UnauthorizedError):
                await client.get("/auth/me")

        assert tokens_seen == [None]


@pytest.mark.unit
class TestProbe:
    """Tests for ApiClient.probe."""

    async def test_probe_success(self, backend, api_client):
        backend.add("GET", "/auth", json=[])

        assert await api_client.probe("/auth") is True

    async def test_probe_401_keeps_session(self, backend, logged_in_session, api_client):
        backend.add("GET", "/auth", status=401)

        assert await api_client.probe("/auth") is False
        assert logged_in_session.get_token() == "test-token"

    async def test_probe_unreachable(self, backend, api_client):
        backend.fail("GET", "/auth")

        assert await api_client.probe("/auth") is False

    async def test_probe_sends_no_token(self, backend, logged_in_session, api_client):
        backend.add("GET", "/auth", json=[])

        await api_client.probe("/auth")

        assert "Authorization" not in backend.requests[0].headers
