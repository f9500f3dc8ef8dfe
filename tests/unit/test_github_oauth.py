"""Tests for the GitHub code exchange endpoint."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from ecopoints.core.config import settings
from ecopoints.interface.github_oauth import get_github_http_client, select_email
from ecopoints.main import app


PROFILE = {
    "id": 583231,
    "login": "octocat",
    "name": None,
    "email": "octocat@public.example",
    "avatar_url": "https://avatars.githubusercontent.com/u/583231",
}


class FakeGitHub:
    """Stand-in for the three GitHub endpoints used by the exchange."""

    def __init__(self) -> None:
        self.token_body: dict = {"access_token": "gho_test", "token_type": "bearer"}
        self.profile_status = 200
        self.profile: dict = dict(PROFILE)
        self.emails_status = 200
        self.emails: list = [
            {"email": "octo-old@example.com", "primary": False, "verified": True},
            {"email": "octocat@example.com", "primary": True, "verified": True},
        ]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url == "https://github.com/login/oauth/access_token":
            return httpx.Response(200, json=self.token_body)
        if url == "https://api.github.com/user":
            return httpx.Response(self.profile_status, json=self.profile)
        if url == "https://api.github.com/user/emails":
            return httpx.Response(self.emails_status, json=self.emails)
        return httpx.Response(404)


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def github_credentials(monkeypatch):
    monkeypatch.setattr(settings, "github_client_id", "client-id")
    monkeypatch.setattr(settings, "github_client_secret", "client-secret")


@pytest.fixture
def client(github):
    """Test client whose GitHub calls go to the fake."""

    async def override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(github.handler)) as http_client:
            yield http_client

    app.dependency_overrides[get_github_http_client] = override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.mark.unit
class TestGitHubOAuthEndpoint:
    """Tests for POST /github-oauth."""

    def test_exchange_returns_canonical_user(self, client, github, github_credentials):
        response = client.post("/github-oauth", json={"code": "abc"})

        assert response.status_code == 200
        assert response.json() == {
            "user": {
                "id": 583231,
                "name": "octocat",
                "email": "octocat@example.com",
                "avatar": "https://avatars.githubusercontent.com/u/583231",
                "provider": "github",
            }
        }

    def test_token_request_carries_credentials(self, client, github, github_credentials):
        client.post("/github-oauth", json={"code": "abc"})

        token_request = github.requests[0]
        assert token_request.headers["Accept"] == "application/json"
        assert json.loads(token_request.read()) == {
            "client_id": "client-id",
            "client_secret": "client-secret",
            "code": "abc",
            "redirect_uri": settings.github_redirect_uri,
        }
        assert github.requests[1].headers["Authorization"] == "Bearer gho_test"

    def test_missing_code(self, client, github_credentials):
        response = client.post("/github-oauth", json={})

        assert response.status_code == 400
        assert response.json() == {"message": "Missing code"}

    def test_missing_credentials(self, client, monkeypatch):
        monkeypatch.setattr(settings, "github_client_id", None)

        response = client.post("/github-oauth", json={"code": "abc"})

        assert response.status_code == 500
        assert response.json()["message"] == "Server missing GitHub client credentials"

    def test_empty_client_secret(self, client, github, github_credentials, monkeypatch):
        """Test an empty secret is rejected before GitHub is contacted."""
        monkeypatch.setattr(settings, "github_client_secret", "")

        response = client.post("/github-oauth", json={"code": "abc"})

        assert response.status_code == 500
        assert response.json() == {"message": "Server missing GitHub client credentials"}
        assert github.requests == []

    def test_token_exchange_failure(self, client, github, github_credentials):
        github.token_body = {"error": "bad_verification_code"}

        response = client.post("/github-oauth", json={"code": "expired"})

        assert response.status_code == 401
        assert response.json()["message"] == "GitHub token exchange failed"
        assert response.json()["detail"] == {"error": "bad_verification_code"}

    def test_profile_failure(self, client, github, github_credentials):
        github.profile_status = 403

        response = client.post("/github-oauth", json={"code": "abc"})

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to fetch GitHub profile"

    def test_email_lookup_failure_uses_profile_email(self, client, github, github_credentials):
        """Test the email lookup is best-effort."""
        github.emails_status = 404

        response = client.post("/github-oauth", json={"code": "abc"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "octocat@public.example"

    def test_github_unreachable(self, github_credentials):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async def override():
            async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as http_client:
                yield http_client

        app.dependency_overrides[get_github_http_client] = override
        try:
            response = TestClient(app).post("/github-oauth", json={"code": "abc"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 502


@pytest.mark.unit
class TestSelectEmail:
    """Tests for select_email function."""

    def test_primary_verified_wins(self):
        emails = [
            {"email": "a@example.com", "primary": True, "verified": False},
            {"email": "b@example.com", "primary": True, "verified": True},
        ]

        assert select_email({"email": "p@example.com", "login": "x"}, emails) == "b@example.com"

    def test_profile_email_before_first_listed(self):
        emails = [{"email": "a@example.com", "primary": False, "verified": True}]

        assert select_email({"email": "p@example.com", "login": "x"}, emails) == "p@example.com"

    def test_first_listed_email(self):
        emails = [{"email": "a@example.com", "primary": False, "verified": False}]

        assert select_email({"email": None, "login": "x"}, emails) == "a@example.com"

    def test_noreply_fallback(self):
        assert select_email({"login": "octocat"}, None) == "octocat@users.noreply.github.com"
