"""GitHub OAuth code exchange endpoint.

Trades the authorization code from the GitHub callback for an access token,
reads the profile and primary email, and answers with a canonical user. The
client secret stays on the server.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ecopoints.core.config import constants, settings
from ecopoints.core.logging import span
from ecopoints.domain.user import AuthProvider, User
from ecopoints.services.normalizer import canonical_user


router = APIRouter(tags=["oauth"])
logger = logging.getLogger(__name__)


class GitHubCodeRequest(BaseModel):
    """Body of the exchange request."""

    code: str | None = None


class GitHubExchangeError(Exception):
    """Exchange failure carrying the HTTP status to answer with."""

    def __init__(self, message: str, *, status_code: int, detail: Any = None) -> None:  # noqa: ANN401
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail


async def get_github_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Provide an HTTP client for the GitHub API."""
    async with httpx.AsyncClient() as client:
        yield client


def select_email(profile: dict[str, Any], emails: Any) -> str:  # noqa: ANN401
    """Pick the user's email: primary verified, then profile email, then the first listed, then noreply."""
    listed = [entry for entry in emails if isinstance(entry, dict)] if isinstance(emails, list) else []
    primary = next((entry for entry in listed if entry.get("primary") and entry.get("verified")), None)
    candidates = (
        primary.get("email") if primary else None,
        profile.get("email"),
        listed[0].get("email") if listed else None,
    )
    for candidate in candidates:
        if candidate:
            return candidate
    return f"{profile.get('login')}@users.noreply.github.com"


async def exchange_github_code(
    http_client: httpx.AsyncClient,
    *,
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
) -> User:
    """Exchange an authorization code for the GitHub user's canonical profile.

    Raises:
        GitHubExchangeError: 401 when GitHub issues no access token,
            502 when the profile cannot be fetched
    """
    with span("github_oauth.exchange_github_code"):
        token_response = await http_client.post(
            constants.GITHUB_TOKEN_URL,
            headers={"Accept": "application/json"},
            json={
                "client_id": client_id,
                "client_secret": client_secret,
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )
        try:
            token_body = token_response.json()
        except ValueError:
            token_body = {}
        access_token = token_body.get("access_token") if isinstance(token_body, dict) else None
        if not access_token:
            logger.warning("GitHub token exchange failed", extra={"status_code": token_response.status_code})
            raise GitHubExchangeError("GitHub token exchange failed", status_code=401, detail=token_body)

        github_headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        }

        profile_response = await http_client.get(constants.GITHUB_USER_URL, headers=github_headers)
        if not profile_response.is_success:
            logger.error("GitHub profile fetch failed", extra={"status_code": profile_response.status_code})
            raise GitHubExchangeError(
                "Failed to fetch GitHub profile", status_code=502, detail=profile_response.text
            )
        profile = profile_response.json()

        # Email lookup is best-effort
        emails: Any = None
        try:
            emails_response = await http_client.get(constants.GITHUB_EMAILS_URL, headers=github_headers)
            if emails_response.is_success:
                emails = emails_response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.info("GitHub email lookup failed: %s", e)

        user = canonical_user(
            {
                "id": profile.get("id"),
                "name": profile.get("name") or profile.get("login"),
                "email": select_email(profile, emails),
                "avatar_url": profile.get("avatar_url"),
            },
            provider=AuthProvider.GITHUB,
        )
        if user is None:
            raise GitHubExchangeError("GitHub profile has no identity", status_code=502, detail=profile)

        logger.info("GitHub user authenticated", extra={"user_id": user.identity_key})
        return user


@router.post("/github-oauth")
async def github_oauth(
    body: GitHubCodeRequest,
    http_client: httpx.AsyncClient = Depends(get_github_http_client),  # noqa: B008
) -> JSONResponse:
    """Exchange a GitHub authorization code and return `{user}`."""
    if not body.code:
        return JSONResponse(status_code=400, content={"message": "Missing code"})

    try:
        client_id = settings.require_credential("github_client_id", "GitHub client ID")
        client_secret = settings.require_credential("github_client_secret", "GitHub client secret")
    except ValueError as e:
        logger.error("GitHub client credentials not configured: %s", e)
        return JSONResponse(status_code=500, content={"message": "Server missing GitHub client credentials"})

    try:
        user = await exchange_github_code(
            http_client,
            code=body.code,
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=settings.github_redirect_uri,
        )
    except GitHubExchangeError as e:
        return JSONResponse(status_code=e.status_code, content={"message": e.message, "detail": e.detail})
    except httpx.HTTPError as e:
        logger.error("GitHub unreachable during code exchange: %s", e)
        return JSONResponse(status_code=502, content={"message": "GitHub unreachable"})

    return JSONResponse(status_code=200, content={"user": user.model_dump(mode="json", exclude_none=True)})
