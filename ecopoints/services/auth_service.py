"""Authentication service: credential exchange, profile lookup and session persistence."""

import logging

from ecopoints.core.api_client import ApiClient
from ecopoints.core.envelope import unwrap_object
from ecopoints.core.errors import ApiError, UnauthorizedError
from ecopoints.core.logging import log_with_user_context, span
from ecopoints.domain.user import AuthProvider, User
from ecopoints.models.service_models import AuthResponse
from ecopoints.services.normalizer import canonical_user, normalize_auth_response


logger = logging.getLogger(__name__)


def _persist(client: ApiClient, auth: AuthResponse) -> None:
    """Store token and user together when the response carried either."""
    if auth.token or auth.user is not None:
        client.session.set_session(token=auth.token, user=auth.user)


async def login(client: ApiClient, *, identifier: str, password: str) -> AuthResponse:
    """Exchange credentials for a session.

    The identifier is sent as both name and email, and the password as both
    password and passwordHash, so either backend convention accepts it. When the
    backend answers with neither token nor user (cookie sessions), the profile
    endpoints are consulted instead.

    Args:
        client: API client
        identifier: Username or email
        password: Plain password

    Returns:
        AuthResponse with the canonical user and token (empty for cookie sessions)

    Raises:
        ApiError: If the backend rejects the credentials
    """
    with span("auth_service.login"):
        payload = {
            "name": identifier,
            "email": identifier,
            "password": password,
            "passwordHash": password,
        }
        response = await client.post("/auth/login", payload)
        auth = normalize_auth_response(response, provider=AuthProvider.LOCAL)
        _persist(client, auth)

        if not auth.token and auth.user is None:
            try:
                profile = await get_user_profile(client)
            except UnauthorizedError:
                raise
            except ApiError as e:
                logger.info("Login returned no session data and no profile is reachable: %s", e)
                return auth
            client.session.set_session(token=None, user=profile)
            return AuthResponse(user=profile, token="")

        log_with_user_context(
            logger, "info", "User logged in", user_id=auth.user.identity_key if auth.user else None
        )
        return auth


async def sign_up(client: ApiClient, *, name: str, email: str, password: str) -> AuthResponse:
    """Register a new account and persist the resulting session.

    Raises:
        ApiError: If registration is rejected
    """
    with span("auth_service.sign_up"):
        payload = {
            "name": name,
            "email": email,
            "password": password,
            "passwordHash": password,
        }
        response = await client.post("/auth/register", payload)
        auth = normalize_auth_response(response, provider=AuthProvider.LOCAL)
        _persist(client, auth)
        log_with_user_context(
            logger, "info", "User registered", user_id=auth.user.identity_key if auth.user else None
        )
        return auth


async def logout(client: ApiClient) -> None:
    """Notify the backend and clear the session regardless of the outcome."""
    with span("auth_service.logout"):
        try:
            await client.post("/auth/logout")
        except ApiError as e:
            logger.warning("Logout request failed: %s", e)
        finally:
            client.session.clear_session()


async def get_user_profile(client: ApiClient) -> User:
    """Fetch the current user's profile.

    Tries /user/profile, /auth/me and /auth/{id} in order, then the stored
    user. A 401 always propagates.

    Raises:
        UnauthorizedError: If the backend rejects the session
        ApiError: If no source yields a profile
    """
    with span("auth_service.get_user_profile"):
        stored = client.session.get_user()
        paths = ["/user/profile", "/auth/me"]
        if stored is not None and stored.id is not None:
            paths.append(f"/auth/{stored.id}")

        for path in paths:
            try:
                response = await client.get(path)
            except UnauthorizedError:
                raise
            except ApiError as e:
                logger.debug("Profile lookup via %s failed: %s", path, e)
                continue
            user = canonical_user(unwrap_object(response, keys=("data", "user")))
            if user is not None:
                return user

        if stored is not None:
            return stored

        raise ApiError("Unable to fetch user profile")


async def exchange_oauth_code(
    client: ApiClient,
    *,
    provider: AuthProvider | str,
    code: str,
    redirect_uri: str | None = None,
) -> AuthResponse:
    """Trade an OAuth authorization code for a session via the backend.

    Raises:
        ApiError: If the backend rejects the code
    """
    provider = AuthProvider(provider)
    with span("auth_service.exchange_oauth_code"):
        payload: dict[str, str] = {"code": code}
        if redirect_uri:
            payload["redirectUri"] = redirect_uri
        response = await client.post(f"/auth/oauth/{provider}", payload)
        auth = normalize_auth_response(response, provider=provider)
        _persist(client, auth)
        log_with_user_context(
            logger,
            "info",
            "OAuth code exchanged",
            user_id=auth.user.identity_key if auth.user else None,
            provider=str(provider),
        )
        return auth


def get_current_user_id(client: ApiClient) -> str | None:
    """Return the stored user's id as a string, if any."""
    return client.session.get_user_id()
