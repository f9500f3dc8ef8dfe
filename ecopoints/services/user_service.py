"""User service for account listing and management."""

import logging
from typing import Any

from ecopoints.core.api_client import ApiClient
from ecopoints.core.envelope import unwrap_object
from ecopoints.core.errors import ApiError
from ecopoints.core.logging import span
from ecopoints.domain.user import OpaqueId, User
from ecopoints.services.normalizer import canonical_list, canonical_user


logger = logging.getLogger(__name__)


def _require_user(payload: Any, context: str) -> User:  # noqa: ANN401
    user = canonical_user(unwrap_object(payload, keys=("data", "user")))
    if user is None:
        raise ApiError(f"Backend returned no user for {context}")
    return user


async def get_all_users(client: ApiClient) -> list[User]:
    """List every user. HAL `_embedded.userDtoList` responses are accepted."""
    with span("user_service.get_all_users"):
        response = await client.get("/auth")
        users = [user for user in canonical_list(response, "user", canonical_user) if user is not None]
        logger.info("Fetched %d users", len(users))
        return users


async def get_user_by_id(client: ApiClient, *, user_id: OpaqueId) -> User:
    with span("user_service.get_user_by_id"):
        response = await client.get(f"/auth/{user_id}")
        return _require_user(response, f"id {user_id}")


async def update_user(client: ApiClient, *, user_id: OpaqueId, updates: dict[str, Any]) -> User:
    """Update a user's account fields.

    The cached session user is refreshed when it is the one being updated.
    """
    with span("user_service.update_user"):
        response = await client.put(f"/auth/update/{user_id}", updates)
        user = _require_user(response, f"id {user_id}")
        stored = client.session.get_user()
        if stored is not None and stored.identity_key == str(user_id):
            client.session.set_session(token=client.session.get_token(), user=user)
        return user


async def delete_user(client: ApiClient, *, user_id: OpaqueId) -> None:
    with span("user_service.delete_user"):
        await client.delete(f"/auth/delete/{user_id}")
        logger.info("Deleted user %s", user_id)
