"""HTTP transport for the EcoPoints API.

Attaches the stored bearer token to every request, invalidates the session on
a 401 response, and turns failures into classified ApiError subclasses.
"""

import json
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any, Self

import httpx

from ecopoints.core.config import settings
from ecopoints.core.errors import NetworkError, classify_status, extract_error_message
from ecopoints.core.logging import log_with_context
from ecopoints.core.session_store import SessionStore


logger = logging.getLogger(__name__)


UnauthorizedHandler = Callable[[str], None]


def _log_redirect(login_path: str) -> None:
    logger.warning("Session invalidated, redirecting to %s", login_path)


def _decode_body(response: httpx.Response) -> Any:  # noqa: ANN401
    """Decode a response body: JSON when possible, raw text otherwise, None when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text


class ApiClient:
    """Async client bound to one backend base URL and one session store.

    Args:
        base_url: Backend root, e.g. "http://localhost:3000/api"
        session: Session store supplying the token and receiving invalidations
        transport: Optional httpx transport (used by tests and ASGI mounting)
        on_unauthorized: Called with the login path after a 401 clears the session
        login_path: Redirect target passed to on_unauthorized
    """

    def __init__(
        self,
        *,
        base_url: str = settings.api_base_url,
        session: SessionStore,
        transport: httpx.AsyncBaseTransport | None = None,
        on_unauthorized: UnauthorizedHandler | None = None,
        login_path: str = settings.login_path,
    ) -> None:
        self.session = session
        self.login_path = login_path
        self.redirect_target: str | None = None
        self._on_unauthorized = on_unauthorized or _log_redirect
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        token = self.session.get_token()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _handle_unauthorized(self) -> None:
        """Erase local auth state and redirect to the login surface. Never retries."""
        self.session.clear_session()
        self.redirect_target = self.login_path
        self._on_unauthorized(self.login_path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,  # noqa: ANN401
        params: dict[str, Any] | None = None,
    ) -> Any:  # noqa: ANN401
        """Send one request and return the decoded body.

        Raises:
            NetworkError: If no response was received
            ApiError: Classified subclass for any non-2xx response
        """
        try:
            response = await self._client.request(
                method,
                path,
                json=json_body,
                params=params,
                headers=self._auth_headers(),
            )
        except httpx.TransportError as e:
            log_with_context(
                logger, "warning", "Request failed without response", method=method, path=path, error=str(e)
            )
            raise NetworkError() from e

        body = _decode_body(response)

        if response.is_success:
            return body

        log_with_context(
            logger,
            "warning",
            "Request rejected by backend",
            method=method,
            path=path,
            status_code=response.status_code,
        )

        error = classify_status(response.status_code, extract_error_message(body))
        if response.status_code == httpx.codes.UNAUTHORIZED:
            self._handle_unauthorized()
        raise error

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:  # noqa: ANN401
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_body: Any = None) -> Any:  # noqa: ANN401
        return await self.request("POST", path, json_body=json_body)

    async def put(self, path: str, json_body: Any = None) -> Any:  # noqa: ANN401
        return await self.request("PUT", path, json_body=json_body)

    async def delete(self, path: str) -> Any:  # noqa: ANN401
        return await self.request("DELETE", path)

    async def probe(self, path: str) -> bool:
        """Unauthenticated GET that skips 401 handling; True on a 2xx answer."""
        try:
            response = await self._client.get(path)
        except httpx.TransportError as e:
            logger.info("Probe of %s failed: %s", path, e)
            return False
        return response.is_success
