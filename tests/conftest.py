"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

from ecopoints.core.api_client import ApiClient
from ecopoints.core.session_store import SessionStore
from ecopoints.domain.user import User


BACKEND_URL = "http://backend.test"

Responder = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Route table served through httpx.MockTransport.

    Unregistered routes answer 404 `{"message": "Not Found"}`, like the real
    backend does for features it has not implemented.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Responder] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *, status: int = 200, json: Any = None) -> None:
        """Answer `method path` with a JSON body (no body when json is None)."""

        def respond(request: httpx.Request) -> httpx.Response:
            if json is None:
                return httpx.Response(status)
            return httpx.Response(status, json=json)

        self.routes[(method.upper(), path)] = respond

    def add_handler(self, method: str, path: str, responder: Responder) -> None:
        self.routes[(method.upper(), path)] = responder

    def fail(self, method: str, path: str) -> None:
        """Make a route fail without any response."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        self.routes[(method.upper(), path)] = refuse

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return responder(request)

    def paths(self) -> list[str]:
        return [f"{request.method} {request.url.path}" for request in self.requests]


@pytest.fixture
def session_store() -> SessionStore:
    """Fresh in-memory session for each test."""
    return SessionStore()


@pytest.fixture
def logged_in_session(session_store: SessionStore) -> SessionStore:
    """Session holding a token and the user with id 1."""
    session_store.set_session(token="test-token", user=User(id=1, name="Alice", email="alice@example.com"))
    return session_store


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def api_client(backend: FakeBackend, session_store: SessionStore) -> AsyncIterator[ApiClient]:
    """API client wired to the fake backend and the test session."""
    async with ApiClient(
        base_url=BACKEND_URL,
        session=session_store,
        transport=httpx.MockTransport(backend.handler),
    ) as client:
        yield client
