"""Local key-value storage for the authenticated session.

The session is the auth token plus the cached canonical user. Both are written
together on login and erased together on logout or a 401 response.
"""

import json
import logging
import threading
from collections.abc import Iterator, MutableMapping
from pathlib import Path

from pydantic import ValidationError

from ecopoints.core.config import constants
from ecopoints.domain.user import User


logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(MutableMapping[str, str]):
    """Thread-safe string key-value store kept in process memory."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def __getitem__(self, key: str) -> str:
        with self._lock:
            return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = str(value)

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._data[key]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._data))

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class FileKeyValueStore(MutableMapping[str, str]):
    """String key-value store persisted as a JSON object in a file.

    Every write rewrites the whole file. Last writer wins.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.warning("Session file %s is corrupt, starting empty: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data), encoding="utf-8")

    def __getitem__(self, key: str) -> str:
        with self._lock:
            return self._load()[key]

    def __setitem__(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = str(value)
            self._save(data)

    def __delitem__(self, key: str) -> None:
        with self._lock:
            data = self._load()
            del data[key]
            self._save(data)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._load()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._load())


class SessionStore:
    """Session state passed explicitly to the API client.

    Args:
        backend: Key-value mapping to persist into (in-memory when omitted)
    """

    def __init__(self, backend: MutableMapping[str, str] | None = None) -> None:
        self._backend: MutableMapping[str, str] = backend if backend is not None else InMemoryKeyValueStore()

    def get_token(self) -> str | None:
        """Return the stored auth token, or None when absent or empty."""
        return self._backend.get(constants.AUTH_TOKEN_KEY) or None

    def get_user(self) -> User | None:
        """Return the cached user, or None when absent or unreadable."""
        raw = self._backend.get(constants.USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring unreadable stored user: %s", e)
            return None

    def get_user_id(self) -> str | None:
        """Return the cached user's backend id as a string, or None when it has none."""
        user = self.get_user()
        if user is None or user.id is None:
            return None
        return str(user.id)

    def set_session(self, *, token: str | None, user: User | None) -> None:
        """Write token and user together, erasing whichever is missing."""
        if token:
            self._backend[constants.AUTH_TOKEN_KEY] = token
        else:
            self._backend.pop(constants.AUTH_TOKEN_KEY, None)

        if user is not None:
            self._backend[constants.USER_KEY] = user.model_dump_json(exclude_none=True)
        else:
            self._backend.pop(constants.USER_KEY, None)

        logger.debug("Session stored", extra={"has_token": bool(token), "has_user": user is not None})

    def clear_session(self) -> None:
        """Erase both token and user."""
        self._backend.pop(constants.AUTH_TOKEN_KEY, None)
        self._backend.pop(constants.USER_KEY, None)
        logger.info("Session cleared")

    def has_created_custom_activity(self) -> bool:
        """Whether this client has ever created a custom activity type."""
        return self._backend.get(constants.CUSTOM_ACTIVITY_FLAG_KEY) == "true"

    def mark_custom_activity_created(self) -> None:
        """Record that a custom activity type was created."""
        self._backend[constants.CUSTOM_ACTIVITY_FLAG_KEY] = "true"


def create_session_store(session_file: Path | None = None) -> SessionStore:
    """Build a session store backed by a file when a path is given, else memory."""
    if session_file is not None:
        return SessionStore(FileKeyValueStore(session_file))
    return SessionStore()
