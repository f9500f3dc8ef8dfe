"""Helpers for locating payloads inside heterogeneous response envelopes.

The backend has returned lists bare (`[...]`), wrapped (`{"data": [...]}`),
double-wrapped (`{"data": {"items": [...]}}`), HAL-style
(`{"_embedded": {"userDtoList": [...]}}`) and under arbitrary keys. These
helpers find the payload without per-endpoint special-casing.
"""

import math
from collections.abc import Iterable, Mapping
from typing import Any


WRAPPER_KEYS: tuple[str, ...] = ("data", "items", "results")
HAL_EMBEDDED_KEY = "_embedded"


def _search_keys(payload: Mapping[str, Any], keys: Iterable[str]) -> list[Any] | None:
    """Find a list under one of the keys, looking one level deep into mapping values."""
    keys = tuple(keys)
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, Mapping):
            for inner_key in keys:
                inner = value.get(inner_key)
                if isinstance(inner, list):
                    return inner
    return None


def unwrap_list(payload: Any, resource_keys: Iterable[str] = ()) -> list[Any]:
    """Return the list a response carries, or an empty list.

    Search order: the payload itself if it is a list; the wrapper keys
    (data, items, results) followed by the resource-specific keys, each also
    one level deep; the first list inside a HAL `_embedded` object; the first
    list-valued property of the object.

    Args:
        payload: Decoded JSON body
        resource_keys: Extra wrapper names for this resource (e.g. "challenges")

    Returns:
        The inner list, unchanged, or [] when none is found
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, Mapping):
        return []

    found = _search_keys(payload, (*WRAPPER_KEYS, *resource_keys))
    if found is not None:
        return found

    embedded = payload.get(HAL_EMBEDDED_KEY)
    if isinstance(embedded, Mapping):
        for value in embedded.values():
            if isinstance(value, list):
                return value

    for value in payload.values():
        if isinstance(value, list):
            return value

    return []


def unwrap_object(payload: Any, keys: Iterable[str] = ("data",)) -> dict[str, Any]:
    """Return the mapping inside a `{data: {...}}` style envelope, or the payload itself.

    Non-mapping payloads yield an empty dict.
    """
    if not isinstance(payload, Mapping):
        return {}
    for key in keys:
        inner = payload.get(key)
        if isinstance(inner, Mapping):
            return dict(inner)
    return dict(payload)


def get_path(record: Any, path: str) -> Any:
    """Resolve a dotted path such as "activityType.points"; None when any hop is missing."""
    current = record
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def pick(record: Any, *paths: str) -> Any:
    """Return the value of the first path that is present and not null."""
    for path in paths:
        value = get_path(record, path)
        if value is not None:
            return value
    return None


def to_number(value: Any, default: float = 0.0) -> float:
    """Parse a number explicitly, falling back to the default instead of NaN."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_int(value: Any, default: int = 0) -> int:
    """Parse an integer explicitly; fractional values are truncated."""
    return int(to_number(value, float(default)))


def to_bool(value: Any) -> bool:
    """Interpret JSON-ish truthy flags ("true", 1, True)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return False
