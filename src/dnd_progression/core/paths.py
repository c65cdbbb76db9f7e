"""Dotted-path helpers for nested document data.

Documents are updated in batches of ``"system.abilities.str.value"`` style
paths. These helpers read, write, and diff plain nested dictionaries using
that notation. Lists are treated as leaf values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


_MISSING = object()


def get_path(data: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Read a value from nested mappings.

    Args:
        data: Nested mapping (or pydantic model dump) to read from.
        path: Dot-separated key path.
        default: Value returned when any segment is missing.

    Returns:
        The value at ``path`` or ``default``.
    """
    current: Any = data
    for key in path.split("."):
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        else:
            return default
    return current


def has_path(data: Mapping[str, Any], path: str) -> bool:
    """Check whether every segment of ``path`` exists."""
    return get_path(data, path, _MISSING) is not _MISSING


def set_path(data: dict[str, Any], path: str, value: Any) -> None:
    """Write a value into nested dictionaries, creating parents as needed.

    Args:
        data: Nested dictionary to modify in place.
        path: Dot-separated key path.
        value: Value to store.
    """
    *parents, leaf = path.split(".")
    current = data
    for key in parents:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[leaf] = value


def delete_path(data: dict[str, Any], path: str) -> bool:
    """Remove the value at ``path``.

    Returns:
        True if something was removed.
    """
    *parents, leaf = path.split(".")
    current: Any = data
    for key in parents:
        if not isinstance(current, dict) or key not in current:
            return False
        current = current[key]
    if isinstance(current, dict) and leaf in current:
        del current[leaf]
        return True
    return False


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into a ``{dotted.path: leaf}`` dictionary.

    Empty mappings are kept as leaves so that flattening and expanding
    round-trip.
    """
    flat: dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping) and value:
            flat.update(flatten(value, path))
        else:
            flat[path] = value
    return flat


def expand(flat: Mapping[str, Any]) -> dict[str, Any]:
    """Expand a ``{dotted.path: value}`` mapping into nested dictionaries."""
    data: dict[str, Any] = {}
    for path, value in flat.items():
        set_path(data, path, value)
    return data


def diff_data(before: Any, after: Any, prefix: str) -> dict[str, Any]:
    """Compute the dotted-path changes that turn ``before`` into ``after``.

    When a mapping lost keys, the whole mapping is emitted at its own path,
    so the result never needs a separate list of deletions.

    Args:
        before: Original value.
        after: Updated value.
        prefix: Path of the compared values.

    Returns:
        Mapping of dotted path to the new value at that path.
    """
    if isinstance(before, Mapping) and isinstance(after, Mapping):
        if set(before) - set(after):
            return {prefix: dict(after)}
        changes: dict[str, Any] = {}
        for key, value in after.items():
            path = f"{prefix}.{key}"
            if key not in before:
                changes[path] = value
            else:
                changes.update(diff_data(before[key], value, path))
        return changes
    if before != after:
        return {prefix: after}
    return {}


__all__ = [
    "get_path",
    "has_path",
    "set_path",
    "delete_path",
    "flatten",
    "expand",
    "diff_data",
]
