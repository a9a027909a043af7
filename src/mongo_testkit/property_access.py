"""Read and write object values through dot-separated property paths.

Paths walk attributes, mapping keys and list indexes::

    set_value(user, "address.city", "Berlin")
    get_value(user, "tags.0")
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any

from pydantic import BaseModel

from .exceptions import PropertyPathError


def _split(path: str, target: object) -> list[str]:
    parts = path.split(".")
    if not path or any(not p for p in parts):
        raise PropertyPathError(path, target, "empty path segment")
    return parts


def _read(current: Any, segment: str, path: str, root: object) -> Any:
    if isinstance(current, Mapping):
        if segment not in current:
            raise PropertyPathError(path, root, f"missing key {segment!r}")
        return current[segment]
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        try:
            return current[int(segment)]
        except (ValueError, IndexError) as e:
            raise PropertyPathError(path, root, f"bad index {segment!r}") from e
    try:
        return getattr(current, segment)
    except AttributeError as e:
        raise PropertyPathError(
            path, root, f"{type(current).__name__} has no attribute {segment!r}"
        ) from e


def _write(current: Any, segment: str, value: Any, path: str, root: object) -> None:
    if isinstance(current, MutableMapping):
        current[segment] = value
        return
    if isinstance(current, MutableSequence):
        try:
            current[int(segment)] = value
        except (ValueError, IndexError) as e:
            raise PropertyPathError(path, root, f"bad index {segment!r}") from e
        return
    if isinstance(current, BaseModel):
        if segment not in type(current).model_fields:
            raise PropertyPathError(
                path, root, f"{type(current).__name__} has no field {segment!r}"
            )
    elif not hasattr(current, segment):
        raise PropertyPathError(
            path, root, f"{type(current).__name__} has no attribute {segment!r}"
        )
    try:
        setattr(current, segment, value)
    except (AttributeError, TypeError, ValueError) as e:
        raise PropertyPathError(path, root, str(e)) from e


def get_value(target: object, path: str) -> Any:
    """Return the value at *path*; raises :class:`PropertyPathError`."""
    current: Any = target
    for segment in _split(path, target):
        current = _read(current, segment, path, target)
    return current


def set_value(target: object, path: str, value: Any) -> None:
    """Assign *value* at *path* through normal attribute assignment."""
    *parents, last = _split(path, target)
    current: Any = target
    for segment in parents:
        current = _read(current, segment, path, target)
        if current is None:
            raise PropertyPathError(path, target, f"{segment!r} is None")
    _write(current, last, value, path, target)


def read_field(entity: object, name: str) -> Any:
    """Read a field directly, falling back to its ``_name`` backing attribute.

    Properties and pydantic private attributes are both reachable.
    """
    for candidate in (name, f"_{name}"):
        try:
            return object.__getattribute__(entity, candidate)
        except AttributeError:
            continue
    # pydantic keeps private attributes and extras outside __dict__
    for store in ("__pydantic_private__", "__pydantic_extra__"):
        values = getattr(entity, store, None) or {}
        for candidate in (name, f"_{name}"):
            if candidate in values:
                return values[candidate]
    raise PropertyPathError(name, entity, "no such field")
