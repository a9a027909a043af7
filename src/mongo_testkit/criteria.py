"""Compile test criteria mappings into MongoDB filter documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .model_mapper import serialize_value

if TYPE_CHECKING:
    from .metadata import DocumentMetadata


def _is_operator_doc(value: Any) -> bool:
    return (
        isinstance(value, Mapping)
        and bool(value)
        and all(isinstance(k, str) and k.startswith("$") for k in value)
    )


def _compile_field(field: str, metadata: DocumentMetadata) -> str:
    # The id field (and paths below it) live under _id in storage
    if field == metadata.id_field:
        return "_id"
    prefix = f"{metadata.id_field}."
    if field.startswith(prefix) and metadata.has_id_field:
        return "_id." + field[len(prefix) :]
    return field


def _compile_value(value: Any) -> Any:
    if _is_operator_doc(value):
        return {op: serialize_value(v) for op, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return {"$in": serialize_value(value)}
    return serialize_value(value)


def compile_criteria(
    criteria: Mapping[str, Any] | None, metadata: DocumentMetadata
) -> dict[str, Any]:
    """Build a MongoDB filter from a field-path → value mapping.

    - Dot-separated paths address nested documents (``"address.city"``).
    - The entity id field is stored as ``_id``.
    - Sequence values match any member (``$in``).
    - Operator documents (``{"$gte": 5}``) and ``$``-prefixed top-level
      keys (``$or``) pass through.
    """
    if not criteria:
        return {}
    match: dict[str, Any] = {}
    for field, value in criteria.items():
        if field.startswith("$"):
            match[field] = value
            continue
        match[_compile_field(field, metadata)] = _compile_value(value)
    return match
