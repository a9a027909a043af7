"""MongoDB ModelMapper with BSON type preservation."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar

from bson.decimal128 import Decimal128
from pydantic import BaseModel, ValidationError

from .exceptions import DocumentMappingError

T_Entity = TypeVar("T_Entity", bound=BaseModel)


class MongoDBModelMapper(Generic[T_Entity]):
    """
    MongoDB-specific entity ↔ document mapper.

    Uses PyMongo's native type conversion (NOT JSON serialization).
    Uses model_dump(mode='python') to preserve native types. PyMongo converts
    datetime/UUID/bytes → BSON itself; Decimal → Decimal128 is handled here.
    """

    def __init__(
        self,
        entity_cls: type[T_Entity],
        *,
        id_field: str = "id",
    ) -> None:
        self.entity_cls = entity_cls
        self._id_field = id_field

    def to_doc(self, entity: T_Entity) -> dict[str, Any]:
        """
        Convert Pydantic entity → MongoDB document.
        Maps the id field → _id; a missing or None id is left out.
        """
        data = entity.model_dump(mode="python")
        if self._id_field in data:
            entity_id = data.pop(self._id_field)
            if entity_id is not None:
                data["_id"] = entity_id
        return serialize_value(data)

    def from_doc(self, doc: dict[str, Any]) -> T_Entity:
        """
        Convert MongoDB document → validated Pydantic entity.
        Maps _id → id field; Decimal128 → Decimal.
        """
        data = self._doc_data(doc)
        try:
            return self.entity_cls.model_validate(data)
        except ValidationError as e:
            raise DocumentMappingError(
                f"Document {data.get(self._id_field)!r} cannot be mapped to "
                f"{self.entity_cls.__name__}: {e}"
            ) from e

    def hydrate(self, data: dict[str, Any]) -> T_Entity:
        """Build an entity from raw field values without running validation.

        Field defaults are applied; validators and custom ``__init__`` are not.
        """
        return self.entity_cls.model_construct(**data)

    def hydrate_doc(self, doc: dict[str, Any]) -> T_Entity:
        """Convert a stored document to an entity without running validation."""
        return self.hydrate(self._doc_data(doc))

    def _doc_data(self, doc: dict[str, Any]) -> dict[str, Any]:
        data = deserialize_value(dict(doc))
        if "_id" in data:
            doc_id = data.pop("_id")
            if self._id_field in self.entity_cls.model_fields:
                data[self._id_field] = doc_id
        return data

    def from_docs(self, docs: list[dict[str, Any]]) -> list[T_Entity]:
        """Convert multiple documents to entities."""
        return [self.from_doc(d) for d in docs]


def serialize_value(value: Any) -> Any:
    """Recursively convert values PyMongo cannot encode (Decimal, Enum, models)."""
    if isinstance(value, Decimal):
        return Decimal128(str(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return serialize_value(value.model_dump(mode="python"))
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [serialize_value(v) for v in value]
    return value


def deserialize_value(value: Any) -> Any:
    """Recursively convert BSON-specific values back (Decimal128 → Decimal)."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, dict):
        return {k: deserialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [deserialize_value(v) for v in value]
    return value
