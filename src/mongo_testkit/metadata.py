"""DocumentRegistry — resolves descriptors to document classes and collections."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel

from .exceptions import UnknownDocumentError

Descriptor = Union[str, type[BaseModel]]


@dataclass(frozen=True)
class DocumentMetadata:
    """Mapping information for one document class."""

    entity_cls: type[BaseModel]
    collection: str
    id_field: str = "id"

    @property
    def name(self) -> str:
        return self.entity_cls.__name__

    @property
    def has_id_field(self) -> bool:
        return self.id_field in self.entity_cls.model_fields


class DocumentRegistry:
    """Registry for mapping descriptors → :class:`DocumentMetadata`.

    A descriptor is a model class, an alias given to :meth:`register`, a bare
    class name, or an importable dotted path (``"app.models.User"`` /
    ``"app.models:User"``). A bare name that is not registered is looked up
    among the loaded model classes and must match exactly one of them.
    Classes are registered on first use when not registered explicitly.

    The collection name defaults to the ``__collection__`` class attribute,
    then to the class name.

    Usage::

        registry = DocumentRegistry()
        registry.register(User, collection="users")
        registry.resolve("User").collection  # "users"
    """

    def __init__(self) -> None:
        self._by_class: dict[type[BaseModel], DocumentMetadata] = {}
        self._aliases: dict[str, type[BaseModel]] = {}

    def register(
        self,
        entity_cls: type[BaseModel],
        *,
        collection: str | None = None,
        id_field: str = "id",
        alias: str | None = None,
    ) -> DocumentMetadata:
        """Register *entity_cls* and return its metadata."""
        if not (isinstance(entity_cls, type) and issubclass(entity_cls, BaseModel)):
            raise TypeError(f"{entity_cls!r} is not a pydantic model class")
        metadata = DocumentMetadata(
            entity_cls=entity_cls,
            collection=collection or _default_collection(entity_cls),
            id_field=id_field,
        )
        self._by_class[entity_cls] = metadata
        self._aliases[alias or entity_cls.__name__] = entity_cls
        return metadata

    def resolve(self, descriptor: Descriptor) -> DocumentMetadata:
        """Return metadata for *descriptor*; raises :class:`UnknownDocumentError`."""
        if isinstance(descriptor, str):
            entity_cls = self._aliases.get(descriptor) or _import_class(descriptor)
        else:
            entity_cls = descriptor
        if not (isinstance(entity_cls, type) and issubclass(entity_cls, BaseModel)):
            raise UnknownDocumentError(descriptor)
        metadata = self._by_class.get(entity_cls)
        if metadata is None:
            metadata = self.register(entity_cls)
        return metadata

    def for_entity(self, entity: Any) -> DocumentMetadata:
        """Return metadata for an entity instance."""
        if not isinstance(entity, BaseModel):
            raise UnknownDocumentError(type(entity))
        return self.resolve(type(entity))

    def has(self, descriptor: Descriptor) -> bool:
        if isinstance(descriptor, str):
            return descriptor in self._aliases
        return descriptor in self._by_class

    def list_registered(self) -> list[DocumentMetadata]:
        return list(self._by_class.values())

    def clear(self) -> None:
        """Remove all registrations (testing utility)."""
        self._by_class.clear()
        self._aliases.clear()


def _default_collection(entity_cls: type[BaseModel]) -> str:
    collection = getattr(entity_cls, "__collection__", None)
    return collection if isinstance(collection, str) else entity_cls.__name__


def _import_class(path: str) -> Any:
    if ":" in path:
        module_name, _, attr = path.partition(":")
    elif "." in path:
        module_name, _, attr = path.rpartition(".")
    else:
        return _find_model(path)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise UnknownDocumentError(path) from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise UnknownDocumentError(path) from e


def _find_model(name: str) -> type[BaseModel]:
    matches = {cls for cls in _model_classes() if cls.__name__ == name}
    if len(matches) != 1:
        raise UnknownDocumentError(name)
    return matches.pop()


def _model_classes() -> list[type[BaseModel]]:
    found: list[type[BaseModel]] = []
    pending = list(BaseModel.__subclasses__())
    while pending:
        cls = pending.pop()
        if cls in found:
            continue
        found.append(cls)
        pending.extend(cls.__subclasses__())
    return found
