"""DocumentManager — the document store handle used by the repository module."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .metadata import DocumentRegistry
from .model_mapper import MongoDBModelMapper
from .repository import DocumentRepository
from .unit_of_work import DocumentUnitOfWork

if TYPE_CHECKING:
    from pydantic import BaseModel

    from .connection import MongoConnectionManager
    from .metadata import Descriptor

logger = logging.getLogger("mongo_testkit.document_manager")


@runtime_checkable
class IDocumentManager(Protocol):
    """Contract a document store handle must satisfy for the repository module."""

    def get_repository(self, descriptor: Descriptor) -> DocumentRepository: ...

    def get_collection(self, descriptor: Descriptor) -> Any: ...

    def drop_collection(self, descriptor: Descriptor) -> None: ...

    def persist(self, entity: BaseModel) -> None: ...

    def remove(self, entity: BaseModel) -> None: ...

    def flush(self) -> None: ...

    def clear(self) -> None: ...

    def hydrate(self, descriptor: Descriptor, data: dict[str, Any]) -> BaseModel: ...

    def connect(self) -> None: ...

    def close(self) -> None: ...


class DocumentManager:
    """
    Synchronous object-document manager over PyMongo.

    Persisted and removed entities are buffered until :meth:`flush`.
    Entities loaded through repositories are tracked in an identity map, so
    the same document id always yields the same instance until
    :meth:`clear`.

    Usage::

        connection = MongoConnectionManager("mongodb://localhost:27017")
        dm = DocumentManager(connection, "app_test")
        dm.connect()
        dm.persist(User(name="Miles"))
        dm.flush()
        dm.get_repository(User).find_one({"name": "Miles"})
    """

    def __init__(
        self,
        connection: MongoConnectionManager,
        database: str,
        registry: DocumentRegistry | None = None,
    ) -> None:
        self._connection = connection
        self._database_name = database
        self._registry = registry or DocumentRegistry()
        self._uow = DocumentUnitOfWork(self._registry)

    @property
    def connection(self) -> MongoConnectionManager:
        return self._connection

    @property
    def registry(self) -> DocumentRegistry:
        return self._registry

    @property
    def unit_of_work(self) -> DocumentUnitOfWork:
        return self._uow

    @property
    def database(self) -> Any:
        return self._connection.client.get_database(self._database_name)

    def connect(self) -> None:
        self._connection.connect()

    def close(self) -> None:
        self._connection.close()

    def health_check(self) -> bool:
        return self._connection.health_check()

    def get_repository(self, descriptor: Descriptor) -> DocumentRepository:
        metadata = self._registry.resolve(descriptor)
        return DocumentRepository(
            self.database.get_collection(metadata.collection), metadata, self._uow
        )

    def get_collection(self, descriptor: Descriptor) -> Any:
        metadata = self._registry.resolve(descriptor)
        return self.database.get_collection(metadata.collection)

    def hydrate(self, descriptor: Descriptor, data: dict[str, Any]) -> BaseModel:
        """Construct an entity from *data* without validation."""
        metadata = self._registry.resolve(descriptor)
        mapper = MongoDBModelMapper(metadata.entity_cls, id_field=metadata.id_field)
        return mapper.hydrate(data)

    def persist(self, entity: BaseModel) -> None:
        self._uow.persist(entity)

    def remove(self, entity: BaseModel) -> None:
        self._uow.remove(entity)

    def contains(self, entity: BaseModel) -> bool:
        return self._uow.contains(entity)

    def flush(self) -> None:
        self._uow.commit(self.database)

    def clear(self) -> None:
        """Detach every managed entity; pending changes are discarded."""
        self._uow.clear()

    def drop_collection(self, descriptor: Descriptor) -> None:
        """Drop the whole collection and forget the entities tracked in it."""
        metadata = self._registry.resolve(descriptor)
        self.get_collection(metadata.entity_cls).drop()
        self._uow.detach_collection(metadata.collection)
        logger.debug("Dropped collection %s", metadata.collection)
