"""DocumentRepository — criteria lookups for one document class."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .criteria import compile_criteria
from .exceptions import DocumentMappingError
from .model_mapper import MongoDBModelMapper

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pydantic import BaseModel

    from .metadata import DocumentMetadata
    from .unit_of_work import DocumentUnitOfWork

logger = logging.getLogger("mongo_testkit.repository")


class DocumentRepository:
    """Read access to one collection. Results are managed by the unit of work.

    Queries hit the database; writes still pending in the unit of work are not
    visible until the document manager is flushed.
    """

    def __init__(
        self,
        collection: Any,
        metadata: DocumentMetadata,
        uow: DocumentUnitOfWork,
    ) -> None:
        self._collection = collection
        self._metadata = metadata
        self._uow = uow
        self._mapper: MongoDBModelMapper[Any] = MongoDBModelMapper(
            metadata.entity_cls, id_field=metadata.id_field
        )

    @property
    def metadata(self) -> DocumentMetadata:
        return self._metadata

    def _managed(self, doc: dict[str, Any]) -> BaseModel:
        existing = self._uow.lookup(self._metadata, doc["_id"])
        if existing is not None:
            return existing
        try:
            entity = self._mapper.from_doc(doc)
        except DocumentMappingError as e:
            # Stored through the unvalidated hydrate path
            logger.debug("Loading %s without validation: %s", self._metadata.name, e)
            entity = self._mapper.hydrate_doc(doc)
        return self._uow.register_loaded(self._metadata, doc, entity)

    def find(self, entity_id: Any) -> BaseModel | None:
        """Load one document by id."""
        doc = self._collection.find_one({"_id": entity_id})
        return self._managed(doc) if doc is not None else None

    def find_one(self, criteria: Mapping[str, Any] | None = None) -> BaseModel | None:
        """Return the first document matching *criteria*, or None."""
        doc = self._collection.find_one(compile_criteria(criteria, self._metadata))
        return self._managed(doc) if doc is not None else None

    def find_all(self, criteria: Mapping[str, Any] | None = None) -> list[BaseModel]:
        """Return every document matching *criteria*."""
        cursor = self._collection.find(compile_criteria(criteria, self._metadata))
        return [self._managed(doc) for doc in cursor]

    def count(self, criteria: Mapping[str, Any] | None = None) -> int:
        return self._collection.count_documents(
            compile_criteria(criteria, self._metadata)
        )
