"""
Identity map and write scheduling for the document manager.

Changes are buffered in memory until :meth:`DocumentUnitOfWork.commit`
(``DocumentManager.flush``) writes them. Managed entities are change-tracked
against a snapshot of their last written/loaded document, so only modified
documents are rewritten.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bson import ObjectId

from .model_mapper import MongoDBModelMapper

if TYPE_CHECKING:
    from pydantic import BaseModel

    from .metadata import DocumentMetadata, DocumentRegistry

logger = logging.getLogger("mongo_testkit.uow")


class _Entry:
    __slots__ = ("entity", "metadata", "doc_id", "snapshot")

    def __init__(
        self,
        entity: BaseModel,
        metadata: DocumentMetadata,
        doc_id: Any,
        snapshot: dict[str, Any] | None,
    ) -> None:
        self.entity = entity
        self.metadata = metadata
        self.doc_id = doc_id
        # None until the entity has been written or loaded
        self.snapshot = snapshot

    @property
    def key(self) -> tuple[str, Any]:
        return (self.metadata.collection, self.doc_id)


class DocumentUnitOfWork:
    """
    Tracks managed entities for one document manager.

    - ``persist``: schedule a new entity for insert.
    - ``remove``: schedule a managed entity for deletion.
    - ``register_loaded``: put a fetched document in the identity map;
      loading the same ``_id`` twice yields the same instance.
    - ``commit``: write inserts and changed entities, then deletions.
    """

    def __init__(self, registry: DocumentRegistry) -> None:
        self._registry = registry
        self._entries: dict[int, _Entry] = {}
        self._identity_map: dict[tuple[str, Any], _Entry] = {}
        self._scheduled_removals: dict[int, _Entry] = {}

    def _mapper(self, metadata: DocumentMetadata) -> MongoDBModelMapper[Any]:
        return MongoDBModelMapper(metadata.entity_cls, id_field=metadata.id_field)

    def contains(self, entity: BaseModel) -> bool:
        key = id(entity)
        return key in self._entries and key not in self._scheduled_removals

    def is_scheduled_for_removal(self, entity: BaseModel) -> bool:
        return id(entity) in self._scheduled_removals

    def persist(self, entity: BaseModel) -> None:
        key = id(entity)
        if key in self._scheduled_removals:
            del self._scheduled_removals[key]
            return
        if key in self._entries:
            return
        metadata = self._registry.for_entity(entity)
        doc_id = self._ensure_id(entity, metadata)
        entry = _Entry(entity, metadata, doc_id, snapshot=None)
        self._entries[key] = entry
        self._identity_map[entry.key] = entry

    def remove(self, entity: BaseModel) -> None:
        entry = self._entries.get(id(entity))
        if entry is None:
            logger.debug("Ignoring removal of unmanaged %s", type(entity).__name__)
            return
        if entry.snapshot is None:
            # never written; just forget it
            self._detach(entry)
            return
        self._scheduled_removals[id(entity)] = entry

    def register_loaded(
        self, metadata: DocumentMetadata, doc: dict[str, Any], entity: BaseModel
    ) -> BaseModel:
        """Track a freshly loaded entity; return the managed instance for its id."""
        existing = self._identity_map.get((metadata.collection, doc["_id"]))
        if existing is not None:
            return existing.entity
        snapshot = self._mapper(metadata).to_doc(entity)
        snapshot["_id"] = doc["_id"]
        entry = _Entry(entity, metadata, doc["_id"], snapshot=snapshot)
        self._entries[id(entity)] = entry
        self._identity_map[entry.key] = entry
        return entity

    def lookup(self, metadata: DocumentMetadata, doc_id: Any) -> BaseModel | None:
        entry = self._identity_map.get((metadata.collection, doc_id))
        return entry.entity if entry is not None else None

    def commit(self, database: Any) -> None:
        """Write pending changes to *database*."""
        written = 0
        for entry in list(self._entries.values()):
            if id(entry.entity) in self._scheduled_removals:
                continue
            doc = self._mapper(entry.metadata).to_doc(entry.entity)
            doc["_id"] = entry.doc_id
            if doc == entry.snapshot:
                continue
            database.get_collection(entry.metadata.collection).replace_one(
                {"_id": entry.doc_id}, doc, upsert=True
            )
            entry.snapshot = doc
            written += 1

        removed = 0
        for entry in list(self._scheduled_removals.values()):
            database.get_collection(entry.metadata.collection).delete_one(
                {"_id": entry.doc_id}
            )
            self._detach(entry)
            removed += 1
        self._scheduled_removals.clear()
        logger.debug("Flushed %d write(s), %d removal(s)", written, removed)

    def detach_collection(self, collection: str) -> None:
        for entry in list(self._entries.values()):
            if entry.metadata.collection == collection:
                self._detach(entry)

    def clear(self) -> None:
        self._entries.clear()
        self._identity_map.clear()
        self._scheduled_removals.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _detach(self, entry: _Entry) -> None:
        self._entries.pop(id(entry.entity), None)
        self._scheduled_removals.pop(id(entry.entity), None)
        if self._identity_map.get(entry.key) is entry:
            del self._identity_map[entry.key]

    @staticmethod
    def _ensure_id(entity: BaseModel, metadata: DocumentMetadata) -> Any:
        if not metadata.has_id_field:
            return ObjectId()
        entity_id = getattr(entity, metadata.id_field, None)
        if entity_id is None:
            entity_id = str(ObjectId())
            object.__setattr__(entity, metadata.id_field, entity_id)
        return entity_id
