"""
RepositoryModule — test helpers over a MongoDB document manager.

The module borrows a document manager for the duration of one test case and
layers assertion-oriented helpers on top of it. Every helper goes straight to
the manager; nothing is cached between calls.

The manager is either passed explicitly or looked up in a service container
(the collaborator named by the ``depends`` option)::

    module = RepositoryModule(config=ModuleConfig(depends="app_container"))
    module.inject(container)
    with module.session():
        user_id = module.hydrate_and_persist(User, {"name": "Miles"})
        module.assert_exists(User, {"name": "Miles"})
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from .container import DEFAULT_DOCUMENT_MANAGER_ID, ServiceContainer
from .document_manager import IDocumentManager
from .exceptions import (
    DocumentNotFoundError,
    ModuleConfigError,
    PropertyPathError,
    ServiceNotFoundError,
)
from .property_access import read_field, set_value

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from pydantic import BaseModel

    from .metadata import Descriptor, DocumentMetadata

logger = logging.getLogger("mongo_testkit.module")

_MODULE_NAME = "RepositoryModule"

DEPENDENCY_MESSAGE = """Example using:
--
[pytest]
mongo_testkit_depends = app_container
--
where ``app_container`` is a fixture returning a service container
(or the document manager itself)."""


@dataclass(frozen=True)
class ModuleConfig:
    """Configuration of :class:`RepositoryModule`.

    Attributes:
        depends: Name of the collaborator supplying the document manager
            (for the pytest plugin, a fixture name).
        service_id: Id of the document manager inside the container.
    """

    depends: str | None = None
    service_id: str = DEFAULT_DOCUMENT_MANAGER_ID

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> ModuleConfig:
        options = dict(options or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ModuleConfigError(
                _MODULE_NAME, f"Unknown option(s): {', '.join(unknown)}"
            )
        return cls(**options)


def _describe(descriptor: Descriptor) -> str:
    return descriptor if isinstance(descriptor, str) else descriptor.__name__


def _check_fields(entity_cls: type[BaseModel], values: Mapping[str, Any]) -> None:
    # Construction would silently drop keys that are not fields
    known = set(entity_cls.model_fields)
    known.update(f.alias for f in entity_cls.model_fields.values() if f.alias)
    for key in values:
        if key not in known:
            raise PropertyPathError(
                key, entity_cls, f"{entity_cls.__name__} has no field {key!r}"
            )


class RepositoryModule:
    """Assertion and mutation helpers over a document manager.

    Lifecycle hooks (``before_suite``, ``before_test``, ``after_test``) acquire
    the manager, connect it, and on teardown clear its identity map and close
    the connection.
    """

    def __init__(
        self,
        document_manager: IDocumentManager | None = None,
        *,
        container: ServiceContainer | None = None,
        config: ModuleConfig | Mapping[str, Any] | None = None,
    ) -> None:
        if config is None or not isinstance(config, ModuleConfig):
            config = ModuleConfig.from_mapping(config)
        self.config = config
        self._provided = document_manager
        self._container = container
        self._dm: IDocumentManager | None = None

    # ── Lifecycle ───────────────────────────────────────────────

    def inject(self, container: ServiceContainer | None) -> None:
        """Attach the collaborator the document manager is looked up in."""
        self._container = container

    def before_suite(self) -> None:
        self._acquire()

    def before_test(self) -> None:
        self._acquire()

    def after_test(self) -> None:
        if self._dm is None:
            return
        self._dm.clear()
        self._dm.close()

    @contextlib.contextmanager
    def session(self) -> Iterator[RepositoryModule]:
        """Run ``before_test`` / ``after_test`` around a block."""
        self.before_test()
        try:
            yield self
        finally:
            self.after_test()

    def _acquire(self) -> None:
        dm = self._provided
        if dm is None and self._container is not None:
            try:
                dm = self._container.get(self.config.service_id)
            except ServiceNotFoundError:
                dm = None

        if dm is None:
            raise ModuleConfigError(
                _MODULE_NAME,
                "DocumentManager can't be obtained.\n \n" + DEPENDENCY_MESSAGE,
            )
        if not isinstance(dm, IDocumentManager):
            raise ModuleConfigError(
                _MODULE_NAME,
                f"{type(dm).__name__} does not implement the document manager "
                "contract (IDocumentManager).",
            )

        self._dm = dm
        dm.connect()

    @property
    def document_manager(self) -> IDocumentManager:
        if self._dm is None:
            raise ModuleConfigError(
                _MODULE_NAME,
                "DocumentManager is not acquired; call before_test() first.",
            )
        return self._dm

    # ── Helpers ─────────────────────────────────────────────────

    def _metadata(self, descriptor: Descriptor) -> DocumentMetadata:
        return self.document_manager.get_repository(descriptor).metadata

    def flush(self) -> None:
        """Write pending changes to the database."""
        self.document_manager.flush()

    def persist(
        self,
        entity: BaseModel | Descriptor,
        values: Mapping[str, Any] | None = None,
    ) -> BaseModel:
        """Persist an entity and flush. *values* override its properties.

        A descriptor is instantiated with the plain (non-dotted) values; the
        rest are assigned through their property paths::

            module.persist(User, {"name": "Miles", "address.city": "Berlin"})
            module.persist(user, {"name": "Miles"})
        """
        values = dict(values or {})
        if isinstance(entity, (str, type)):
            entity_cls = self._metadata(entity).entity_cls
            plain = {k: values.pop(k) for k in list(values) if "." not in k}
            _check_fields(entity_cls, plain)
            entity = entity_cls(**plain)

        for path, value in values.items():
            set_value(entity, path, value)

        self.document_manager.persist(entity)
        self.document_manager.flush()
        return entity

    def hydrate_and_persist(
        self, descriptor: Descriptor, data: Mapping[str, Any]
    ) -> Any:
        """Create an entity from raw *data*, skipping validation, and flush.

        Returns the generated id, or None when the type has no id field.
        """
        dm = self.document_manager
        entity = dm.hydrate(descriptor, dict(data))
        dm.persist(entity)
        dm.flush()

        metadata = self._metadata(descriptor)
        if not metadata.has_id_field:
            return None
        entity_id = getattr(entity, metadata.id_field, None)
        logger.debug("%s entity created with id:%s", _describe(descriptor), entity_id)
        return entity_id

    def assert_exists(
        self, descriptor: Descriptor, criteria: Mapping[str, Any] | None = None
    ) -> None:
        """Flush, then fail unless a document matches *criteria*.

        Dotted paths query nested documents::

            module.assert_exists(User, {"name": "tst", "permissions.perm": "edit"})
        """
        self.flush()
        found = self.document_manager.get_repository(descriptor).find_one(criteria)
        if found is None:
            raise AssertionError(
                f"No {_describe(descriptor)} document matches {dict(criteria or {})!r}"
            )

    def assert_absent(
        self, descriptor: Descriptor, criteria: Mapping[str, Any] | None = None
    ) -> None:
        """Flush, then fail if a document matches *criteria*."""
        self.flush()
        found = self.document_manager.get_repository(descriptor).find_one(criteria)
        if found is not None:
            raise AssertionError(
                f"Unexpected {_describe(descriptor)} document matches "
                f"{dict(criteria or {})!r}: {found!r}"
            )

    def fetch_field(
        self,
        descriptor: Descriptor,
        field: str,
        criteria: Mapping[str, Any] | None = None,
    ) -> Any:
        """Return *field* of the first matching entity.

        Raises DocumentNotFoundError when nothing matches.
        """
        entity = self.fetch_one(descriptor, criteria)
        if entity is None:
            raise DocumentNotFoundError(_describe(descriptor), dict(criteria or {}))
        return read_field(entity, field)

    def fetch_all(
        self, descriptor: Descriptor, criteria: Mapping[str, Any] | None = None
    ) -> list[BaseModel]:
        self.flush()
        return self.document_manager.get_repository(descriptor).find_all(criteria)

    def fetch_one(
        self, descriptor: Descriptor, criteria: Mapping[str, Any] | None = None
    ) -> BaseModel | None:
        self.flush()
        return self.document_manager.get_repository(descriptor).find_one(criteria)

    def delete_matching(
        self, descriptor: Descriptor, criteria: Mapping[str, Any]
    ) -> int:
        """Remove every document matching *criteria*; returns how many."""
        dm = self.document_manager
        matches = dm.get_repository(descriptor).find_all(criteria)
        for entity in matches:
            dm.remove(entity)
        dm.flush()
        return len(matches)

    def drop_collection(self, descriptor: Descriptor) -> None:
        """Drop the whole collection behind *descriptor*. Irreversible."""
        self.document_manager.drop_collection(descriptor)
