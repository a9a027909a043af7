"""Exceptions raised by mongo-testkit."""

from __future__ import annotations


class MongoTestkitError(Exception):
    """Root exception for the entire mongo-testkit package."""


class ModuleConfigError(MongoTestkitError):
    """Raised when the repository module cannot obtain a usable document manager.

    Fatal: the suite or test setup must stop.
    """

    def __init__(self, module: str, message: str) -> None:
        self.module = module
        super().__init__(f"{module} module is not configured!\n \n{message}")


class ServiceNotFoundError(MongoTestkitError, KeyError):
    """Raised when a service id is not registered in the container."""

    def __init__(self, service_id: str) -> None:
        self.service_id = service_id
        super().__init__(f"Service {service_id!r} is not registered")

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownDocumentError(MongoTestkitError):
    """Raised when a descriptor does not resolve to a document class."""

    def __init__(self, descriptor: object) -> None:
        self.descriptor = descriptor
        super().__init__(f"Cannot resolve document class for {descriptor!r}")


class MongoPersistenceError(MongoTestkitError):
    """Base for MongoDB persistence errors."""


class MongoConnectionError(MongoPersistenceError):
    """Raised when connection to MongoDB fails."""


class DocumentMappingError(MongoPersistenceError):
    """Raised when a stored document cannot be mapped back to its model."""


class PropertyPathError(MongoTestkitError, AttributeError):
    """Raised when a property path cannot be read or written."""

    def __init__(self, path: str, target: object, reason: str = "") -> None:
        self.path = path
        self.target_type = (
            target.__name__ if isinstance(target, type) else type(target).__name__
        )
        msg = f"Invalid property path {path!r} for {self.target_type}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DocumentNotFoundError(MongoTestkitError):
    """Raised when a lookup that requires a match finds nothing."""

    def __init__(self, document: str, criteria: object) -> None:
        self.document = document
        self.criteria = criteria
        super().__init__(f"No {document} document matches {criteria!r}")
