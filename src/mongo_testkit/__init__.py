"""Test helpers for asserting on and seeding MongoDB documents.

Includes the repository module (assertion/mutation helpers with test
lifecycle hooks), the synchronous document manager it drives, and the
service container it obtains the manager from.
"""

from __future__ import annotations

from .connection import MongoConnectionManager
from .container import DEFAULT_DOCUMENT_MANAGER_ID, Container, ServiceContainer
from .criteria import compile_criteria
from .document_manager import DocumentManager, IDocumentManager
from .exceptions import (
    DocumentMappingError,
    DocumentNotFoundError,
    ModuleConfigError,
    MongoConnectionError,
    MongoPersistenceError,
    MongoTestkitError,
    PropertyPathError,
    ServiceNotFoundError,
    UnknownDocumentError,
)
from .metadata import DocumentMetadata, DocumentRegistry
from .model_mapper import MongoDBModelMapper
from .module import ModuleConfig, RepositoryModule
from .property_access import get_value, read_field, set_value
from .repository import DocumentRepository
from .unit_of_work import DocumentUnitOfWork

__all__ = [
    # Module
    "RepositoryModule",
    "ModuleConfig",
    # Document manager
    "DocumentManager",
    "IDocumentManager",
    "DocumentRepository",
    "DocumentUnitOfWork",
    "DocumentRegistry",
    "DocumentMetadata",
    "MongoConnectionManager",
    "MongoDBModelMapper",
    # Container
    "Container",
    "ServiceContainer",
    "DEFAULT_DOCUMENT_MANAGER_ID",
    # Utilities
    "compile_criteria",
    "get_value",
    "set_value",
    "read_field",
    # Exceptions
    "MongoTestkitError",
    "ModuleConfigError",
    "ServiceNotFoundError",
    "UnknownDocumentError",
    "MongoPersistenceError",
    "MongoConnectionError",
    "DocumentMappingError",
    "PropertyPathError",
    "DocumentNotFoundError",
]
