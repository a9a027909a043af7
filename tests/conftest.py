"""Test configuration for mongo-testkit."""

from __future__ import annotations

import mongomock
import pytest

from mongo_testkit import (
    Container,
    DocumentManager,
    DocumentRegistry,
    MongoConnectionManager,
    RepositoryModule,
)

pytest_plugins = ["pytester"]


@pytest.fixture
def mongo_client():
    """In-memory MongoDB client (mongomock); survives close()/connect() cycles."""
    return mongomock.MongoClient()


@pytest.fixture
def mongo_connection(mongo_client):
    return MongoConnectionManager(
        "mongodb://mock:27017",
        client_factory=lambda url, **kwargs: mongo_client,
    )


@pytest.fixture
def raw_db(mongo_client):
    """Direct database access, bypassing the document manager."""
    return mongo_client.get_database("test_db")


@pytest.fixture
def registry():
    return DocumentRegistry()


@pytest.fixture
def document_manager(mongo_connection, registry):
    dm = DocumentManager(mongo_connection, "test_db", registry)
    dm.connect()
    yield dm
    dm.close()


@pytest.fixture
def container(document_manager):
    container = Container()
    container.register("document_manager", document_manager)
    return container


@pytest.fixture
def module(container):
    """A RepositoryModule acquired for the current test."""
    module = RepositoryModule(container=container)
    module.before_test()
    yield module
    module.after_test()
