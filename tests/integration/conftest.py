"""Real MongoDB fixtures (testcontainers)."""

from __future__ import annotations

import pytest

from mongo_testkit import DocumentManager, MongoConnectionManager, RepositoryModule


@pytest.fixture(scope="module")
def mongo_container():
    """Create a MongoDB container using testcontainers."""
    pytest.importorskip("testcontainers")

    from testcontainers.mongodb import MongoDbContainer

    with MongoDbContainer("mongo:7.0") as mongo:
        yield mongo


@pytest.fixture
def real_module(mongo_container):
    """RepositoryModule over a real MongoDB; the users collection starts empty."""
    connection = MongoConnectionManager(mongo_container.get_connection_url())
    module = RepositoryModule(DocumentManager(connection, "testkit_it"))
    with module.session():
        module.drop_collection("documents.User")
        yield module
