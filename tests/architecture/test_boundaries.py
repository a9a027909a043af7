from pytest_archon import archrule


def test_only_plugin_depends_on_pytest() -> None:
    """
    The helpers must stay usable from any test runner.
    Only the pytest plugin module may import pytest.
    """
    (
        archrule("pytest_only_in_plugin")
        .match("mongo_testkit*")
        .exclude("mongo_testkit.plugin")
        .should_not_import("pytest*")
        .should_not_import("_pytest*")
        .check("mongo_testkit")
    )


def test_exceptions_isolation() -> None:
    """
    Exceptions are the lowest level.
    They must not import anything else from the package.
    """
    (
        archrule("exceptions_isolation")
        .match("mongo_testkit.exceptions")
        .should_not_import("mongo_testkit.*")
        .check("mongo_testkit", only_direct_imports=True)
    )


def test_document_manager_layering() -> None:
    """
    The document manager layer must not depend on the repository module,
    the pytest plugin, or the service container.
    """
    (
        archrule("document_manager_layering")
        .match("mongo_testkit.connection")
        .match("mongo_testkit.criteria")
        .match("mongo_testkit.document_manager")
        .match("mongo_testkit.metadata")
        .match("mongo_testkit.model_mapper")
        .match("mongo_testkit.property_access")
        .match("mongo_testkit.repository")
        .match("mongo_testkit.unit_of_work")
        .should_not_import("mongo_testkit.module")
        .should_not_import("mongo_testkit.plugin")
        .should_not_import("mongo_testkit.container")
        .check("mongo_testkit", only_direct_imports=True)
    )


def test_container_independence() -> None:
    """
    The service container knows nothing about documents.
    """
    (
        archrule("container_independence")
        .match("mongo_testkit.container")
        .should_not_import("mongo_testkit.document_manager")
        .should_not_import("mongo_testkit.module")
        .should_not_import("pymongo*")
        .should_not_import("pydantic*")
        .should_not_import("bson*")
        .check("mongo_testkit", only_direct_imports=True)
    )
