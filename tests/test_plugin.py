"""Tests for the pytest plugin, run in isolated pytester sessions."""

from __future__ import annotations

import pytest

CONFTEST = """
import mongomock
import pytest

from mongo_testkit import Container, DocumentManager, MongoConnectionManager

pytest_plugins = ["mongo_testkit.plugin"]


@pytest.fixture(scope="session")
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def document_manager(mongo_client):
    connection = MongoConnectionManager(
        "mongodb://mock:27017", client_factory=lambda url, **kwargs: mongo_client
    )
    return DocumentManager(connection, "plugin_db")


@pytest.fixture
def app_container(document_manager):
    container = Container()
    container.register("document_manager", document_manager)
    return container


@pytest.fixture(scope="session")
def suite_container(mongo_client):
    connection = MongoConnectionManager(
        "mongodb://mock:27017", client_factory=lambda url, **kwargs: mongo_client
    )
    container = Container()
    container.register("document_manager", DocumentManager(connection, "suite_db"))
    return container


@pytest.fixture
def not_a_container():
    return 42
"""

MODELS = """
from pydantic import BaseModel


class Customer(BaseModel):
    id: str | None = None
    name: str
"""


@pytest.fixture
def project(pytester: pytest.Pytester) -> pytest.Pytester:
    pytester.makeconftest(CONFTEST)
    pytester.makepyfile(plugin_models=MODELS)
    return pytester


def test_module_fixture_from_container(project: pytest.Pytester) -> None:
    project.makeini("[pytest]\nmongo_testkit_depends = app_container\n")
    project.makepyfile(
        test_customers="""
        from plugin_models import Customer

        def test_seed(repository_module):
            customer_id = repository_module.hydrate_and_persist(
                Customer, {"name": "Miles"}
            )
            repository_module.assert_exists(Customer, {"id": customer_id})

        def test_data_from_previous_test_is_visible(repository_module):
            assert repository_module.fetch_field(
                "plugin_models.Customer", "name", {"name": "Miles"}
            ) == "Miles"
        """
    )

    result = project.runpytest()

    result.assert_outcomes(passed=2)


def test_module_fixture_from_document_manager(project: pytest.Pytester) -> None:
    project.makeini("[pytest]\nmongo_testkit_depends = document_manager\n")
    project.makepyfile(
        test_direct="""
        from plugin_models import Customer

        def test_direct(repository_module, document_manager):
            assert repository_module.document_manager is document_manager
            repository_module.persist(Customer, {"name": "A"})
            repository_module.assert_absent(Customer, {"name": "B"})
        """
    )

    project.runpytest().assert_outcomes(passed=1)


def test_failed_assertion_is_a_test_failure(project: pytest.Pytester) -> None:
    project.makeini("[pytest]\nmongo_testkit_depends = app_container\n")
    project.makepyfile(
        test_fail="""
        from plugin_models import Customer

        def test_missing(repository_module):
            repository_module.assert_exists(Customer, {"name": "Nobody"})
        """
    )

    result = project.runpytest()

    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines(["*AssertionError: No Customer document matches*"])


def test_missing_depends_option_errors_setup(project: pytest.Pytester) -> None:
    project.makepyfile(
        test_unconfigured="""
        def test_needs_module(repository_module):
            pass
        """
    )

    result = project.runpytest()

    result.assert_outcomes(errors=1)
    result.stdout.fnmatch_lines(["*ModuleConfigError*", "*mongo_testkit_depends*"])


def test_wrong_collaborator_type_errors_setup(project: pytest.Pytester) -> None:
    project.makeini("[pytest]\nmongo_testkit_depends = not_a_container\n")
    project.makepyfile(
        test_wrong="""
        def test_needs_module(repository_module):
            pass
        """
    )

    result = project.runpytest()

    result.assert_outcomes(errors=1)
    result.stdout.fnmatch_lines(["*expected a service container*"])


def test_custom_service_id(project: pytest.Pytester) -> None:
    project.makeini(
        "[pytest]\n"
        "mongo_testkit_depends = app_container\n"
        "mongo_testkit_service_id = odm.default\n"
    )
    project.makepyfile(
        test_service_id="""
        def test_needs_module(repository_module):
            pass
        """
    )

    result = project.runpytest()

    result.assert_outcomes(errors=1)
    result.stdout.fnmatch_lines(["*DocumentManager can't be obtained*"])


def test_suite_fixture_acquires_once(project: pytest.Pytester) -> None:
    project.makeini("[pytest]\nmongo_testkit_depends = suite_container\n")
    project.makepyfile(
        test_suite="""
        import pytest
        from plugin_models import Customer

        @pytest.fixture(scope="session", autouse=True)
        def seeded(repository_suite):
            repository_suite.hydrate_and_persist(Customer, {"name": "Shared"})

        def test_first(repository_suite):
            repository_suite.assert_exists(Customer, {"name": "Shared"})
            repository_suite.persist(Customer, {"name": "Second"})

        def test_same_module_stays_connected(repository_suite):
            assert repository_suite.document_manager.connection.is_connected
            assert len(repository_suite.fetch_all(Customer)) == 2
        """
    )

    project.runpytest().assert_outcomes(passed=2)


def test_suite_fixture_rejects_function_scoped_depends(
    project: pytest.Pytester,
) -> None:
    project.makeini("[pytest]\nmongo_testkit_depends = app_container\n")
    project.makepyfile(
        test_scope="""
        def test_needs_suite(repository_suite):
            pass
        """
    )

    result = project.runpytest()

    result.assert_outcomes(errors=1)
    result.stdout.fnmatch_lines(["*ScopeMismatch*"])
