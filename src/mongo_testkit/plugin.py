"""pytest plugin wiring :class:`RepositoryModule` into fixtures.

Enable it from a ``conftest.py``::

    pytest_plugins = ["mongo_testkit.plugin"]

and name the fixture that supplies the service container (or the document
manager itself) in the ini file::

    [pytest]
    mongo_testkit_depends = app_container

``repository_module`` acquires the document manager for every test
(``before_test`` / ``after_test``). ``repository_suite`` acquires it once per
session through ``before_suite`` and needs a session-scoped ``depends``
fixture. Both tear down the shared manager, so use one of them per manager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from .container import DEFAULT_DOCUMENT_MANAGER_ID, ServiceContainer
from .document_manager import IDocumentManager
from .exceptions import ModuleConfigError
from .module import DEPENDENCY_MESSAGE, ModuleConfig, RepositoryModule

if TYPE_CHECKING:
    from collections.abc import Iterator


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addini(
        "mongo_testkit_depends",
        "Fixture supplying the service container or document manager.",
        default=None,
    )
    parser.addini(
        "mongo_testkit_service_id",
        "Id of the document manager in the service container.",
        default=DEFAULT_DOCUMENT_MANAGER_ID,
    )


@pytest.fixture(scope="session")
def mongo_testkit_config(pytestconfig: pytest.Config) -> ModuleConfig:
    return ModuleConfig(
        depends=pytestconfig.getini("mongo_testkit_depends") or None,
        service_id=pytestconfig.getini("mongo_testkit_service_id")
        or DEFAULT_DOCUMENT_MANAGER_ID,
    )


def _build_module(
    request: pytest.FixtureRequest, config: ModuleConfig
) -> RepositoryModule:
    if not config.depends:
        raise ModuleConfigError(
            "RepositoryModule",
            "No 'mongo_testkit_depends' option set.\n \n" + DEPENDENCY_MESSAGE,
        )
    collaborator = request.getfixturevalue(config.depends)

    if isinstance(collaborator, IDocumentManager):
        return RepositoryModule(collaborator, config=config)
    if isinstance(collaborator, ServiceContainer):
        module = RepositoryModule(config=config)
        module.inject(collaborator)
        return module
    raise ModuleConfigError(
        "RepositoryModule",
        f"Fixture {config.depends!r} returned {type(collaborator).__name__}, "
        "expected a service container or a document manager.",
    )


@pytest.fixture
def repository_module(
    request: pytest.FixtureRequest, mongo_testkit_config: ModuleConfig
) -> Iterator[RepositoryModule]:
    """A connected :class:`RepositoryModule`; cleared and closed after the test."""
    module = _build_module(request, mongo_testkit_config)
    with module.session():
        yield module


@pytest.fixture(scope="session")
def repository_suite(
    request: pytest.FixtureRequest, mongo_testkit_config: ModuleConfig
) -> Iterator[RepositoryModule]:
    """A :class:`RepositoryModule` acquired once through ``before_suite``.

    Meant for seeding shared data; the ``depends`` fixture must be
    session-scoped. Cleared and closed when the session ends.
    """
    module = _build_module(request, mongo_testkit_config)
    module.before_suite()
    try:
        yield module
    finally:
        module.after_test()
