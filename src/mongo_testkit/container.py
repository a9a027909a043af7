"""Service container the repository module obtains its document manager from."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .exceptions import ServiceNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_DOCUMENT_MANAGER_ID = "document_manager"


@runtime_checkable
class ServiceContainer(Protocol):
    """Anything that hands out services by id."""

    def get(self, service_id: str) -> Any: ...


class Container:
    """Minimal service container: ``service_id`` → instance or lazy factory.

    **Explicit registration** is required. Create one container per test
    session (or per application context) for isolation.

    Usage::

        container = Container()
        container.register("document_manager", factory=build_document_manager)
        dm = container.get("document_manager")  # built once, then reused
    """

    def __init__(self) -> None:
        self._instances: dict[str, Any] = {}
        self._factories: dict[str, Callable[[], Any]] = {}

    def register(
        self,
        service_id: str,
        instance: Any = None,
        *,
        factory: Callable[[], Any] | None = None,
    ) -> None:
        """Register an *instance* or a *factory* under *service_id*."""
        if (instance is None) == (factory is None):
            raise ValueError("Provide exactly one of 'instance' or 'factory'")
        self._instances.pop(service_id, None)
        self._factories.pop(service_id, None)
        if factory is not None:
            self._factories[service_id] = factory
        else:
            self._instances[service_id] = instance

    def get(self, service_id: str) -> Any:
        """Return the service; factories run on first access only."""
        if service_id in self._instances:
            return self._instances[service_id]
        factory = self._factories.get(service_id)
        if factory is None:
            raise ServiceNotFoundError(service_id)
        instance = self._instances[service_id] = factory()
        return instance

    def has(self, service_id: str) -> bool:
        return service_id in self._instances or service_id in self._factories

    def reset(self) -> None:
        """Forget built instances; factories are kept and rebuild on next access."""
        for service_id in self._factories:
            self._instances.pop(service_id, None)
