"""MongoConnectionManager — PyMongo client lifecycle and health check."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .exceptions import MongoConnectionError

if TYPE_CHECKING:
    from collections.abc import Callable

    ClientFactory = Callable[..., Any]

logger = logging.getLogger("mongo_testkit.connection")


class MongoConnectionManager:
    """Wrap a PyMongo client with connect/close and health-check helpers.

    ``client_factory`` replaces :class:`pymongo.MongoClient` (e.g. with
    ``mongomock.MongoClient`` in tests); it receives the url and the
    client keyword arguments.
    """

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        *,
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        client_factory: ClientFactory | None = None,
        **kwargs: Any,
    ) -> None:
        self._url = url
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._client_factory = client_factory or MongoClient
        self._kwargs = kwargs
        self._client: Any = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self) -> Any:
        """Create and cache the client. Idempotent."""
        if self._client is not None:
            return self._client
        try:
            self._client = self._client_factory(
                self._url,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                connectTimeoutMS=self._connect_timeout_ms,
                **self._kwargs,
            )
        except (PyMongoError, TypeError, ValueError) as e:
            raise MongoConnectionError(str(e)) from e
        logger.debug("Connected to %s", _sanitize_url(self._url))
        return self._client

    @property
    def client(self) -> Any:
        """Return the client; raises if not connected."""
        if self._client is None:
            raise MongoConnectionError("Not connected; call connect() first")
        return self._client

    def close(self) -> None:
        """Close the client. Idempotent."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("Closed connection to %s", _sanitize_url(self._url))

    def health_check(self) -> bool:
        """Ping the server; return True if reachable."""
        if self._client is None:
            return False
        try:
            self._client.admin.command("ping")
            return True
        except PyMongoError:
            return False


def _sanitize_url(url: str) -> str:
    """Hide the password in a MongoDB URL for safe logging."""
    if "://" not in url or "@" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" not in credentials:
        return url
    username = credentials.split(":", 1)[0]
    return f"{scheme}://{username}:***@{host}"
