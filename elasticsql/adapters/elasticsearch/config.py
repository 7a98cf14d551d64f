"""Elasticsearch configuration with direct field-based connection settings."""

import contextlib
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional, TypedDict, Union

from typing_extensions import NotRequired

from elasticsql.adapters.elasticsearch._types import ElasticsearchConnection
from elasticsql.adapters.elasticsearch.driver import ElasticsearchDriver, elasticsearch_statement_config
from elasticsql.config import NoPoolSyncConfig
from elasticsql.exceptions import ImproperConfigurationError
from elasticsql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

    from elasticsql.core.statement import StatementConfig


logger = get_logger("adapters.elasticsearch")


class ElasticsearchConnectionParams(TypedDict, total=False):
    """Elasticsearch client parameters."""

    hosts: NotRequired[Union[str, list[str], list[dict[str, Any]]]]
    cloud_id: NotRequired[str]
    api_key: NotRequired[Union[str, tuple[str, str]]]
    basic_auth: NotRequired[Union[str, tuple[str, str]]]
    bearer_auth: NotRequired[str]
    opaque_id: NotRequired[str]
    headers: NotRequired[dict[str, str]]
    verify_certs: NotRequired[bool]
    ca_certs: NotRequired[str]
    client_cert: NotRequired[str]
    client_key: NotRequired[str]
    ssl_assert_fingerprint: NotRequired[str]
    request_timeout: NotRequired[float]
    max_retries: NotRequired[int]
    retry_on_timeout: NotRequired[bool]
    extra: NotRequired[dict[str, Any]]


__all__ = ("ElasticsearchConfig", "ElasticsearchConnectionParams")


class ElasticsearchConfig(NoPoolSyncConfig[ElasticsearchConnection, ElasticsearchDriver]):
    """Configuration for querying Elasticsearch through its SQL API.

    The client is created lazily on first use and reused afterwards.
    """

    driver_type: ClassVar[type[ElasticsearchDriver]] = ElasticsearchDriver
    connection_type: "ClassVar[type[ElasticsearchConnection]]" = ElasticsearchConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[ElasticsearchConnectionParams, dict[str, Any]]]" = None,
        connection_instance: "Optional[ElasticsearchConnection]" = None,
        on_connection_create: "Optional[Callable[[ElasticsearchConnection], None]]" = None,
        statement_config: "Optional[StatementConfig]" = None,
    ) -> None:
        """Initialize Elasticsearch configuration.

        Args:
            connection_config: Client constructor arguments. Keys under ``extra``
                are passed to the client as-is.
            connection_instance: Existing client to use instead of creating one.
            on_connection_create: Callback executed when a client is created.
            statement_config: Default statement configuration for sessions.

        Example:
            >>> config = ElasticsearchConfig(
            ...     connection_config={
            ...         "hosts": "http://localhost:9200",
            ...         "basic_auth": ("elastic", "changeme"),
            ...     }
            ... )
        """
        flattened: dict[str, Any] = dict(connection_config) if connection_config else {}
        if "extra" in flattened:
            extras = flattened.pop("extra")
            flattened.update(extras)

        self._connection_instance = connection_instance
        self._owns_connection = False
        self.on_connection_create = on_connection_create

        super().__init__(
            connection_config=flattened, statement_config=statement_config or elasticsearch_statement_config
        )

    def create_connection(self) -> ElasticsearchConnection:
        """Create and return the Elasticsearch client.

        Raises:
            ImproperConfigurationError: If the client could not be created.

        Returns:
            The configured client.
        """
        if self._connection_instance is not None:
            return self._connection_instance

        try:
            config_dict = {key: value for key, value in self.connection_config.items() if value is not None}
            connection = self.connection_type(**config_dict)
        except Exception as e:
            hosts = self.connection_config.get("hosts", self.connection_config.get("cloud_id", "Unknown"))
            msg = f"Could not configure Elasticsearch connection for {hosts!r}. Error: {e}"
            raise ImproperConfigurationError(msg) from e

        if self.on_connection_create:
            self.on_connection_create(connection)
        self._connection_instance = connection
        self._owns_connection = True
        logger.debug("Created Elasticsearch client")
        return connection

    def close_connection(self) -> None:
        """Close the client if this configuration created it."""
        connection, self._connection_instance = self._connection_instance, None
        if connection is not None and self._owns_connection:
            connection.close()
        self._owns_connection = False

    @contextlib.contextmanager
    def provide_connection(self, *args: Any, **kwargs: Any) -> "Generator[ElasticsearchConnection, None, None]":
        """Provide the Elasticsearch client within a context manager.

        Args:
            *args: Additional arguments.
            **kwargs: Additional keyword arguments.

        Yields:
            The Elasticsearch client.
        """
        yield self.create_connection()

    @contextlib.contextmanager
    def provide_session(
        self, *args: Any, statement_config: "Optional[StatementConfig]" = None, **kwargs: Any
    ) -> "Generator[ElasticsearchDriver, None, None]":
        """Provide a driver session context manager.

        Statements prepared in the session are closed when it ends.

        Args:
            *args: Additional arguments.
            statement_config: Optional statement configuration override.
            **kwargs: Additional keyword arguments.

        Yields:
            An ``ElasticsearchDriver`` instance.
        """
        with self.provide_connection(*args, **kwargs) as connection:
            driver = self.driver_type(connection=connection, statement_config=statement_config or self.statement_config)
            try:
                yield driver
            finally:
                driver.close()
