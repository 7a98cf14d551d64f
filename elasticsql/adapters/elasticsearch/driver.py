"""Elasticsearch SQL API transport and driver.

Every request goes through the ``_sql/query`` endpoint of the official
client. Continuation pages are requested with the cursor token alone and
carry no column descriptors.
"""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional

from elasticsearch import ApiError, ConnectionTimeout
from elasticsearch import TransportError as ESTransportError

from elasticsql.core.result import ColumnDescriptor, ResultPage
from elasticsql.core.statement import StatementConfig
from elasticsql.driver import ElasticDriver
from elasticsql.exceptions import QueryTimeoutError, TransportError, UnsupportedOperationError
from elasticsql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

    from elasticsql.adapters.elasticsearch._types import ElasticsearchConnection

__all__ = ("ElasticsearchDriver", "ElasticsearchTransport", "elasticsearch_statement_config", "parse_sql_response")

logger = get_logger("adapters.elasticsearch")

elasticsearch_statement_config = StatementConfig()


def parse_sql_response(response: Any) -> "tuple[Optional[str], ResultPage]":
    """Split an SQL API response into its cursor token and page.

    Args:
        response: The client response, or its already decoded body.

    Returns:
        The cursor token, ``None`` when the engine holds no further rows, and the page.
    """
    body: Mapping[str, Any] = getattr(response, "body", response)
    columns = [ColumnDescriptor.from_engine(column["name"], column.get("type")) for column in body.get("columns") or ()]
    return body.get("cursor") or None, ResultPage(columns, body.get("rows") or ())


class ElasticsearchTransport:
    """Transport over the SQL API of an ``elasticsearch.Elasticsearch`` client."""

    __slots__ = ("client",)

    def __init__(self, client: "ElasticsearchConnection") -> None:
        self.client = client

    def __repr__(self) -> str:
        return f"ElasticsearchTransport(client={self.client!r})"

    def _client(self, timeout: Optional[float]) -> "ElasticsearchConnection":
        if timeout is None:
            return self.client
        return self.client.options(request_timeout=timeout)

    @contextmanager
    def handle_database_exceptions(self) -> "Generator[None, None, None]":
        """Map client failures onto elasticsql errors."""
        try:
            yield
        except ConnectionTimeout as e:
            msg = f"Elasticsearch request timed out: {e}"
            raise QueryTimeoutError(msg) from e
        except ApiError as e:
            msg = f"Elasticsearch API error: {e}"
            raise TransportError(msg) from e
        except ESTransportError as e:
            msg = f"Elasticsearch transport error: {e}"
            raise TransportError(msg) from e

    def open_scroll(
        self, sql: str, *, fetch_size: int, timeout: Optional[float] = None
    ) -> "tuple[Optional[str], ResultPage]":
        with self.handle_database_exceptions():
            response = self._client(timeout).sql.query(query=sql, fetch_size=fetch_size)
        return parse_sql_response(response)

    def fetch_scroll(self, token: str, *, timeout: Optional[float] = None) -> "tuple[Optional[str], ResultPage]":
        with self.handle_database_exceptions():
            response = self._client(timeout).sql.query(cursor=token)
        return parse_sql_response(response)

    def close_scroll(self, token: str) -> None:
        with self.handle_database_exceptions():
            self.client.sql.clear_cursor(cursor=token)

    def run_query(self, sql: str, *, fetch_size: int, timeout: Optional[float] = None) -> ResultPage:
        token, page = self.open_scroll(sql, fetch_size=fetch_size, timeout=timeout)
        if token is not None:
            logger.debug(
                "Direct query returned more than one page; keeping the first %d row(s) and releasing cursor %s",
                len(page),
                token,
            )
            try:
                self.close_scroll(token)
            except TransportError:
                logger.warning("Failed to release cursor %s after a direct query", token, exc_info=True)
        return page

    def run_update(self, sql: str, *, timeout: Optional[float] = None) -> int:
        msg = "The Elasticsearch SQL API is read-only; write statements are not supported"
        raise UnsupportedOperationError(msg)


class ElasticsearchDriver(ElasticDriver):
    """Driver bound to an Elasticsearch client."""

    __slots__ = ("client",)

    def __init__(
        self, connection: "ElasticsearchConnection", statement_config: "Optional[StatementConfig]" = None
    ) -> None:
        self.client = connection
        super().__init__(ElasticsearchTransport(connection), statement_config or elasticsearch_statement_config)
