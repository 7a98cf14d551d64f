"""Synchronous driver.

The driver wraps a transport, hands out prepared statements and owns the
session-level operations. The engine runs every statement on its own, so the
transaction hooks follow the capability table rather than talking to the
engine.
"""

from typing import TYPE_CHECKING, Any, Optional, Union

from mypy_extensions import mypyc_attr

from elasticsql.core.compiler import SQLCompiler
from elasticsql.core.statement import ResultSetConcurrency, ResultSetType, StatementConfig, get_default_config
from elasticsql.driver._common import Capability, check_capability
from elasticsql.driver._statement import PreparedStatement
from elasticsql.exceptions import StatementClosedError
from elasticsql.utils.logging import get_logger

if TYPE_CHECKING:
    from elasticsql.core.result import ResultSet
    from elasticsql.driver._common import ElasticTransport

__all__ = ("ElasticDriver",)

logger = get_logger("elasticsql.driver")


@mypyc_attr(allow_interpreted_subclasses=True)
class ElasticDriver:
    """Entry point for preparing and running statements against one transport.

    Args:
        connection: The engine transport.
        statement_config: Defaults applied to every prepared statement.
    """

    __slots__ = ("_closed", "_compilers", "_statements", "connection", "statement_config")

    dialect: str = "elasticsearch"

    def __init__(self, connection: "ElasticTransport", statement_config: "Optional[StatementConfig]" = None) -> None:
        self.connection = connection
        self.statement_config = statement_config or get_default_config()
        self._compilers: dict[StatementConfig, SQLCompiler] = {}
        self._statements: set[PreparedStatement] = set()
        self._closed = False

    def __enter__(self) -> "ElasticDriver":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ElasticDriver(connection={self.connection!r}, closed={self._closed})"

    @property
    def transport(self) -> "ElasticTransport":
        return self.connection

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def open_statements(self) -> int:
        return len(self._statements)

    def ensure_open(self) -> None:
        if self._closed:
            msg = "Driver is closed"
            raise StatementClosedError(msg)

    def get_compiler(self, statement_config: StatementConfig) -> SQLCompiler:
        """Compiler for ``statement_config``, shared by statements with an equal config."""
        compiler = self._compilers.get(statement_config)
        if compiler is None:
            compiler = SQLCompiler(statement_config)
            self._compilers[statement_config] = compiler
        return compiler

    def prepare(
        self,
        sql: str,
        result_set_type: "Union[ResultSetType, str, None]" = None,
        result_set_concurrency: "Union[ResultSetConcurrency, str, None]" = None,
        **overrides: Any,
    ) -> PreparedStatement:
        """Prepare a statement.

        Args:
            sql: Template with ``?`` placeholders.
            result_set_type: Overrides the driver default. ``SCROLL_INSENSITIVE``
                with ``READ_ONLY`` concurrency runs the statement as a scroll.
            result_set_concurrency: Overrides the driver default.
            **overrides: Other ``StatementConfig`` fields to override.

        Raises:
            UnsupportedOperationError: For an updatable scroll-insensitive result.
            ImproperConfigurationError: For an invalid override.

        Returns:
            A statement with no parameters bound.
        """
        self.ensure_open()
        if result_set_type is not None:
            overrides["result_set_type"] = result_set_type
        if result_set_concurrency is not None:
            overrides["result_set_concurrency"] = result_set_concurrency
        config = self.statement_config.replace(**overrides) if overrides else self.statement_config
        statement = PreparedStatement(self, sql, config)
        self._statements.add(statement)
        logger.debug("Prepared statement in %s mode", config.execution_mode.value)
        return statement

    def forget(self, statement: PreparedStatement) -> None:
        self._statements.discard(statement)

    def execute_query(self, sql: str, *parameters: Any) -> "ResultSet":
        """Prepare ``sql``, bind ``parameters`` to indices 1..n and run it as a query.

        The statement stays open with its result and is closed with the driver.
        """
        statement = self.prepare(sql)
        try:
            statement.set_parameters(*parameters)
            return statement.execute_query()
        except Exception:
            statement.close()
            raise

    def execute_update(self, sql: str, *parameters: Any) -> int:
        with self.prepare(sql) as statement:
            statement.set_parameters(*parameters)
            return statement.execute_update()

    # The engine is autocommit; these pass through silently.
    def commit(self) -> None:
        self.ensure_open()
        check_capability(Capability.TRANSACTIONS, "commit")

    def rollback(self) -> None:
        self.ensure_open()
        check_capability(Capability.TRANSACTIONS, "rollback")

    def set_savepoint(self, name: "Optional[str]" = None) -> None:
        check_capability(Capability.SAVEPOINTS, "set_savepoint")

    def rollback_to_savepoint(self, name: str) -> None:
        check_capability(Capability.SAVEPOINTS, "rollback_to_savepoint")

    def release_savepoint(self, name: str) -> None:
        check_capability(Capability.SAVEPOINTS, "release_savepoint")

    def close(self) -> None:
        """Close every statement prepared by this driver. Safe to call repeatedly."""
        if self._closed:
            return
        statements = list(self._statements)
        for statement in statements:
            statement.close()
        self._closed = True
        self._compilers.clear()
        logger.debug("Driver closed, released %d statement(s)", len(statements))
