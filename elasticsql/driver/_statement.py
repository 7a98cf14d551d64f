"""Prepared statements and execution dispatch.

A prepared statement owns its parameters and at most one open result. Query
execution is routed by the statement's execution mode:

- DIRECT: one ``run_query`` call, one page, no cursor
- SCROLL: a ``ScrollCursor`` opens the result and feeds continuation pages

Write statements go through ``run_update`` and return an affected-row count.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional, Union

from mypy_extensions import mypyc_attr

from elasticsql.core.compiler import detect_operation, returns_rows
from elasticsql.core.cursor import ScrollCursor
from elasticsql.core.parameters import ParameterStore
from elasticsql.core.result import ResultSet
from elasticsql.core.statement import ExecutionMode
from elasticsql.driver._common import Capability, check_capability, handle_transport_exceptions
from elasticsql.exceptions import StatementClosedError
from elasticsql.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from elasticsql.core.parameters import Parameter
    from elasticsql.core.result import ResultSetMetaData
    from elasticsql.core.statement import StatementConfig
    from elasticsql.driver._sync import ElasticDriver

__all__ = ("PreparedStatement",)

logger = get_logger("elasticsql.driver.statement")


@mypyc_attr(allow_interpreted_subclasses=True)
class PreparedStatement:
    """A parameterized SQL statement bound to a driver.

    Args:
        driver: The driver that prepared the statement.
        sql: Template with ``?`` placeholders.
        statement_config: Configuration fixed for the statement's lifetime.
    """

    __slots__ = (
        "_closed",
        "_driver",
        "_parameters",
        "_result_set",
        "_update_count",
        "sql",
        "statement_config",
    )

    def __init__(self, driver: "ElasticDriver", sql: str, statement_config: "StatementConfig") -> None:
        self._driver = driver
        self.sql = sql
        self.statement_config = statement_config
        self._parameters = ParameterStore()
        self._result_set: Optional[ResultSet] = None
        self._update_count = -1
        self._closed = False

    def __enter__(self) -> "PreparedStatement":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PreparedStatement(sql={self.sql!r}, mode={self.execution_mode.value}, parameters={len(self._parameters)})"

    @property
    def execution_mode(self) -> ExecutionMode:
        return self.statement_config.execution_mode

    @property
    def parameters(self) -> "tuple[Parameter, ...]":
        return self._parameters.snapshot()

    @property
    def result_set(self) -> Optional[ResultSet]:
        """The result of the last query execution, if still open."""
        return self._result_set

    @property
    def update_count(self) -> int:
        """Rows affected by the last update, ``-1`` after a query."""
        return self._update_count

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Statement is closed"
            raise StatementClosedError(msg)
        self._driver.ensure_open()

    # -- Parameters --
    def set_parameter(self, index: int, value: Any) -> None:
        """Bind a value, choosing its kind from the runtime type."""
        self._ensure_open()
        self._parameters.set(index, value)

    set_object = set_parameter

    def set_boolean(self, index: int, value: bool) -> None:
        self._ensure_open()
        self._parameters.set_boolean(index, value)

    def set_byte(self, index: int, value: int) -> None:
        self._ensure_open()
        self._parameters.set_byte(index, value)

    def set_short(self, index: int, value: int) -> None:
        self._ensure_open()
        self._parameters.set_short(index, value)

    def set_int(self, index: int, value: int) -> None:
        self._ensure_open()
        self._parameters.set_int(index, value)

    def set_long(self, index: int, value: int) -> None:
        self._ensure_open()
        self._parameters.set_long(index, value)

    def set_float(self, index: int, value: float) -> None:
        self._ensure_open()
        self._parameters.set_float(index, value)

    def set_double(self, index: int, value: float) -> None:
        self._ensure_open()
        self._parameters.set_double(index, value)

    def set_decimal(self, index: int, value: "Union[Decimal, int, str]") -> None:
        self._ensure_open()
        self._parameters.set_decimal(index, value)

    def set_string(self, index: int, value: str) -> None:
        self._ensure_open()
        self._parameters.set_string(index, value)

    def set_date(self, index: int, value: date) -> None:
        self._ensure_open()
        self._parameters.set_date(index, value)

    def set_time(self, index: int, value: time) -> None:
        self._ensure_open()
        self._parameters.set_time(index, value)

    def set_timestamp(self, index: int, value: datetime) -> None:
        self._ensure_open()
        self._parameters.set_timestamp(index, value)

    def set_null(self, index: int) -> None:
        self._ensure_open()
        self._parameters.set_null(index)

    def set_parameters(self, *values: Any) -> None:
        """Bind ``values`` to indices 1..n, replacing every current parameter."""
        self._ensure_open()
        self._parameters.clear()
        for index, value in enumerate(values, start=1):
            self._parameters.set(index, value)

    def clear_parameters(self) -> None:
        self._parameters.clear()

    # -- Execution --
    def compile(self) -> str:
        """Merge the current parameters into the template.

        Raises:
            CompileError: When placeholder and parameter counts differ.

        Returns:
            The final statement text.
        """
        return self._driver.get_compiler(self.statement_config).compile(self.sql, self._parameters.snapshot())

    def _close_result(self) -> None:
        result_set, self._result_set = self._result_set, None
        if result_set is not None:
            result_set.close()

    def execute_query(self) -> ResultSet:
        """Run the statement as a query.

        Any result still open from a previous execution is closed first.

        Raises:
            CompileError: When the statement cannot be compiled.
            TransportError: When the engine call fails.

        Returns:
            The result set positioned before its first row.
        """
        self._ensure_open()
        self._close_result()
        compiled = self.compile()
        config = self.statement_config
        transport = self._driver.transport
        log_with_context(
            logger,
            logging.DEBUG,
            "Executing query",
            execution_mode=config.execution_mode.value,
            fetch_size=config.fetch_size,
            sql=compiled,
        )

        if config.execution_mode is ExecutionMode.SCROLL:
            cursor = ScrollCursor(transport, fetch_size=config.fetch_size, timeout=config.query_timeout)
            with handle_transport_exceptions("open_scroll"):
                first_page = cursor.open(compiled)
            try:
                result_set = ResultSet(first_page, cursor=cursor, max_rows=config.max_rows)
            except BaseException:
                cursor.abort()
                raise
        else:
            with handle_transport_exceptions("run_query"):
                first_page = transport.run_query(
                    compiled, fetch_size=config.fetch_size, timeout=config.query_timeout
                )
            result_set = ResultSet(first_page, max_rows=config.max_rows)

        self._result_set = result_set
        self._update_count = -1
        return result_set

    def execute_update(self) -> int:
        """Run the statement as a write.

        Returns:
            The number of affected rows.
        """
        self._ensure_open()
        self._close_result()
        compiled = self.compile()
        log_with_context(logger, logging.DEBUG, "Executing update", sql=compiled)
        with handle_transport_exceptions("run_update"):
            count = self._driver.transport.run_update(compiled, timeout=self.statement_config.query_timeout)
        self._update_count = count
        return count

    def execute(self) -> bool:
        """Run the statement as a query or a write depending on its leading keyword.

        Statements whose kind cannot be determined run as queries.

        Returns:
            True when a result set was produced, False for an update count.
        """
        operation = detect_operation(self.sql)
        if operation == "UNKNOWN" or returns_rows(operation):
            self.execute_query()
            return True
        self.execute_update()
        return False

    def get_metadata(self) -> "Optional[ResultSetMetaData]":
        """Column metadata of the open result, ``None`` before a query runs."""
        if self._result_set is None:
            return None
        return self._result_set.metadata()

    # -- Unsupported operations --
    def add_batch(self) -> None:
        check_capability(Capability.BATCH_UPDATES, "add_batch")

    def execute_batch(self) -> "list[int]":
        check_capability(Capability.BATCH_UPDATES, "execute_batch")
        return []

    def get_parameter_metadata(self) -> None:
        check_capability(Capability.PARAMETER_METADATA, "get_parameter_metadata")

    def get_generated_keys(self) -> None:
        check_capability(Capability.GENERATED_KEYS, "get_generated_keys")

    def close(self) -> None:
        """Close the open result and release the statement. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._parameters.clear()
        self._close_result()
        self._driver.forget(self)
