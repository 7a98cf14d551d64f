"""elasticsql: prepared statements and paged result sets over Elasticsearch SQL."""

from elasticsql import adapters, core, driver, exceptions, typing, utils
from elasticsql.__metadata__ import __version__
from elasticsql.config import NoPoolSyncConfig
from elasticsql.core.cursor import ScrollCursor
from elasticsql.core.result import ColumnDescriptor, ResultPage, ResultSet, ResultSetMetaData
from elasticsql.core.statement import ExecutionMode, ResultSetConcurrency, ResultSetType, StatementConfig
from elasticsql.core.type_conversion import ColumnType
from elasticsql.driver import ElasticDriver, ElasticTransport, PreparedStatement
from elasticsql.exceptions import (
    ColumnNotFoundError,
    CompileError,
    CursorStateError,
    ElasticSQLError,
    NoCurrentRowError,
    ParameterError,
    QueryTimeoutError,
    StatementClosedError,
    TransportError,
    TypeMismatchError,
    UnsupportedOperationError,
)
from elasticsql.typing import ColumnKey, RowValues, StatementParameters

__all__ = (
    "ColumnDescriptor",
    "ColumnKey",
    "ColumnNotFoundError",
    "ColumnType",
    "CompileError",
    "CursorStateError",
    "ElasticDriver",
    "ElasticSQLError",
    "ElasticTransport",
    "ExecutionMode",
    "NoCurrentRowError",
    "NoPoolSyncConfig",
    "ParameterError",
    "PreparedStatement",
    "QueryTimeoutError",
    "ResultPage",
    "ResultSet",
    "ResultSetConcurrency",
    "ResultSetMetaData",
    "ResultSetType",
    "RowValues",
    "ScrollCursor",
    "StatementClosedError",
    "StatementConfig",
    "StatementParameters",
    "TransportError",
    "TypeMismatchError",
    "UnsupportedOperationError",
    "__version__",
    "adapters",
    "core",
    "driver",
    "exceptions",
    "typing",
    "utils",
)
