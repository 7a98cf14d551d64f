"""elasticsql Core Module - statement preparation and paged result retrieval.

Architecture Overview:
- parameters.py: typed positional parameters and literal rendering
- compiler.py: placeholder substitution and operation detection
- statement.py: StatementConfig and execution mode selection
- cursor.py: scroll cursor lifecycle
- result.py: result pages, metadata and the row-cursor ResultSet
- type_conversion.py: engine field types and value coercion
"""

from elasticsql.core.compiler import OperationType, SQLCompiler, compile_statement, detect_operation
from elasticsql.core.cursor import CursorState, ScrollCursor
from elasticsql.core.parameters import Parameter, ParameterKind, ParameterStore, render_literal
from elasticsql.core.result import ColumnDescriptor, ResultPage, ResultSet, ResultSetMetaData
from elasticsql.core.statement import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_FETCH_SIZE,
    ExecutionMode,
    ResultSetConcurrency,
    ResultSetType,
    StatementConfig,
    get_default_config,
    resolve_execution_mode,
)
from elasticsql.core.type_conversion import ColumnType, coerce_value, map_engine_type

__all__ = (
    "DEFAULT_DATE_FORMAT",
    "DEFAULT_FETCH_SIZE",
    "ColumnDescriptor",
    "ColumnType",
    "CursorState",
    "ExecutionMode",
    "OperationType",
    "Parameter",
    "ParameterKind",
    "ParameterStore",
    "ResultPage",
    "ResultSet",
    "ResultSetConcurrency",
    "ResultSetMetaData",
    "ResultSetType",
    "SQLCompiler",
    "ScrollCursor",
    "StatementConfig",
    "coerce_value",
    "compile_statement",
    "detect_operation",
    "get_default_config",
    "map_engine_type",
    "render_literal",
    "resolve_execution_mode",
)
