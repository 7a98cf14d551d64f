from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Optional

from elasticsql.utils.logging import get_logger

__all__ = (
    "ColumnNotFoundError",
    "CompileError",
    "CursorStateError",
    "ElasticSQLError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "NoCurrentRowError",
    "ParameterError",
    "QueryTimeoutError",
    "StatementClosedError",
    "TransportError",
    "TypeMismatchError",
    "UnsupportedOperationError",
    "handle_transport_exceptions",
)

logger = get_logger("transport")


class ElasticSQLError(Exception):
    """Base exception class from which all elasticsql exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``ElasticSQLError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(ElasticSQLError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install elasticsql[{install_package or package}]' to install elasticsql with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(ElasticSQLError):
    """Improper Configuration error.

    Raised when statement or connection settings are invalid or form an unsupported combination.
    """


# -- Statement preparation errors --
class CompileError(ElasticSQLError):
    """Raised when a parameterized template cannot be merged with its parameters.

    The statement is never sent when this is raised.
    """

    sql: Optional[str]
    placeholder_count: Optional[int]
    parameter_count: Optional[int]

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        placeholder_count: Optional[int] = None,
        parameter_count: Optional[int] = None,
    ) -> None:
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql
        self.placeholder_count = placeholder_count
        self.parameter_count = parameter_count


class ParameterError(ElasticSQLError):
    """Raised when a parameter index or value is rejected by a setter."""

    index: Optional[int]

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        detail_message = message
        if index is not None:
            detail_message = f"{message} (parameter index: {index})"
        super().__init__(detail=detail_message)
        self.index = index


# -- Execution errors --
class TransportError(ElasticSQLError):
    """Network or engine-side failure during execute, fetch or close.

    The original message is preserved and the original exception is chained.
    """


class QueryTimeoutError(TransportError):
    """The in-flight engine call exceeded the caller supplied timeout."""


class CursorStateError(ElasticSQLError):
    """Fetch or close attempted on a closed, exhausted, busy or invalid cursor."""

    token: Optional[str]

    def __init__(self, message: str, token: Optional[str] = None) -> None:
        detail_message = message
        if token:
            detail_message = f"{message} (cursor: {token})"
        super().__init__(detail=detail_message)
        self.token = token


class StatementClosedError(ElasticSQLError):
    """Operation attempted on a statement or driver that has been closed."""


# -- Result access errors --
class TypeMismatchError(ElasticSQLError, TypeError):
    """Accessor requested on a column whose declared type is incompatible."""

    column: Optional[str]
    declared_type: Optional[str]
    accessor: Optional[str]

    def __init__(
        self,
        message: str,
        column: Optional[str] = None,
        declared_type: Optional[str] = None,
        accessor: Optional[str] = None,
    ) -> None:
        context = [
            f"{label}: {value}"
            for label, value in (("column", column), ("declared type", declared_type), ("accessor", accessor))
            if value
        ]
        detail_message = f"{message} ({', '.join(context)})" if context else message
        super().__init__(detail=detail_message)
        self.column = column
        self.declared_type = declared_type
        self.accessor = accessor


class ColumnNotFoundError(ElasticSQLError, LookupError):
    """Unknown column index or name."""


class NoCurrentRowError(ElasticSQLError):
    """The result set is not positioned on a row."""


class UnsupportedOperationError(ElasticSQLError, NotImplementedError):
    """Operation the underlying engine cannot support."""


@contextmanager
def handle_transport_exceptions(operation: str) -> Generator[None, None, None]:
    """Wrap foreign transport failures into ``TransportError``.

    elasticsql errors raised by the transport pass through unchanged.

    Args:
        operation: Name of the failing operation, for the log record.
    """
    try:
        yield
    except ElasticSQLError:
        raise
    except Exception as e:
        logger.debug("%s failed: %s", operation, e)
        raise TransportError(str(e) or type(e).__name__) from e
