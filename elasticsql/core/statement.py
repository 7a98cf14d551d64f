"""Statement configuration and execution mode selection.

A statement's execution mode is chosen once, at construction, from the
result-set flags the caller declares:

- ``SCROLL_INSENSITIVE`` + ``READ_ONLY`` selects cursor (scroll) execution
- ``SCROLL_INSENSITIVE`` + ``UPDATABLE`` is rejected
- every other combination selects direct execution
"""

from enum import Enum
from typing import Any, Optional

from mypy_extensions import mypyc_attr

from elasticsql.exceptions import ImproperConfigurationError, UnsupportedOperationError

__all__ = (
    "DEFAULT_DATE_FORMAT",
    "DEFAULT_FETCH_SIZE",
    "ExecutionMode",
    "ResultSetConcurrency",
    "ResultSetType",
    "StatementConfig",
    "get_default_config",
    "resolve_execution_mode",
)

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_FETCH_SIZE = 1000


class ResultSetType(str, Enum):
    FORWARD_ONLY = "forward_only"
    SCROLL_INSENSITIVE = "scroll_insensitive"


class ResultSetConcurrency(str, Enum):
    READ_ONLY = "read_only"
    UPDATABLE = "updatable"


class ExecutionMode(str, Enum):
    """How a query statement is dispatched to the engine.

    - DIRECT: one request, one page
    - SCROLL: a server-side cursor drives repeated page fetches
    """

    DIRECT = "direct"
    SCROLL = "scroll"


def resolve_execution_mode(
    result_set_type: ResultSetType = ResultSetType.FORWARD_ONLY,
    result_set_concurrency: ResultSetConcurrency = ResultSetConcurrency.READ_ONLY,
) -> ExecutionMode:
    """Map declared result-set flags onto an execution mode.

    Args:
        result_set_type: Declared result-set type.
        result_set_concurrency: Declared result-set concurrency.

    Raises:
        UnsupportedOperationError: For scroll-insensitive updatable results.
        ImproperConfigurationError: For values outside the known flags.

    Returns:
        The execution mode for statements built with these flags.
    """
    try:
        result_set_type = ResultSetType(result_set_type)
        result_set_concurrency = ResultSetConcurrency(result_set_concurrency)
    except ValueError as e:
        msg = f"Unknown result set flags: {result_set_type!r}, {result_set_concurrency!r}"
        raise ImproperConfigurationError(msg) from e

    if result_set_type is ResultSetType.SCROLL_INSENSITIVE:
        if result_set_concurrency is ResultSetConcurrency.UPDATABLE:
            msg = "Scroll-insensitive updatable result sets are not supported by the engine"
            raise UnsupportedOperationError(msg)
        return ExecutionMode.SCROLL
    return ExecutionMode.DIRECT


@mypyc_attr(allow_interpreted_subclasses=False)
class StatementConfig:
    """Configuration recognized at statement-construction time.

    Args:
        result_set_type: Declared result-set type.
        result_set_concurrency: Declared result-set concurrency.
        fetch_size: Rows requested per page from the engine.
        max_rows: Upper bound on rows exposed by a logical result, ``0`` for no limit.
        query_timeout: Seconds before an in-flight engine call is aborted, ``None`` to wait.
        date_format: ``strftime`` pattern shared by every date, time and timestamp parameter.
        escape_string_literals: Double embedded single quotes in string parameters.
        enable_caching: Cache placeholder positions per template.
    """

    __slots__ = (
        "date_format",
        "enable_caching",
        "escape_string_literals",
        "execution_mode",
        "fetch_size",
        "max_rows",
        "query_timeout",
        "result_set_concurrency",
        "result_set_type",
    )

    def __init__(
        self,
        result_set_type: ResultSetType = ResultSetType.FORWARD_ONLY,
        result_set_concurrency: ResultSetConcurrency = ResultSetConcurrency.READ_ONLY,
        fetch_size: int = DEFAULT_FETCH_SIZE,
        max_rows: int = 0,
        query_timeout: Optional[float] = None,
        date_format: str = DEFAULT_DATE_FORMAT,
        escape_string_literals: bool = False,
        enable_caching: bool = True,
    ) -> None:
        if fetch_size < 1:
            msg = f"fetch_size must be a positive integer, got {fetch_size!r}"
            raise ImproperConfigurationError(msg)
        if max_rows < 0:
            msg = f"max_rows must be zero or positive, got {max_rows!r}"
            raise ImproperConfigurationError(msg)
        if query_timeout is not None and query_timeout <= 0:
            msg = f"query_timeout must be positive when set, got {query_timeout!r}"
            raise ImproperConfigurationError(msg)

        self.execution_mode = resolve_execution_mode(result_set_type, result_set_concurrency)
        self.result_set_type = ResultSetType(result_set_type)
        self.result_set_concurrency = ResultSetConcurrency(result_set_concurrency)
        self.fetch_size = fetch_size
        self.max_rows = max_rows
        self.query_timeout = query_timeout
        self.date_format = date_format
        self.escape_string_literals = escape_string_literals
        self.enable_caching = enable_caching

    @property
    def is_scroll(self) -> bool:
        return self.execution_mode is ExecutionMode.SCROLL

    def replace(self, **kwargs: Any) -> "StatementConfig":
        """Create a copy of this configuration with some values changed.

        Args:
            **kwargs: Constructor arguments to override.

        Returns:
            A new, validated configuration.
        """
        current = {
            "result_set_type": self.result_set_type,
            "result_set_concurrency": self.result_set_concurrency,
            "fetch_size": self.fetch_size,
            "max_rows": self.max_rows,
            "query_timeout": self.query_timeout,
            "date_format": self.date_format,
            "escape_string_literals": self.escape_string_literals,
            "enable_caching": self.enable_caching,
        }
        unknown = set(kwargs) - set(current)
        if unknown:
            msg = f"Unknown statement configuration options: {', '.join(sorted(unknown))}"
            raise ImproperConfigurationError(msg)
        current.update(kwargs)
        return StatementConfig(**current)

    def __repr__(self) -> str:
        return (
            f"StatementConfig(execution_mode={self.execution_mode.value!r}, "
            f"fetch_size={self.fetch_size}, max_rows={self.max_rows}, "
            f"query_timeout={self.query_timeout!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatementConfig):
            return False
        return all(getattr(self, slot) == getattr(other, slot) for slot in self.__slots__)

    def __hash__(self) -> int:
        return hash(tuple(getattr(self, slot) for slot in self.__slots__))


def get_default_config() -> StatementConfig:
    return StatementConfig()
