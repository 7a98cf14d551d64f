"""Merges parameterized SQL templates with positional parameters.

Placeholders are bare ``?`` markers. Question marks inside string literals,
quoted identifiers and comments are left untouched. Substitution is a single
left-to-right pass, so substituted text is never rescanned.
"""

import re
import threading
from collections import OrderedDict
from collections.abc import Sequence
from typing import TYPE_CHECKING, Final, Optional

from mypy_extensions import mypyc_attr
from sqlglot.errors import TokenError
from sqlglot.tokens import Tokenizer
from typing_extensions import Literal

from elasticsql.core.parameters import Parameter, render_literal
from elasticsql.core.statement import DEFAULT_DATE_FORMAT
from elasticsql.exceptions import CompileError
from elasticsql.utils.logging import get_logger

if TYPE_CHECKING:
    from elasticsql.core.statement import StatementConfig

__all__ = (
    "OperationType",
    "SQLCompiler",
    "compile_statement",
    "count_placeholders",
    "detect_operation",
    "find_placeholders",
    "returns_rows",
)

OperationType = Literal["SELECT", "SHOW", "DESCRIBE", "EXPLAIN", "INSERT", "UPDATE", "DELETE", "UNKNOWN"]

logger = get_logger("elasticsql.core.compiler")

_PLACEHOLDER_REGEX = re.compile(
    r"""
    (?P<squote>'(?:[^']|'')*') |
    (?P<dquote>"(?:[^"]|"")*") |
    (?P<backtick>`[^`]*`) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*(?:[^*]|\*(?!/))*\*/) |
    (?P<qmark>\?)
    """,
    re.VERBOSE | re.DOTALL,
)

_ROW_RETURNING: Final[frozenset[str]] = frozenset({"SELECT", "SHOW", "DESCRIBE", "EXPLAIN"})
_KEYWORD_OPERATIONS: "Final[dict[str, OperationType]]" = {
    "SELECT": "SELECT",
    "WITH": "SELECT",
    "SHOW": "SHOW",
    "DESCRIBE": "DESCRIBE",
    "DESC": "DESCRIBE",
    "EXPLAIN": "EXPLAIN",
    "INSERT": "INSERT",
    "UPSERT": "INSERT",
    "UPDATE": "UPDATE",
    "DELETE": "DELETE",
}


def find_placeholders(sql: str) -> "tuple[int, ...]":
    """Locate the ``?`` placeholders of a template.

    Args:
        sql: The parameterized template.

    Returns:
        Character offsets of each placeholder, in order.
    """
    return tuple(match.start() for match in _PLACEHOLDER_REGEX.finditer(sql) if match.lastgroup == "qmark")


def count_placeholders(sql: str) -> int:
    return len(find_placeholders(sql))


def _substitute(sql: str, positions: "Sequence[int]", literals: "Sequence[str]") -> str:
    parts: list[str] = []
    cursor = 0
    for position, literal in zip(positions, literals):
        parts.append(sql[cursor:position])
        parts.append(literal)
        cursor = position + 1
    parts.append(sql[cursor:])
    return "".join(parts)


def _check_counts(sql: str, placeholder_count: int, parameter_count: int) -> None:
    if placeholder_count != parameter_count:
        msg = (
            f"Statement has {placeholder_count} placeholder(s) "
            f"but {parameter_count} parameter(s) were supplied"
        )
        raise CompileError(msg, sql=sql, placeholder_count=placeholder_count, parameter_count=parameter_count)


def compile_statement(
    sql: str,
    parameters: "Sequence[Parameter]",
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
    escape_strings: bool = False,
) -> str:
    """Substitute ordered parameters into a template.

    Args:
        sql: Template with ``?`` placeholders.
        parameters: Parameters already ordered by index.
        date_format: Shared pattern for temporal parameters.
        escape_strings: Double embedded quotes in string parameters.

    Raises:
        CompileError: When placeholder and parameter counts differ.

    Returns:
        The final statement text. The template itself when there are no parameters.
    """
    if not parameters:
        return sql
    positions = find_placeholders(sql)
    _check_counts(sql, len(positions), len(parameters))
    literals = [render_literal(parameter, date_format, escape_strings) for parameter in parameters]
    return _substitute(sql, positions, literals)


def detect_operation(sql: str) -> OperationType:
    """Classify a statement by its leading keyword.

    Args:
        sql: Statement text; placeholders are allowed.

    Returns:
        The operation type, ``UNKNOWN`` when the text cannot be tokenized.
    """
    try:
        tokens = Tokenizer().tokenize(sql)
    except TokenError:
        logger.debug("Could not tokenize statement for operation detection: %s", sql)
        return "UNKNOWN"
    for token in tokens:
        text = token.text.upper()
        if text in {"(", ";"}:
            continue
        return _KEYWORD_OPERATIONS.get(text, "UNKNOWN")
    return "UNKNOWN"


def returns_rows(operation: OperationType) -> bool:
    return operation in _ROW_RETURNING


@mypyc_attr(allow_interpreted_subclasses=True)
class SQLCompiler:
    """Compiler bound to a statement configuration.

    Placeholder offsets are cached per template with least-recently-used
    eviction; rendering always runs against the current parameters.
    """

    __slots__ = ("_cache", "_cache_hits", "_cache_misses", "_config", "_lock", "_max_cache_size")

    def __init__(self, config: "StatementConfig", max_cache_size: int = 256) -> None:
        self._config = config
        self._cache: OrderedDict[str, tuple[int, ...]] = OrderedDict()
        self._max_cache_size = max_cache_size
        self._cache_hits = 0
        self._cache_misses = 0
        self._lock = threading.Lock()

    @property
    def cache_info(self) -> "dict[str, int]":
        return {"hits": self._cache_hits, "misses": self._cache_misses, "size": len(self._cache)}

    def placeholders(self, sql: str) -> "tuple[int, ...]":
        if not self._config.enable_caching:
            return find_placeholders(sql)
        with self._lock:
            cached: Optional[tuple[int, ...]] = self._cache.get(sql)
            if cached is not None:
                self._cache.move_to_end(sql)
                self._cache_hits += 1
                return cached
            self._cache_misses += 1
        positions = find_placeholders(sql)
        with self._lock:
            if len(self._cache) >= self._max_cache_size:
                self._cache.popitem(last=False)
            self._cache[sql] = positions
        return positions

    def compile(self, sql: str, parameters: "Sequence[Parameter]") -> str:
        """Compile a template against an ordered parameter snapshot.

        Args:
            sql: Template with ``?`` placeholders.
            parameters: Parameters ordered by index.

        Returns:
            Final statement text.
        """
        if not parameters:
            return sql
        positions = self.placeholders(sql)
        _check_counts(sql, len(positions), len(parameters))
        literals = [
            render_literal(parameter, self._config.date_format, self._config.escape_string_literals)
            for parameter in parameters
        ]
        compiled = _substitute(sql, positions, literals)
        logger.debug("Compiled statement with %d parameter(s): %s", len(parameters), compiled)
        return compiled
