from collections.abc import Sequence
from typing import Any, Union

from typing_extensions import TypeAlias

__all__ = ("ColumnKey", "RowValues", "SQLTemplate", "StatementParameters")

RowValues: TypeAlias = "tuple[Any, ...]"
"""One materialized row, positionally aligned with the result columns."""
ColumnKey: TypeAlias = Union[int, str]
"""A 1-based column index or a column name."""
SQLTemplate: TypeAlias = str
StatementParameters: TypeAlias = Sequence[Any]
"""Positional parameter values, bound to indices 1..n in order."""
