"""Positional parameter storage and SQL literal rendering.

Components:
- ParameterKind: closed set of supported parameter kinds
- Parameter: an index bound to a kind-tagged value
- ParameterStore: sparse, index-keyed map with typed setters
- render_literal: turns a parameter into SQL literal text

Every kind handled by a setter is handled by ``render_literal``; adding a kind
without a renderer fails at import time.
"""

import math
from collections.abc import Callable, Iterator
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from functools import singledispatch
from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from elasticsql.core.statement import DEFAULT_DATE_FORMAT
from elasticsql.exceptions import ParameterError

__all__ = (
    "EPOCH_DATE",
    "Parameter",
    "ParameterKind",
    "ParameterStore",
    "format_temporal",
    "infer_parameter_kind",
    "render_literal",
)

EPOCH_DATE: Final[date] = date(1970, 1, 1)

_INTEGER_BOUNDS: Final["dict[str, tuple[int, int]]"] = {
    "tinyint": (-(2**7), 2**7 - 1),
    "smallint": (-(2**15), 2**15 - 1),
    "integer": (-(2**31), 2**31 - 1),
    "bigint": (-(2**63), 2**63 - 1),
}


class ParameterKind(str, Enum):
    BOOLEAN = "boolean"
    TINYINT = "tinyint"
    SMALLINT = "smallint"
    INTEGER = "integer"
    BIGINT = "bigint"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    STRING = "string"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    NULL = "null"
    OBJECT = "object"


@mypyc_attr(allow_interpreted_subclasses=False)
class Parameter:
    """A positional parameter.

    Attributes:
        index: 1-based position of the parameter in the statement.
        kind: The tagged kind of ``value``.
        value: The Python value as given to the setter.
    """

    __slots__ = ("index", "kind", "value")

    def __init__(self, index: int, kind: ParameterKind, value: Any) -> None:
        self.index = index
        self.kind = kind
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parameter):
            return False
        return self.index == other.index and self.kind == other.kind and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.index, self.kind, repr(self.value)))

    def __repr__(self) -> str:
        return f"Parameter(index={self.index}, kind={self.kind.value}, value={self.value!r})"


@singledispatch
def infer_parameter_kind(value: Any) -> ParameterKind:
    """Map a runtime value onto a parameter kind.

    Args:
        value: The value handed to the generic setter.

    Returns:
        The parameter kind used for storage and rendering.
    """
    return ParameterKind.OBJECT


@infer_parameter_kind.register
def _(value: bool) -> ParameterKind:
    return ParameterKind.BOOLEAN


@infer_parameter_kind.register
def _(value: int) -> ParameterKind:
    low, high = _INTEGER_BOUNDS["bigint"]
    if low <= value <= high:
        return ParameterKind.BIGINT
    return ParameterKind.DECIMAL


@infer_parameter_kind.register
def _(value: float) -> ParameterKind:
    return ParameterKind.DOUBLE


@infer_parameter_kind.register
def _(value: Decimal) -> ParameterKind:
    return ParameterKind.DECIMAL


@infer_parameter_kind.register
def _(value: str) -> ParameterKind:
    return ParameterKind.STRING


@infer_parameter_kind.register
def _(value: datetime) -> ParameterKind:
    return ParameterKind.TIMESTAMP


@infer_parameter_kind.register
def _(value: date) -> ParameterKind:
    return ParameterKind.DATE


@infer_parameter_kind.register
def _(value: time) -> ParameterKind:
    return ParameterKind.TIME


@infer_parameter_kind.register(type(None))
def _(value: None) -> ParameterKind:
    return ParameterKind.NULL


def format_temporal(value: "date | time", date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a date, time or datetime with the shared date pattern.

    Dates are taken at midnight and times on the epoch date so that one
    pattern serves all three.

    Args:
        value: The temporal value.
        date_format: ``strftime`` pattern.

    Returns:
        The formatted text, without quotes.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    else:
        moment = datetime.combine(EPOCH_DATE, value)
    return moment.strftime(date_format)


def _render_boolean(value: Any, date_format: str, escape_strings: bool) -> str:
    return "true" if value else "false"


def _render_integer(value: Any, date_format: str, escape_strings: bool) -> str:
    return str(int(value))


def _render_float(value: Any, date_format: str, escape_strings: bool) -> str:
    return repr(float(value))


def _render_decimal(value: Any, date_format: str, escape_strings: bool) -> str:
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _render_string(value: Any, date_format: str, escape_strings: bool) -> str:
    text = str(value)
    if escape_strings:
        text = text.replace("'", "''")
    return f"'{text}'"


def _render_temporal(value: Any, date_format: str, escape_strings: bool) -> str:
    return f"'{format_temporal(value, date_format)}'"


def _render_null(value: Any, date_format: str, escape_strings: bool) -> str:
    return "NULL"


def _render_object(value: Any, date_format: str, escape_strings: bool) -> str:
    return str(value)


_RENDERERS: "Final[dict[ParameterKind, Callable[[Any, str, bool], str]]]" = {
    ParameterKind.BOOLEAN: _render_boolean,
    ParameterKind.TINYINT: _render_integer,
    ParameterKind.SMALLINT: _render_integer,
    ParameterKind.INTEGER: _render_integer,
    ParameterKind.BIGINT: _render_integer,
    ParameterKind.FLOAT: _render_float,
    ParameterKind.DOUBLE: _render_float,
    ParameterKind.DECIMAL: _render_decimal,
    ParameterKind.STRING: _render_string,
    ParameterKind.DATE: _render_temporal,
    ParameterKind.TIME: _render_temporal,
    ParameterKind.TIMESTAMP: _render_temporal,
    ParameterKind.NULL: _render_null,
    ParameterKind.OBJECT: _render_object,
}

_missing_renderers = set(ParameterKind) - set(_RENDERERS)
if _missing_renderers:  # pragma: no cover
    msg = f"No literal renderer for parameter kinds: {sorted(k.value for k in _missing_renderers)}"
    raise RuntimeError(msg)


def render_literal(
    parameter: Parameter, date_format: str = DEFAULT_DATE_FORMAT, escape_strings: bool = False
) -> str:
    """Render a parameter as SQL literal text.

    String values are wrapped in single quotes. Embedded quotes are kept as-is
    unless ``escape_strings`` is set, in which case they are doubled.

    Args:
        parameter: The parameter to render.
        date_format: Shared pattern for date, time and timestamp values.
        escape_strings: Double embedded single quotes in string values.

    Returns:
        Literal text ready for substitution.
    """
    return _RENDERERS[parameter.kind](parameter.value, date_format, escape_strings)


def _validate_index(index: Any) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        msg = f"Parameter index must be a positive integer, got {index!r}"
        raise ParameterError(msg)
    return index


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterStore:
    """Sparse map of 1-based positions to typed parameters.

    Setting an index that is already present overwrites it. ``snapshot``
    yields the parameters ordered by index and is unaffected by later changes
    to the store.
    """

    __slots__ = ("_parameters",)

    def __init__(self) -> None:
        self._parameters: dict[int, Parameter] = {}

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, index: object) -> bool:
        return index in self._parameters

    def __iter__(self) -> "Iterator[Parameter]":
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"ParameterStore({list(self.snapshot())!r})"

    def get(self, index: int) -> Optional[Parameter]:
        return self._parameters.get(index)

    def clear(self) -> None:
        self._parameters.clear()

    def snapshot(self) -> "tuple[Parameter, ...]":
        return tuple(self._parameters[index] for index in sorted(self._parameters))

    def values(self) -> "tuple[Any, ...]":
        """Parameter values in ascending index order."""
        return tuple(parameter.value for parameter in self.snapshot())

    def _put(self, index: int, kind: ParameterKind, value: Any) -> None:
        index = _validate_index(index)
        self._parameters[index] = Parameter(index, kind, value)

    def _put_integer(self, index: int, kind: ParameterKind, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"Expected an integer for a {kind.value} parameter, got {type(value).__name__}"
            raise ParameterError(msg, index)
        low, high = _INTEGER_BOUNDS[kind.value]
        if not low <= value <= high:
            msg = f"Value {value} is out of range for a {kind.value} parameter"
            raise ParameterError(msg, index)
        self._put(index, kind, value)

    def _put_float(self, index: int, kind: ParameterKind, value: float) -> None:
        value = float(value)
        if not math.isfinite(value):
            msg = f"Cannot bind non-finite value {value!r} as a {kind.value} parameter"
            raise ParameterError(msg, index)
        self._put(index, kind, value)

    def set(self, index: int, value: Any) -> None:
        """Record a value, dispatching on its runtime type.

        Args:
            index: 1-based parameter position.
            value: Any value; unknown types are stored as opaque objects.
        """
        kind = infer_parameter_kind(value)
        if kind is ParameterKind.DOUBLE:
            self._put_float(index, kind, value)
        elif kind is ParameterKind.DECIMAL:
            self.set_decimal(index, value)
        else:
            self._put(index, kind, value)

    set_object = set

    def set_boolean(self, index: int, value: bool) -> None:
        self._put(index, ParameterKind.BOOLEAN, bool(value))

    def set_byte(self, index: int, value: int) -> None:
        self._put_integer(index, ParameterKind.TINYINT, value)

    def set_short(self, index: int, value: int) -> None:
        self._put_integer(index, ParameterKind.SMALLINT, value)

    def set_int(self, index: int, value: int) -> None:
        self._put_integer(index, ParameterKind.INTEGER, value)

    def set_long(self, index: int, value: int) -> None:
        self._put_integer(index, ParameterKind.BIGINT, value)

    def set_float(self, index: int, value: float) -> None:
        self._put_float(index, ParameterKind.FLOAT, value)

    def set_double(self, index: int, value: float) -> None:
        self._put_float(index, ParameterKind.DOUBLE, value)

    def set_decimal(self, index: int, value: "Decimal | int | str") -> None:
        try:
            decimal_value = value if isinstance(value, Decimal) else Decimal(value)
        except (ArithmeticError, TypeError, ValueError) as e:
            msg = f"Cannot convert {value!r} to a decimal"
            raise ParameterError(msg, index) from e
        if not decimal_value.is_finite():
            msg = f"Cannot bind non-finite value {value!r} as a decimal parameter"
            raise ParameterError(msg, index)
        self._put(index, ParameterKind.DECIMAL, decimal_value)

    def set_string(self, index: int, value: str) -> None:
        if value is None:
            self._put(index, ParameterKind.NULL, None)
            return
        self._put(index, ParameterKind.STRING, str(value))

    def set_date(self, index: int, value: date) -> None:
        if not isinstance(value, date):
            msg = f"Expected a date, got {type(value).__name__}"
            raise ParameterError(msg, index)
        self._put(index, ParameterKind.DATE, value)

    def set_time(self, index: int, value: time) -> None:
        if not isinstance(value, time):
            msg = f"Expected a time, got {type(value).__name__}"
            raise ParameterError(msg, index)
        self._put(index, ParameterKind.TIME, value)

    def set_timestamp(self, index: int, value: datetime) -> None:
        if not isinstance(value, date):
            msg = f"Expected a datetime, got {type(value).__name__}"
            raise ParameterError(msg, index)
        self._put(index, ParameterKind.TIMESTAMP, value)

    def set_null(self, index: int) -> None:
        self._put(index, ParameterKind.NULL, None)
