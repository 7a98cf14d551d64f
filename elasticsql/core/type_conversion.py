"""Engine field types and value coercion.

Elasticsearch reports a per-column field type with every SQL response. These
are mapped onto the fixed relational ``ColumnType`` set and raw JSON values
are coerced into the matching Python type.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Final, Optional

__all__ = (
    "ENGINE_TYPE_MAP",
    "ColumnType",
    "coerce_value",
    "convert_decimal",
    "convert_iso_date",
    "convert_iso_datetime",
    "convert_iso_time",
    "map_engine_type",
)


class ColumnType(str, Enum):
    """Declared relational type of a result column."""

    BOOLEAN = "BOOLEAN"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    STRING = "STRING"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    OBJECT = "OBJECT"

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_TYPES

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_TYPES

    @property
    def is_temporal(self) -> bool:
        return self in _TEMPORAL_TYPES


_INTEGER_TYPES: Final = frozenset({ColumnType.TINYINT, ColumnType.SMALLINT, ColumnType.INTEGER, ColumnType.BIGINT})
_NUMERIC_TYPES: Final = _INTEGER_TYPES | {ColumnType.FLOAT, ColumnType.DOUBLE, ColumnType.DECIMAL}
_TEMPORAL_TYPES: Final = frozenset({ColumnType.DATE, ColumnType.TIME, ColumnType.TIMESTAMP})

ENGINE_TYPE_MAP: "Final[dict[str, ColumnType]]" = {
    "boolean": ColumnType.BOOLEAN,
    "byte": ColumnType.TINYINT,
    "short": ColumnType.SMALLINT,
    "integer": ColumnType.INTEGER,
    "long": ColumnType.BIGINT,
    "unsigned_long": ColumnType.DECIMAL,
    "float": ColumnType.FLOAT,
    "half_float": ColumnType.FLOAT,
    "double": ColumnType.DOUBLE,
    "scaled_float": ColumnType.DOUBLE,
    "keyword": ColumnType.STRING,
    "constant_keyword": ColumnType.STRING,
    "wildcard": ColumnType.STRING,
    "text": ColumnType.STRING,
    "match_only_text": ColumnType.STRING,
    "ip": ColumnType.STRING,
    "version": ColumnType.STRING,
    "date": ColumnType.DATE,
    "datetime": ColumnType.TIMESTAMP,
    "date_nanos": ColumnType.TIMESTAMP,
    "time": ColumnType.TIME,
}


def map_engine_type(engine_type: Optional[str]) -> ColumnType:
    """Map an engine field type name onto a declared column type.

    Args:
        engine_type: Field type as reported by the engine, e.g. ``keyword``.

    Returns:
        The declared type, ``OBJECT`` for anything unrecognized.
    """
    if not engine_type:
        return ColumnType.OBJECT
    return ENGINE_TYPE_MAP.get(engine_type.lower(), ColumnType.OBJECT)


def _normalize_iso(value: str) -> str:
    # fromisoformat() only accepts a trailing "Z" from Python 3.11
    if value.endswith(("Z", "z")):
        return f"{value[:-1]}+00:00"
    return value


def convert_iso_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return datetime.fromisoformat(_normalize_iso(str(value)))


def convert_iso_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if "T" in text or " " in text.strip():
        return convert_iso_datetime(text).date()
    return date.fromisoformat(text)


def convert_iso_time(value: Any) -> time:
    if isinstance(value, datetime):
        return value.timetz()
    if isinstance(value, time):
        return value
    text = _normalize_iso(str(value))
    if "T" in text:
        return datetime.fromisoformat(text).timetz()
    return time.fromisoformat(text)


def convert_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def _convert_boolean(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "t", "1", "yes"}
    return bool(value)


def _convert_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _identity(value: Any) -> Any:
    return value


_COERCERS: "Final[dict[ColumnType, Callable[[Any], Any]]]" = {
    ColumnType.BOOLEAN: _convert_boolean,
    ColumnType.TINYINT: int,
    ColumnType.SMALLINT: int,
    ColumnType.INTEGER: int,
    ColumnType.BIGINT: int,
    ColumnType.FLOAT: float,
    ColumnType.DOUBLE: float,
    ColumnType.DECIMAL: convert_decimal,
    ColumnType.STRING: _convert_string,
    ColumnType.DATE: convert_iso_date,
    ColumnType.TIME: convert_iso_time,
    ColumnType.TIMESTAMP: convert_iso_datetime,
    ColumnType.OBJECT: _identity,
}


def coerce_value(value: Any, column_type: ColumnType) -> Any:
    """Coerce a raw engine value into the Python type of its column.

    Args:
        value: Raw value from a result page.
        column_type: The column's declared type.

    Raises:
        ValueError: When the value cannot be represented as ``column_type``.

    Returns:
        The coerced value; ``None`` is passed through.
    """
    if value is None:
        return None
    try:
        return _COERCERS[column_type](value)
    except (InvalidOperation, TypeError, ValueError, OverflowError) as e:
        msg = f"Cannot convert {value!r} to {column_type.value}"
        raise ValueError(msg) from e
