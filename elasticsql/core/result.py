"""Result pages and the row-cursor result set built over them.

Architecture:
- ColumnDescriptor: name and declared type of one column
- ResultPage: one physical page of rows as returned by the engine
- ResultSetMetaData: column descriptors, fixed for a logical result
- ResultSet: single monotonic row cursor across every page of a result

A logical result in scroll mode spans several pages. Crossing a page
boundary fetches exactly one continuation page from the owning cursor and is
invisible to the caller.
"""

from collections.abc import Iterator, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Final, Optional

from mypy_extensions import mypyc_attr

from elasticsql.core.type_conversion import (
    ColumnType,
    coerce_value,
    convert_decimal,
    convert_iso_date,
    convert_iso_datetime,
    convert_iso_time,
    map_engine_type,
)
from elasticsql.exceptions import (
    ColumnNotFoundError,
    CursorStateError,
    NoCurrentRowError,
    TransportError,
    TypeMismatchError,
)
from elasticsql.utils.logging import get_logger

if TYPE_CHECKING:
    from elasticsql.core.cursor import ScrollCursor
    from elasticsql.typing import ColumnKey, RowValues

__all__ = ("ColumnDescriptor", "ResultPage", "ResultSet", "ResultSetMetaData")

logger = get_logger("elasticsql.core.result")


@mypyc_attr(allow_interpreted_subclasses=False)
class ColumnDescriptor:
    """Describes one result column.

    Attributes:
        name: Column name as reported by the engine.
        declared_type: Fixed relational type of the column.
        nullable: Whether the column may hold nulls. The engine is schemaless,
            so every column is nullable unless told otherwise.
        engine_type: Raw engine field type, e.g. ``keyword``.
    """

    __slots__ = ("declared_type", "engine_type", "name", "nullable")

    def __init__(
        self,
        name: str,
        declared_type: ColumnType = ColumnType.OBJECT,
        nullable: bool = True,
        engine_type: Optional[str] = None,
    ) -> None:
        self.name = name
        self.declared_type = ColumnType(declared_type)
        self.nullable = nullable
        self.engine_type = engine_type

    @classmethod
    def from_engine(cls, name: str, engine_type: Optional[str]) -> "ColumnDescriptor":
        return cls(name, map_engine_type(engine_type), True, engine_type)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnDescriptor):
            return False
        return (
            self.name == other.name
            and self.declared_type == other.declared_type
            and self.nullable == other.nullable
            and self.engine_type == other.engine_type
        )

    def __hash__(self) -> int:
        return hash((self.name, self.declared_type, self.nullable, self.engine_type))

    def __repr__(self) -> str:
        return f"ColumnDescriptor(name={self.name!r}, declared_type={self.declared_type.value})"


@mypyc_attr(allow_interpreted_subclasses=False)
class ResultPage:
    """One page of rows.

    Continuation pages of a scroll may carry no column descriptors; the
    descriptors of the first page apply to every page of the result.
    """

    __slots__ = ("columns", "rows")

    def __init__(
        self, columns: "Sequence[ColumnDescriptor]" = (), rows: "Sequence[Sequence[Any]]" = ()
    ) -> None:
        self.columns: tuple[ColumnDescriptor, ...] = tuple(columns)
        self.rows: tuple[tuple[Any, ...], ...] = tuple(tuple(row) for row in rows)

    @classmethod
    def empty(cls) -> "ResultPage":
        return cls()

    def __len__(self) -> int:
        return len(self.rows)

    def __bool__(self) -> bool:
        return bool(self.rows)

    def __repr__(self) -> str:
        return f"ResultPage(columns={len(self.columns)}, rows={len(self.rows)})"


@mypyc_attr(allow_interpreted_subclasses=False)
class ResultSetMetaData:
    """Column metadata of a logical result. Column positions are 1-based."""

    __slots__ = ("_columns", "_positions")

    def __init__(self, columns: "Sequence[ColumnDescriptor]") -> None:
        self._columns: tuple[ColumnDescriptor, ...] = tuple(columns)
        self._positions: dict[str, int] = {}
        for position, column in enumerate(self._columns, start=1):
            self._positions.setdefault(column.name, position)

    @property
    def columns(self) -> "tuple[ColumnDescriptor, ...]":
        return self._columns

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> "Iterator[ColumnDescriptor]":
        return iter(self._columns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultSetMetaData):
            return False
        return self._columns == other._columns

    def __hash__(self) -> int:
        return hash(self._columns)

    def __repr__(self) -> str:
        return f"ResultSetMetaData({list(self._columns)!r})"

    def column(self, position: int) -> ColumnDescriptor:
        if isinstance(position, bool) or not isinstance(position, int) or not 1 <= position <= len(self._columns):
            msg = f"Column index {position!r} is out of range (1..{len(self._columns)})"
            raise ColumnNotFoundError(msg)
        return self._columns[position - 1]

    def get_column_name(self, position: int) -> str:
        return self.column(position).name

    def get_column_type(self, position: int) -> ColumnType:
        return self.column(position).declared_type

    def get_column_type_name(self, position: int) -> str:
        return self.column(position).declared_type.value

    def is_nullable(self, position: int) -> bool:
        return self.column(position).nullable

    def find_column(self, name: str) -> int:
        """Resolve a column name to its 1-based position.

        Exact matches win over case-insensitive ones.

        Args:
            name: Column name.

        Raises:
            ColumnNotFoundError: If no column carries that name.

        Returns:
            The 1-based column position.
        """
        position = self._positions.get(name)
        if position is not None:
            return position
        lowered = name.lower()
        for candidate, candidate_position in self._positions.items():
            if candidate.lower() == lowered:
                return candidate_position
        msg = f"Unknown column name {name!r}"
        raise ColumnNotFoundError(msg)


_NUMERIC: Final = frozenset(t for t in ColumnType if t.is_numeric)

# accessor name -> (compatible declared types, conversion)
_ACCESSORS: "Final[dict[str, tuple[frozenset[ColumnType], Callable[[Any], Any]]]]" = {
    "get_boolean": (_NUMERIC | {ColumnType.BOOLEAN}, bool),
    "get_int": (_NUMERIC, int),
    "get_float": (_NUMERIC, float),
    "get_decimal": (_NUMERIC, convert_decimal),
    "get_date": (frozenset({ColumnType.DATE, ColumnType.TIMESTAMP}), convert_iso_date),
    "get_time": (frozenset({ColumnType.TIME, ColumnType.TIMESTAMP}), convert_iso_time),
    "get_timestamp": (frozenset({ColumnType.DATE, ColumnType.TIMESTAMP}), convert_iso_datetime),
}


@mypyc_attr(allow_interpreted_subclasses=True)
class ResultSet:
    """Row cursor over a logical, possibly multi-page, result.

    The cursor starts before the first row. ``next()`` advances it and
    returns ``False`` once every row has been consumed; that state is
    terminal and never triggers another fetch.

    Args:
        first_page: The page that opened the result; its columns define the metadata.
        cursor: Scroll cursor providing continuation pages, ``None`` for a direct result.
        max_rows: Upper bound on rows exposed, ``0`` for no limit.
    """

    __slots__ = (
        "_closed",
        "_cursor",
        "_exhausted",
        "_failed",
        "_max_rows",
        "_metadata",
        "_page",
        "_page_position",
        "_row",
        "_row_number",
        "_was_null",
    )

    def __init__(
        self, first_page: ResultPage, *, cursor: "Optional[ScrollCursor]" = None, max_rows: int = 0
    ) -> None:
        self._metadata = ResultSetMetaData(first_page.columns)
        self._cursor = cursor
        self._max_rows = max_rows
        self._page = first_page
        self._page_position = -1
        self._row: Optional[tuple[Any, ...]] = None
        self._row_number = 0
        self._exhausted = False
        self._failed = False
        self._closed = False
        self._was_null = False
        self._check_page(first_page)

    def __enter__(self) -> "ResultSet":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __iter__(self) -> "Iterator[RowValues]":
        while self.next():
            yield self.current_row()

    @property
    def row_number(self) -> int:
        """1-based number of the current row, ``0`` before the first row."""
        return self._row_number

    @property
    def is_exhausted(self) -> bool:
        return self._exhausted

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def cursor(self) -> "Optional[ScrollCursor]":
        return self._cursor

    def metadata(self) -> ResultSetMetaData:
        return self._metadata

    def _check_page(self, page: ResultPage) -> None:
        width = self._metadata.column_count
        for row in page.rows:
            if len(row) != width:
                msg = f"Malformed result page: row has {len(row)} value(s) but the result has {width} column(s)"
                raise TransportError(msg)

    def _finish(self) -> None:
        self._exhausted = True
        self._row = None
        if self._cursor is not None and self._cursor.is_open:
            self._cursor.close()

    def _advance_page(self) -> bool:
        """Fetch continuation pages until one has rows or the cursor is exhausted."""
        cursor = self._cursor
        while cursor is not None and not cursor.exhausted:
            try:
                page = cursor.fetch_next()
                self._check_page(page)
            except BaseException:
                self._failed = True
                self._row = None
                cursor.abort()
                raise
            if page.rows:
                self._page = page
                self._page_position = -1
                return True
        return False

    def next(self) -> bool:
        """Advance to the next row.

        Raises:
            CursorStateError: If the result set has been closed or a page fetch failed.

        Returns:
            True when positioned on a row, False once the result is exhausted.
        """
        if self._exhausted:
            return False
        if self._failed:
            msg = "Result set is unusable after a failed page fetch"
            raise CursorStateError(msg, self._cursor.token if self._cursor else None)
        if self._closed:
            msg = "Result set is closed"
            raise CursorStateError(msg, self._cursor.token if self._cursor else None)
        if self._max_rows and self._row_number >= self._max_rows:
            logger.debug("Row limit of %d reached", self._max_rows)
            self._finish()
            return False

        if self._page_position + 1 >= len(self._page.rows) and not self._advance_page():
            self._finish()
            return False

        self._page_position += 1
        self._row = self._page.rows[self._page_position]
        self._row_number += 1
        return True

    def close(self) -> None:
        """Release the result and its cursor. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._row = None
        if self._cursor is not None:
            self._cursor.close()

    def current_row(self) -> "RowValues":
        """The current row with every value typed per its column."""
        row = self._require_row()
        values = []
        for value, column in zip(row, self._metadata.columns):
            try:
                values.append(coerce_value(value, column.declared_type))
            except ValueError as e:
                raise TypeMismatchError(
                    str(e), column=column.name, declared_type=column.declared_type.value, accessor="current_row"
                ) from e
        return tuple(values)

    def _require_row(self) -> "tuple[Any, ...]":
        if self._row is None:
            msg = "Result set is not positioned on a row"
            raise NoCurrentRowError(msg)
        return self._row

    def _resolve(self, column: "ColumnKey") -> "tuple[int, Any]":
        position = self._metadata.find_column(column) if isinstance(column, str) else column
        self._metadata.column(position)
        row = self._require_row()
        raw = row[position - 1]
        self._was_null = raw is None
        return position, raw

    def find_column(self, name: str) -> int:
        return self._metadata.find_column(name)

    def was_null(self) -> bool:
        """Whether the last value read was null."""
        return self._was_null

    def get(self, column: "ColumnKey") -> Any:
        """Value at the current row, typed per the column's declared type.

        Args:
            column: 1-based column index or column name.

        Raises:
            ColumnNotFoundError: For an unknown index or name.
            NoCurrentRowError: When not positioned on a row.
            TypeMismatchError: When the engine value does not fit the declared type.

        Returns:
            The typed value, or ``None`` for null.
        """
        position, raw = self._resolve(column)
        descriptor = self._metadata.column(position)
        try:
            return coerce_value(raw, descriptor.declared_type)
        except ValueError as e:
            raise TypeMismatchError(
                str(e), column=descriptor.name, declared_type=descriptor.declared_type.value, accessor="get"
            ) from e

    get_object = get

    def _typed(self, column: "ColumnKey", accessor: str) -> Any:
        position, raw = self._resolve(column)
        descriptor = self._metadata.column(position)
        compatible, convert = _ACCESSORS[accessor]
        if descriptor.declared_type not in compatible:
            msg = "Accessor is incompatible with the column type"
            raise TypeMismatchError(
                msg, column=descriptor.name, declared_type=descriptor.declared_type.value, accessor=accessor
            )
        if raw is None:
            return None
        try:
            return convert(coerce_value(raw, descriptor.declared_type))
        except (ArithmeticError, TypeError, ValueError) as e:
            raise TypeMismatchError(
                str(e), column=descriptor.name, declared_type=descriptor.declared_type.value, accessor=accessor
            ) from e

    def get_string(self, column: "ColumnKey") -> Optional[str]:
        _, raw = self._resolve(column)
        if raw is None or isinstance(raw, str):
            return raw
        if isinstance(raw, bool):
            return "true" if raw else "false"
        if isinstance(raw, (date, time)):
            return raw.isoformat()
        return str(raw)

    def get_boolean(self, column: "ColumnKey") -> Optional[bool]:
        return self._typed(column, "get_boolean")

    def get_int(self, column: "ColumnKey") -> Optional[int]:
        return self._typed(column, "get_int")

    def get_float(self, column: "ColumnKey") -> Optional[float]:
        return self._typed(column, "get_float")

    def get_decimal(self, column: "ColumnKey") -> Optional[Decimal]:
        return self._typed(column, "get_decimal")

    def get_date(self, column: "ColumnKey") -> Optional[date]:
        return self._typed(column, "get_date")

    def get_time(self, column: "ColumnKey") -> Optional[time]:
        return self._typed(column, "get_time")

    def get_timestamp(self, column: "ColumnKey") -> Optional[datetime]:
        return self._typed(column, "get_timestamp")

    def __repr__(self) -> str:
        return (
            f"ResultSet(columns={self._metadata.column_count}, row_number={self._row_number}, "
            f"exhausted={self._exhausted})"
        )
