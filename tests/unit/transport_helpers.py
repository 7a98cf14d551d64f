"""In-memory transport shared by the unit tests."""

from collections import Counter
from typing import Any, Optional

from elasticsql.core.result import ColumnDescriptor, ResultPage
from elasticsql.core.type_conversion import ColumnType

__all__ = ("FakeTransport", "default_columns", "make_rows")


def default_columns() -> "tuple[ColumnDescriptor, ...]":
    return (
        ColumnDescriptor("id", ColumnType.INTEGER, engine_type="integer"),
        ColumnDescriptor("name", ColumnType.STRING, engine_type="keyword"),
    )


def make_rows(count: int) -> "list[tuple[int, str]]":
    return [(i, f"row-{i}") for i in range(1, count + 1)]


class FakeTransport:
    """Serves a fixed result in pages and records every call.

    Args:
        rows: Rows of the result.
        columns: Column descriptors sent with the first page.
        update_count: Value returned by ``run_update``.
        trailing_empty_page: Keep handing out a cursor when a page is exactly
            full, so the result ends with an empty continuation page.
    """

    def __init__(
        self,
        rows: "Optional[list[tuple[Any, ...]]]" = None,
        columns: "Optional[tuple[ColumnDescriptor, ...]]" = None,
        *,
        update_count: int = 0,
        trailing_empty_page: bool = False,
    ) -> None:
        self.rows = list(rows or [])
        self.columns = columns if columns is not None else default_columns()
        self.update_count = update_count
        self.trailing_empty_page = trailing_empty_page
        self.calls: Counter[str] = Counter()
        self.statements: list[str] = []
        self.timeouts: list[Optional[float]] = []
        self.fetched_tokens: list[str] = []
        self.closed_tokens: list[str] = []
        self.fetch_error: Optional[BaseException] = None
        self.close_error: Optional[BaseException] = None
        self._cursors: dict[str, tuple[int, int]] = {}
        self._sequence = 0

    def _page(self, offset: int, size: int, *, with_columns: bool) -> "tuple[Optional[str], ResultPage]":
        rows = self.rows[offset : offset + size]
        next_offset = offset + len(rows)
        has_more = next_offset < len(self.rows) or (self.trailing_empty_page and rows and len(rows) == size)
        token = None
        if has_more:
            self._sequence += 1
            token = f"cursor-{self._sequence}"
            self._cursors[token] = (next_offset, size)
        return token, ResultPage(self.columns if with_columns else (), rows)

    @property
    def open_cursors(self) -> "list[str]":
        return list(self._cursors)

    def run_query(self, sql: str, *, fetch_size: int, timeout: Optional[float] = None) -> ResultPage:
        self.calls["run_query"] += 1
        self.statements.append(sql)
        self.timeouts.append(timeout)
        return ResultPage(self.columns, self.rows[:fetch_size])

    def open_scroll(
        self, sql: str, *, fetch_size: int, timeout: Optional[float] = None
    ) -> "tuple[Optional[str], ResultPage]":
        self.calls["open_scroll"] += 1
        self.statements.append(sql)
        self.timeouts.append(timeout)
        return self._page(0, fetch_size, with_columns=True)

    def fetch_scroll(self, token: str, *, timeout: Optional[float] = None) -> "tuple[Optional[str], ResultPage]":
        self.calls["fetch_scroll"] += 1
        self.fetched_tokens.append(token)
        self.timeouts.append(timeout)
        if self.fetch_error is not None:
            raise self.fetch_error
        offset, size = self._cursors.pop(token)
        return self._page(offset, size, with_columns=False)

    def close_scroll(self, token: str) -> None:
        self.calls["close_scroll"] += 1
        self.closed_tokens.append(token)
        if self.close_error is not None:
            raise self.close_error
        self._cursors.pop(token, None)

    def run_update(self, sql: str, *, timeout: Optional[float] = None) -> int:
        self.calls["run_update"] += 1
        self.statements.append(sql)
        self.timeouts.append(timeout)
        return self.update_count
