"""Unit tests for the scroll cursor lifecycle."""

import logging
import threading
from unittest.mock import MagicMock

import pytest

from elasticsql.core.cursor import CursorState, ScrollCursor
from elasticsql.core.result import ResultPage
from elasticsql.exceptions import CursorStateError, QueryTimeoutError, TransportError
from tests.unit.transport_helpers import FakeTransport, make_rows


# Test Fixtures
@pytest.fixture
def paged_transport() -> FakeTransport:
    """Seven rows served three at a time."""
    return FakeTransport(make_rows(7))


@pytest.fixture
def cursor(paged_transport: FakeTransport) -> ScrollCursor:
    return ScrollCursor(paged_transport, fetch_size=3, timeout=2.5)


def test_new_cursor_is_closed(cursor: ScrollCursor) -> None:
    assert cursor.state is CursorState.CLOSED
    assert cursor.token is None
    assert cursor.exhausted is False
    assert cursor.is_open is False


def test_open_moves_to_open_with_token(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    page = cursor.open("SELECT * FROM t")

    assert len(page) == 3
    assert cursor.state is CursorState.OPEN
    assert cursor.token == "cursor-1"
    assert paged_transport.statements == ["SELECT * FROM t"]
    assert paged_transport.timeouts == [2.5]


def test_open_twice_is_rejected(cursor: ScrollCursor) -> None:
    cursor.open("SELECT 1")
    with pytest.raises(CursorStateError, match="already been opened"):
        cursor.open("SELECT 1")


def test_single_page_result_is_exhausted_on_open() -> None:
    transport = FakeTransport(make_rows(2))
    cursor = ScrollCursor(transport, fetch_size=3)

    page = cursor.open("SELECT 1")

    assert len(page) == 2
    assert cursor.exhausted is True
    assert cursor.state is CursorState.CLOSED
    cursor.close()
    assert transport.calls["close_scroll"] == 0


def test_fetch_refreshes_token(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    page = cursor.fetch_next()

    assert [row[0] for row in page.rows] == [4, 5, 6]
    assert paged_transport.fetched_tokens == ["cursor-1"]
    assert cursor.token == "cursor-2"
    assert cursor.state is CursorState.OPEN


def test_last_page_without_token_exhausts_cursor(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    cursor.fetch_next()
    page = cursor.fetch_next()

    assert [row[0] for row in page.rows] == [7]
    assert cursor.exhausted is True
    assert cursor.state is CursorState.CLOSED
    assert paged_transport.calls["close_scroll"] == 0


def test_empty_page_exhausts_and_releases_cursor() -> None:
    transport = FakeTransport(make_rows(3), trailing_empty_page=True)
    cursor = ScrollCursor(transport, fetch_size=3)
    cursor.open("SELECT 1")

    page = cursor.fetch_next()

    assert not page
    assert cursor.exhausted is True
    assert cursor.state is CursorState.CLOSED
    assert transport.fetched_tokens == ["cursor-1"]


def test_empty_page_with_token_releases_it() -> None:
    transport = MagicMock()
    transport.open_scroll.return_value = ("t1", ResultPage((), [(1,)]))
    transport.fetch_scroll.return_value = ("t2", ResultPage())
    cursor = ScrollCursor(transport, fetch_size=1)
    cursor.open("SELECT 1")

    cursor.fetch_next()

    transport.close_scroll.assert_called_once_with("t2")
    assert cursor.exhausted is True


def test_fetch_after_exhaustion_raises(cursor: ScrollCursor) -> None:
    cursor.open("SELECT 1")
    cursor.fetch_next()
    cursor.fetch_next()

    with pytest.raises(CursorStateError, match="exhausted"):
        cursor.fetch_next()


def test_fetch_after_close_raises_with_token(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    cursor.close()

    assert paged_transport.closed_tokens == ["cursor-1"]
    with pytest.raises(CursorStateError) as exc_info:
        cursor.fetch_next()
    assert exc_info.value.token == "cursor-1"


def test_fetch_before_open_raises(cursor: ScrollCursor) -> None:
    with pytest.raises(CursorStateError):
        cursor.fetch_next()


def test_close_is_idempotent(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    cursor.close()
    cursor.close()

    assert paged_transport.calls["close_scroll"] == 1
    assert cursor.state is CursorState.CLOSED


def test_close_failure_is_wrapped(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    paged_transport.close_error = RuntimeError("connection reset")

    with pytest.raises(TransportError, match="connection reset") as exc_info:
        cursor.close()
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert cursor.state is CursorState.CLOSED


def test_fetch_failure_releases_cursor_and_reraises(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    paged_transport.fetch_error = ConnectionError("boom")

    with pytest.raises(TransportError, match="boom"):
        cursor.fetch_next()

    assert cursor.state is CursorState.CLOSED
    assert paged_transport.closed_tokens == ["cursor-1"]


def test_fetch_timeout_leaves_cursor_closed(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    paged_transport.fetch_error = QueryTimeoutError("timed out")

    with pytest.raises(QueryTimeoutError):
        cursor.fetch_next()

    assert cursor.state is CursorState.CLOSED
    assert paged_transport.closed_tokens == ["cursor-1"]
    with pytest.raises(CursorStateError):
        cursor.fetch_next()


def test_cancellation_during_fetch_releases_cursor(cursor: ScrollCursor, paged_transport: FakeTransport) -> None:
    cursor.open("SELECT 1")
    paged_transport.fetch_error = KeyboardInterrupt()

    with pytest.raises(KeyboardInterrupt):
        cursor.fetch_next()

    assert cursor.state is CursorState.CLOSED
    assert paged_transport.closed_tokens == ["cursor-1"]


def test_failed_best_effort_release_is_logged(
    cursor: ScrollCursor, paged_transport: FakeTransport, caplog: pytest.LogCaptureFixture
) -> None:
    cursor.open("SELECT 1")
    paged_transport.fetch_error = ConnectionError("boom")
    paged_transport.close_error = ConnectionError("still down")

    with caplog.at_level(logging.WARNING, logger="elasticsql.cursor"), pytest.raises(TransportError, match="boom"):
        cursor.fetch_next()

    assert "Failed to release scroll cursor cursor-1" in caplog.text


def test_abort_releases_without_raising(
    cursor: ScrollCursor, paged_transport: FakeTransport, caplog: pytest.LogCaptureFixture
) -> None:
    cursor.open("SELECT 1")
    paged_transport.close_error = ConnectionError("down")

    with caplog.at_level(logging.WARNING, logger="elasticsql.cursor"):
        cursor.abort()
        cursor.abort()

    assert cursor.state is CursorState.CLOSED
    assert paged_transport.closed_tokens == ["cursor-1"]
    assert "Failed to release scroll cursor cursor-1" in caplog.text
    with pytest.raises(CursorStateError):
        cursor.fetch_next()


def test_concurrent_fetch_is_rejected() -> None:
    entered = threading.Event()
    release = threading.Event()
    transport = MagicMock()
    transport.open_scroll.return_value = ("t1", ResultPage((), [(1,)]))

    def slow_fetch(token: str, *, timeout: object = None) -> "tuple[str, ResultPage]":
        entered.set()
        release.wait(timeout=5)
        return "t2", ResultPage((), [(2,)])

    transport.fetch_scroll.side_effect = slow_fetch
    cursor = ScrollCursor(transport, fetch_size=1)
    cursor.open("SELECT 1")

    worker = threading.Thread(target=cursor.fetch_next)
    worker.start()
    try:
        assert entered.wait(timeout=5)
        with pytest.raises(CursorStateError, match="in flight"):
            cursor.fetch_next()
    finally:
        release.set()
        worker.join(timeout=5)

    assert cursor.state is CursorState.OPEN
    assert cursor.token == "t2"
