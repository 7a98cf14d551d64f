"""Server-side scroll cursor lifecycle.

States::

    CLOSED --open--> OPEN --fetch_next--> FETCHING --> OPEN
    OPEN --exhausted / close / failure--> CLOSED

A cursor is opened once. It is fetched sequentially: a second fetch while one
is in flight is rejected rather than queued. Any failure while fetching,
including a timeout or cancellation, releases the server-side cursor on a
best-effort basis and leaves the cursor CLOSED.
"""

import threading
from enum import Enum
from typing import TYPE_CHECKING, Optional

from mypy_extensions import mypyc_attr

from elasticsql.core.result import ResultPage
from elasticsql.exceptions import CursorStateError, handle_transport_exceptions
from elasticsql.utils.logging import CURSOR_LOGGER_NAME, get_logger

if TYPE_CHECKING:
    from elasticsql.driver._common import ElasticTransport

__all__ = ("CursorState", "ScrollCursor")

logger = get_logger(CURSOR_LOGGER_NAME)


class CursorState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    FETCHING = "fetching"


@mypyc_attr(allow_interpreted_subclasses=True)
class ScrollCursor:
    """Drives a multi-page scroll against the engine.

    Args:
        transport: Engine transport issuing the scroll requests.
        fetch_size: Rows requested per page.
        timeout: Seconds before an in-flight request is aborted, ``None`` to wait.
    """

    __slots__ = (
        "_exhausted",
        "_fetch_lock",
        "_last_token",
        "_opened",
        "_state",
        "_token",
        "fetch_size",
        "timeout",
        "transport",
    )

    def __init__(self, transport: "ElasticTransport", *, fetch_size: int, timeout: Optional[float] = None) -> None:
        self.transport = transport
        self.fetch_size = fetch_size
        self.timeout = timeout
        self._token: Optional[str] = None
        self._last_token: Optional[str] = None
        self._state = CursorState.CLOSED
        self._exhausted = False
        self._opened = False
        self._fetch_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ScrollCursor(state={self._state.value}, exhausted={self._exhausted}, token={self._token!r})"

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def is_open(self) -> bool:
        return self._state is not CursorState.CLOSED

    def open(self, sql: str) -> ResultPage:
        """Issue the initial scroll request.

        Args:
            sql: Compiled statement text.

        Raises:
            CursorStateError: If this cursor has already been opened.

        Returns:
            The first page of the result.
        """
        if self._opened:
            msg = "Cursor has already been opened"
            raise CursorStateError(msg, self._token)
        self._opened = True
        try:
            with handle_transport_exceptions("open_scroll"):
                token, page = self.transport.open_scroll(sql, fetch_size=self.fetch_size, timeout=self.timeout)
        except BaseException:
            self._exhausted = True
            raise

        self._token = token
        self._last_token = token
        if token is None:
            logger.debug("Scroll returned a single page of %d row(s)", len(page))
            self._exhausted = True
        else:
            logger.debug("Opened scroll cursor %s with %d row(s)", token, len(page))
            self._state = CursorState.OPEN
        return page

    def fetch_next(self) -> ResultPage:
        """Fetch the page following the current one.

        Raises:
            CursorStateError: If the cursor is closed, exhausted or already fetching.

        Returns:
            The next page; an empty page once the engine reports exhaustion.
        """
        if not self._fetch_lock.acquire(blocking=False):
            msg = "A fetch is already in flight for this cursor"
            raise CursorStateError(msg, self._token)
        try:
            if self._state is not CursorState.OPEN or self._token is None:
                state = "exhausted" if self._exhausted else self._state.value
                msg = f"Cannot fetch from a {state} cursor"
                raise CursorStateError(msg, self._token or self._last_token)

            self._state = CursorState.FETCHING
            try:
                with handle_transport_exceptions("fetch_scroll"):
                    token, page = self.transport.fetch_scroll(self._token, timeout=self.timeout)
            except BaseException:
                logger.debug("Fetch failed on cursor %s, releasing it", self._token)
                self._release(best_effort=True)
                raise

            if token is None or not page.rows:
                logger.debug("Cursor %s exhausted", self._token)
                self._exhausted = True
                self._token = token
                self._release(best_effort=True)
                return page

            self._token = token
            self._last_token = token
            self._state = CursorState.OPEN
            return page
        finally:
            self._fetch_lock.release()

    def close(self) -> None:
        """Release the server-side cursor. Closing a closed cursor is a no-op."""
        if self._state is CursorState.CLOSED:
            return
        self._release(best_effort=False)

    def abort(self) -> None:
        """Release the server-side cursor on a best-effort basis after a failure.

        Release errors are logged, never raised.
        """
        if self._state is CursorState.CLOSED:
            return
        logger.debug("Aborting cursor %s", self._token)
        self._release(best_effort=True)

    def _release(self, *, best_effort: bool) -> None:
        token = self._token
        self._last_token = token or self._last_token
        self._state = CursorState.CLOSED
        self._token = None
        if token is None:
            return
        if not best_effort:
            with handle_transport_exceptions("close_scroll"):
                self.transport.close_scroll(token)
            logger.debug("Closed scroll cursor %s", token)
            return
        try:
            self.transport.close_scroll(token)
        except Exception:
            logger.warning("Failed to release scroll cursor %s", token, exc_info=True)
        else:
            logger.debug("Released scroll cursor %s", token)
