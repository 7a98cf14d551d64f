"""Shared driver contracts.

- ElasticTransport: the outbound calls the statement layer makes
- Capability table: fixed behavior for operations the engine cannot support
- handle_transport_exceptions: wraps foreign transport failures, re-exported from exceptions
"""

from enum import Enum
from typing import TYPE_CHECKING, Final, Optional, Protocol, runtime_checkable

from elasticsql.exceptions import UnsupportedOperationError, handle_transport_exceptions
from elasticsql.utils.logging import get_logger

if TYPE_CHECKING:
    from elasticsql.core.result import ResultPage

__all__ = (
    "CAPABILITY_DEFAULTS",
    "Capability",
    "ElasticTransport",
    "UnsupportedBehavior",
    "check_capability",
    "handle_transport_exceptions",
)

logger = get_logger("elasticsql.driver")


@runtime_checkable
class ElasticTransport(Protocol):
    """Outbound engine calls.

    A ``None`` cursor token returned by ``open_scroll`` or ``fetch_scroll``
    signals that the engine holds no further pages.
    """

    def run_query(self, sql: str, *, fetch_size: int, timeout: Optional[float] = None) -> "ResultPage":
        """Run a statement and return its first page only."""
        ...

    def open_scroll(
        self, sql: str, *, fetch_size: int, timeout: Optional[float] = None
    ) -> "tuple[Optional[str], ResultPage]":
        """Run a statement as a scroll, returning the cursor token and the first page."""
        ...

    def fetch_scroll(self, token: str, *, timeout: Optional[float] = None) -> "tuple[Optional[str], ResultPage]":
        """Fetch the page following ``token``, returning the refreshed token and the page."""
        ...

    def close_scroll(self, token: str) -> None:
        """Release a server-side cursor."""
        ...

    def run_update(self, sql: str, *, timeout: Optional[float] = None) -> int:
        """Run a write statement and return the affected row count."""
        ...


class Capability(str, Enum):
    TRANSACTIONS = "transactions"
    SAVEPOINTS = "savepoints"
    BATCH_UPDATES = "batch_updates"
    PARAMETER_METADATA = "parameter_metadata"
    GENERATED_KEYS = "generated_keys"


class UnsupportedBehavior(str, Enum):
    """What an operation backed by an unsupported capability does.

    - RAISE: fail with ``UnsupportedOperationError``
    - NOOP: return without doing anything
    """

    RAISE = "raise"
    NOOP = "noop"


# The engine has no transactions and runs every statement on its own, so
# commit and rollback pass through silently.
CAPABILITY_DEFAULTS: "Final[dict[Capability, UnsupportedBehavior]]" = {
    Capability.TRANSACTIONS: UnsupportedBehavior.NOOP,
    Capability.SAVEPOINTS: UnsupportedBehavior.RAISE,
    Capability.BATCH_UPDATES: UnsupportedBehavior.RAISE,
    Capability.PARAMETER_METADATA: UnsupportedBehavior.RAISE,
    Capability.GENERATED_KEYS: UnsupportedBehavior.RAISE,
}


def check_capability(capability: Capability, operation: str) -> None:
    """Apply the fixed behavior of an unsupported capability.

    Args:
        capability: The capability the operation depends on.
        operation: Name of the operation, used in the error message.

    Raises:
        UnsupportedOperationError: When the capability's behavior is RAISE.
    """
    behavior = CAPABILITY_DEFAULTS[capability]
    if behavior is UnsupportedBehavior.NOOP:
        logger.debug("%s is a no-op: the engine does not support %s", operation, capability.value)
        return
    msg = f"{operation} is not supported: the engine does not support {capability.value.replace('_', ' ')}"
    raise UnsupportedOperationError(msg)
