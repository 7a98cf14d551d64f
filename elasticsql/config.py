from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Optional, TypeVar

from elasticsql.core.statement import StatementConfig, get_default_config
from elasticsql.utils.logging import get_logger

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from elasticsql.driver import ElasticDriver


__all__ = ("ConfigT", "ConnectionT", "DatabaseConfigProtocol", "DriverT", "NoPoolSyncConfig")

ConnectionT = TypeVar("ConnectionT")
DriverT = TypeVar("DriverT", bound="ElasticDriver")
ConfigT = TypeVar("ConfigT", bound="NoPoolSyncConfig[Any, Any]")

logger = get_logger("config")


class DatabaseConfigProtocol(ABC, Generic[ConnectionT, DriverT]):
    """Protocol defining the interface for engine configurations."""

    __slots__ = ("connection_config", "statement_config")
    driver_type: "ClassVar[type[Any]]"
    connection_type: "ClassVar[type[Any]]"
    is_async: "ClassVar[bool]" = False
    supports_connection_pooling: "ClassVar[bool]" = False
    statement_config: StatementConfig

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.connection_config == other.connection_config and self.statement_config == other.statement_config

    def __repr__(self) -> str:
        parts = ", ".join(
            [f"connection_config={self.connection_config!r}", f"statement_config={self.statement_config!r}"]
        )
        return f"{type(self).__name__}({parts})"

    @abstractmethod
    def create_connection(self) -> ConnectionT:
        """Create and return a new engine connection."""
        raise NotImplementedError

    @abstractmethod
    def provide_connection(self, *args: Any, **kwargs: Any) -> "AbstractContextManager[ConnectionT]":
        """Provide an engine connection context manager."""
        raise NotImplementedError

    @abstractmethod
    def provide_session(self, *args: Any, **kwargs: Any) -> "AbstractContextManager[DriverT]":
        """Provide a driver session context manager."""
        raise NotImplementedError


class NoPoolSyncConfig(DatabaseConfigProtocol[ConnectionT, DriverT]):
    """Base class for sync engine configurations that do not implement a pool."""

    __slots__ = ()
    is_async: "ClassVar[bool]" = False
    supports_connection_pooling: "ClassVar[bool]" = False

    def __init__(
        self,
        *,
        connection_config: "Optional[dict[str, Any]]" = None,
        statement_config: "Optional[StatementConfig]" = None,
    ) -> None:
        self.connection_config: dict[str, Any] = connection_config or {}
        self.statement_config = statement_config or get_default_config()

    def create_connection(self) -> ConnectionT:
        raise NotImplementedError

    def provide_connection(self, *args: Any, **kwargs: Any) -> "AbstractContextManager[ConnectionT]":
        raise NotImplementedError

    def provide_session(
        self, *args: Any, statement_config: "Optional[StatementConfig]" = None, **kwargs: Any
    ) -> "AbstractContextManager[DriverT]":
        raise NotImplementedError
