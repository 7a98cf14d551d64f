"""Driver, prepared statements and the transport contract they run against."""

from elasticsql.driver._common import (
    CAPABILITY_DEFAULTS,
    Capability,
    ElasticTransport,
    UnsupportedBehavior,
    check_capability,
    handle_transport_exceptions,
)
from elasticsql.driver._statement import PreparedStatement
from elasticsql.driver._sync import ElasticDriver

__all__ = (
    "CAPABILITY_DEFAULTS",
    "Capability",
    "ElasticDriver",
    "ElasticTransport",
    "PreparedStatement",
    "UnsupportedBehavior",
    "check_capability",
    "handle_transport_exceptions",
)
