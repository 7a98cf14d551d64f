from elasticsql.adapters.elasticsearch._types import ElasticsearchConnection
from elasticsql.adapters.elasticsearch.config import ElasticsearchConfig, ElasticsearchConnectionParams
from elasticsql.adapters.elasticsearch.driver import (
    ElasticsearchDriver,
    ElasticsearchTransport,
    elasticsearch_statement_config,
    parse_sql_response,
)

__all__ = (
    "ElasticsearchConfig",
    "ElasticsearchConnection",
    "ElasticsearchConnectionParams",
    "ElasticsearchDriver",
    "ElasticsearchTransport",
    "elasticsearch_statement_config",
    "parse_sql_response",
)
