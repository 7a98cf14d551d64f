"""Unit tests for Elasticsearch configuration."""

from unittest.mock import MagicMock, patch

import pytest

from elasticsql.adapters.elasticsearch import ElasticsearchConfig, ElasticsearchDriver, elasticsearch_statement_config
from elasticsql.core.statement import StatementConfig
from elasticsql.exceptions import ImproperConfigurationError


def test_extra_parameters_are_flattened() -> None:
    config = ElasticsearchConfig(
        connection_config={"hosts": "http://localhost:9200", "extra": {"http_compress": True}}
    )

    assert config.connection_config == {"hosts": "http://localhost:9200", "http_compress": True}
    assert config.statement_config is elasticsearch_statement_config


def test_create_connection_passes_non_null_parameters() -> None:
    config = ElasticsearchConfig(connection_config={"hosts": "http://localhost:9200", "api_key": None})
    client = MagicMock()

    with patch.object(ElasticsearchConfig, "connection_type", return_value=client) as connection_type:
        assert config.create_connection() is client
        assert config.create_connection() is client

    connection_type.assert_called_once_with(hosts="http://localhost:9200")


def test_create_connection_runs_callback() -> None:
    callback = MagicMock()
    config = ElasticsearchConfig(connection_config={"hosts": "http://localhost:9200"}, on_connection_create=callback)

    with patch.object(ElasticsearchConfig, "connection_type") as connection_type:
        connection = config.create_connection()

    callback.assert_called_once_with(connection)
    assert connection is connection_type.return_value


def test_create_connection_failure_is_improper_configuration() -> None:
    config = ElasticsearchConfig(connection_config={"hosts": "nowhere"})

    with patch.object(ElasticsearchConfig, "connection_type", side_effect=ValueError("bad url")), pytest.raises(
        ImproperConfigurationError, match="bad url"
    ):
        config.create_connection()


def test_connection_instance_is_reused() -> None:
    client = MagicMock()
    config = ElasticsearchConfig(connection_instance=client)

    with config.provide_connection() as connection:
        assert connection is client


def test_close_connection_only_closes_owned_clients() -> None:
    external = MagicMock()
    ElasticsearchConfig(connection_instance=external).close_connection()
    external.close.assert_not_called()

    config = ElasticsearchConfig(connection_config={"hosts": "http://localhost:9200"})
    with patch.object(ElasticsearchConfig, "connection_type") as connection_type:
        config.create_connection()
    config.close_connection()
    connection_type.return_value.close.assert_called_once_with()


def test_provide_session_yields_driver_and_closes_it() -> None:
    client = MagicMock()
    statement_config = StatementConfig(fetch_size=10)
    config = ElasticsearchConfig(connection_instance=client, statement_config=statement_config)

    with config.provide_session() as session:
        assert isinstance(session, ElasticsearchDriver)
        assert session.client is client
        assert session.statement_config is statement_config
        session.prepare("SELECT 1")

    assert session.is_closed is True
    assert session.open_statements == 0


def test_provide_session_statement_config_override() -> None:
    override = StatementConfig(max_rows=5)
    config = ElasticsearchConfig(connection_instance=MagicMock())

    with config.provide_session(statement_config=override) as session:
        assert session.statement_config is override


def test_configs_hash_by_identity() -> None:
    first = ElasticsearchConfig(connection_config={"hosts": "http://a:9200"})
    second = ElasticsearchConfig(connection_config={"hosts": "http://a:9200"})

    assert first == second
    assert hash(first) != hash(second)
    assert len({first, second}) == 2
