from collections.abc import Generator

import pytest

from elasticsql.driver import ElasticDriver
from tests.unit.transport_helpers import FakeTransport, make_rows


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport holding five rows."""
    return FakeTransport(make_rows(5))


@pytest.fixture
def driver(fake_transport: FakeTransport) -> Generator[ElasticDriver, None, None]:
    elastic_driver = ElasticDriver(fake_transport)
    yield elastic_driver
    elastic_driver.close()
