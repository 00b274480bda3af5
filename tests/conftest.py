"""
Shared fixtures — in-memory gateway double and a temp config store.
"""

import threading

import pytest

from flightdeck.influx import DatabaseCreation, Outcome
from flightdeck.storage import ConfigStore, has_valid_credentials


ENDPOINT = "http://influx.test:8181"
ADMIN_TOKEN = "apiv3_admin_token_0123456789"


class FakeGateway:
    """
    Stand-in for InfluxGateway.

    Every operation records its call and returns the Outcome stored under
    its name in `outcomes`; query_sql defers to `query_handler(db, sql)`.
    """

    def __init__(self):
        self.configured = True
        self.calls = []
        self.query_handler = lambda db, sql: Outcome.success([])
        self.outcomes = {
            "health_check": Outcome.success(None),
            "list_databases": Outcome.success([]),
            "create_database": Outcome.success(DatabaseCreation.CREATED),
            "delete_database": Outcome.success(None),
            "write_line_protocol": Outcome.success(None),
            "list_tokens": Outcome.success([]),
            "create_last_value_cache": Outcome.success("lvc"),
            "create_token": Outcome.success("apiv3_new_bucket_token_0123456789"),
            "delete_token": Outcome.success(None),
        }
        self._lock = threading.Lock()

    def _record(self, name, *args):
        with self._lock:
            self.calls.append((name, *args))
        return self.outcomes[name]

    def called(self, name):
        return [call for call in self.calls if call[0] == name]

    def health_check(self):
        return self._record("health_check")

    def list_databases(self):
        return self._record("list_databases")

    def create_database(self, name):
        return self._record("create_database", name)

    def delete_database(self, name):
        return self._record("delete_database", name)

    def query_sql(self, db, sql):
        with self._lock:
            self.calls.append(("query_sql", db, sql))
        return self.query_handler(db, sql)

    def write_line_protocol(self, db, lines):
        return self._record("write_line_protocol", db, lines)

    def list_tokens(self):
        return self._record("list_tokens")

    def create_last_value_cache(self, db, table, key_columns, value_columns, count, ttl, name):
        return self._record("create_last_value_cache", db, name)

    def create_token(self, bucket_name):
        return self._record("create_token", bucket_name)

    def delete_token(self, token_name):
        return self._record("delete_token", token_name)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store(tmp_path):
    store = ConfigStore(tmp_path / "config.json")
    store.write({"influxEndpoint": ENDPOINT, "adminToken": ADMIN_TOKEN})
    return store


@pytest.fixture
def gateway_factory(gateway):
    """Returns the shared fake, configured only when the config has credentials."""

    def factory(config):
        gateway.configured = has_valid_credentials(config)
        return gateway

    return factory
