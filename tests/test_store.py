"""
Config Store Tests — JSON Document Persistence

Tests cover:
- Fail-open reads (missing, corrupt, non-object files)
- Atomic writes and shallow merges
- Bucket record helpers keep sibling fields
- Concurrent updates do not lose writes
- Endpoint / credential helpers
"""

import json
import threading

import pytest

from flightdeck.storage import (
    ConfigStore,
    ConfigStoreError,
    format_endpoint_url,
    get_formatted_endpoint,
    has_valid_credentials,
    mask_token,
)


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "config.json")


class TestRead:
    """read() never raises."""

    def test_missing_file_reads_empty(self, store):
        assert store.read() == {}

    def test_corrupt_file_reads_empty(self, store):
        store.path.write_text("{not json", encoding="utf-8")
        assert store.read() == {}

    def test_non_object_reads_empty(self, store):
        store.path.write_text("[1, 2, 3]", encoding="utf-8")
        assert store.read() == {}

    def test_reads_written_document(self, store):
        store.write({"influxEndpoint": "http://localhost:8181"})
        assert store.read() == {"influxEndpoint": "http://localhost:8181"}


class TestWrite:
    """write() replaces the whole document."""

    def test_write_is_pretty_printed_json(self, store):
        store.write({"a": 1})
        text = store.path.read_text(encoding="utf-8")
        assert json.loads(text) == {"a": 1}
        assert "\n" in text

    def test_write_leaves_no_temp_files(self, store):
        store.write({"a": 1})
        store.write({"a": 2})
        assert [p.name for p in store.path.parent.iterdir()] == ["config.json"]

    def test_unserializable_value_raises(self, store):
        with pytest.raises(ConfigStoreError):
            store.write({"bad": object()})

    def test_failed_write_keeps_previous_document(self, store):
        store.write({"a": 1})
        with pytest.raises(ConfigStoreError):
            store.write({"bad": object()})
        assert store.read() == {"a": 1}

    def test_creates_parent_directory(self, tmp_path):
        nested = ConfigStore(tmp_path / "nested" / "dir" / "config.json")
        nested.write({"a": 1})
        assert nested.read() == {"a": 1}


class TestUpdate:
    """Shallow merge and key removal."""

    def test_update_keeps_other_keys(self, store):
        store.write({"influxEndpoint": "http://x", "buckets": {"b1": {"name": "b1"}}})
        result = store.update({"adminToken": "secret"})

        assert result["influxEndpoint"] == "http://x"
        assert result["adminToken"] == "secret"
        assert store.read()["buckets"] == {"b1": {"name": "b1"}}

    def test_remove_keys_ignores_missing(self, store):
        store.write({"a": 1, "b": 2})
        assert store.remove_keys(["a", "zzz"]) == {"b": 2}

    def test_concurrent_updates_are_not_lost(self, store):
        def worker(i):
            for j in range(10):
                store.update({f"key-{i}-{j}": j})

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.read()) == 80

    def test_instances_on_same_path_share_lock(self, tmp_path):
        path = tmp_path / "config.json"
        assert ConfigStore(path)._lock is ConfigStore(str(path))._lock


class TestBucketRecords:
    """merge_bucket / drop_bucket_fields / remove_bucket."""

    def test_merge_creates_record_with_defaults(self, store):
        record = store.merge_bucket("b1", {"token": "t"}, defaults={"retentionPeriod": "infinite"})
        assert record == {"name": "b1", "retentionPeriod": "infinite", "token": "t"}

    def test_merge_keeps_sibling_fields(self, store):
        store.merge_bucket("b1", {"token": "t", "tokenId": "cli-1"})
        store.merge_bucket("b1", {"lvc": {"name": "b1_flight_data_lvc"}})

        record = store.get_bucket("b1")
        assert record["token"] == "t"
        assert record["tokenId"] == "cli-1"
        assert record["lvc"] == {"name": "b1_flight_data_lvc"}

    def test_defaults_ignored_for_existing_record(self, store):
        store.merge_bucket("b1", {"retentionPeriod": "30d"})
        store.merge_bucket("b1", {"token": "t"}, defaults={"retentionPeriod": "infinite"})
        assert store.get_bucket("b1")["retentionPeriod"] == "30d"

    def test_drop_fields(self, store):
        store.merge_bucket("b1", {"token": "t", "tokenId": "cli-1", "lvc": {}})
        assert store.drop_bucket_fields("b1", ["token", "tokenId"]) is True
        assert store.get_bucket("b1") == {"name": "b1", "lvc": {}}
        assert store.drop_bucket_fields("b1", ["token"]) is False

    def test_remove_bucket(self, store):
        store.merge_bucket("b1", {})
        assert store.remove_bucket("b1") is True
        assert store.remove_bucket("b1") is False
        assert store.get_bucket("b1") is None


class TestHelpers:
    """Endpoint formatting, credentials, masking."""

    def test_format_adds_trailing_slash(self):
        assert format_endpoint_url("http://localhost:8181") == "http://localhost:8181/"
        assert format_endpoint_url("http://localhost:8181/") == "http://localhost:8181/"
        assert format_endpoint_url(None) == ""

    def test_formatted_endpoint_from_config(self):
        assert get_formatted_endpoint({}) is None
        assert get_formatted_endpoint({"influxEndpoint": "http://h"}) == "http://h/"

    def test_valid_credentials_needs_both(self):
        assert has_valid_credentials({"influxEndpoint": "http://h", "adminToken": "t"})
        assert not has_valid_credentials({"influxEndpoint": "http://h"})
        assert not has_valid_credentials({"adminToken": "t"})

    def test_mask_token(self):
        token = "apiv3_abcdefghijklmnopqrstuvwxyz"
        assert mask_token(token) == "apiv3_ab...stuvwxyz"
        assert mask_token(None) is None
