"""
Monitor Tests — Directory Size Sampling and Periodic Tasks

Tests cover:
- calculate_dir_size sums nested files
- collect_once writes one directory_stats point, or skips with a reason
- start/stop/restart state transitions
- PeriodicTask survives a failing tick
"""

import threading

import pytest

from flightdeck.influx import Outcome, Upstream5xx
from flightdeck.monitor import DirectorySizeMonitor, PeriodicTask, calculate_dir_size


STAMP = 1746597790474000000


@pytest.fixture
def data_dir(tmp_path):
    root = tmp_path / "influx-data"
    (root / "wal").mkdir(parents=True)
    (root / "a.parquet").write_bytes(b"x" * 100)
    (root / "wal" / "0001.wal").write_bytes(b"y" * 23)
    return root


@pytest.fixture
def monitor(store, gateway_factory):
    monitor = DirectorySizeMonitor(store, gateway_factory, interval_seconds=60, clock=lambda: STAMP)
    yield monitor
    monitor.stop()


class TestDirSize:

    def test_sums_nested_files(self, data_dir):
        assert calculate_dir_size(str(data_dir)) == 123

    def test_missing_directory_is_zero(self, tmp_path):
        assert calculate_dir_size(str(tmp_path / "missing")) == 0


class TestCollectOnce:

    def test_writes_sample_to_active_bucket(self, monitor, store, gateway, data_dir):
        store.update({"dataPath": str(data_dir), "activeBucket": "b1"})

        line = monitor.collect_once()

        expected = f"directory_stats,folder=db_size directory_size_bytes=123 {STAMP}"
        assert line == expected
        assert gateway.called("write_line_protocol") == [("write_line_protocol", "b1", expected)]

    def test_default_data_path(self, store, gateway_factory, gateway, data_dir):
        store.update({"activeBucket": "b1"})
        monitor = DirectorySizeMonitor(store, gateway_factory, default_data_path=str(data_dir))
        assert monitor.collect_once() is not None

    def test_skips_without_data_path(self, monitor, store, gateway):
        store.update({"activeBucket": "b1"})
        assert monitor.collect_once() is None
        assert gateway.called("write_line_protocol") == []

    def test_skips_when_path_is_not_directory(self, monitor, store, gateway, tmp_path):
        store.update({"dataPath": str(tmp_path / "nope"), "activeBucket": "b1"})
        assert monitor.collect_once() is None

    def test_skips_without_active_bucket(self, monitor, store, gateway, data_dir):
        store.update({"dataPath": str(data_dir)})
        assert monitor.collect_once() is None
        assert gateway.called("write_line_protocol") == []

    def test_skips_without_credentials(self, monitor, store, gateway, data_dir):
        store.update({"dataPath": str(data_dir), "activeBucket": "b1"})
        store.remove_keys(["influxEndpoint"])
        assert monitor.collect_once() is None

    def test_write_failure_returns_none(self, monitor, store, gateway, data_dir):
        store.update({"dataPath": str(data_dir), "activeBucket": "b1"})
        gateway.outcomes["write_line_protocol"] = Outcome.failure(Upstream5xx(500, "down"))
        assert monitor.collect_once() is None


class TestLifecycle:

    def test_start_is_idempotent(self, monitor):
        assert monitor.start() is True
        assert monitor.start() is False
        assert monitor.status().monitoring is True

    def test_stop(self, monitor):
        assert monitor.stop() is False
        monitor.start()
        assert monitor.stop() is True
        assert monitor.status().monitoring is False

    def test_start_with_interval(self, monitor):
        monitor.start(5)
        assert monitor.status().interval_seconds == 5

    def test_restart_issues_new_instance(self, monitor):
        monitor.start()
        old_id = monitor.status().instance_id

        new_id = monitor.restart()

        assert new_id != old_id
        assert monitor.status().instance_id == new_id
        assert monitor.status().monitoring is True


class TestPeriodicTask:

    def test_failing_tick_keeps_running(self):
        ticks = []
        done = threading.Event()

        def tick():
            ticks.append(1)
            if len(ticks) >= 3:
                done.set()
            raise RuntimeError("tick failed")

        task = PeriodicTask("test", tick, interval_seconds=0.01)
        task.start()
        try:
            assert done.wait(timeout=5)
        finally:
            task.cancel()
        assert not task.active

    def test_start_twice(self):
        task = PeriodicTask("test", lambda: None, interval_seconds=60)
        assert task.start() is True
        assert task.start() is False
        task.cancel()

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            PeriodicTask("test", lambda: None, interval_seconds=0)
