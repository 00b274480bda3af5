"""
Directory Size Monitor — Database Disk Usage as a Time Series

On every tick, sums file sizes under the InfluxDB data directory and
writes one point into the active bucket:

    directory_stats,folder=db_size directory_size_bytes=<N> <timestampNanos>

The monitor is an ordinary object owned by the application: create it
once at startup, start/stop it from there. start() is idempotent, so a
second start never creates a second timer.
"""

import logging
import os
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from flightdeck.influx.client import InfluxGateway
from flightdeck.influx.points import directory_size_line, now_ns
from flightdeck.storage.store import ConfigStore

from .scheduler import PeriodicTask


logger = logging.getLogger(__name__)

LOG_PREFIX = "[DirSizeMonitor]"


def calculate_dir_size(path: str) -> int:
    """Recursive sum of file sizes under `path`. Unreadable entries count as 0."""
    total = 0

    def _on_error(error: OSError) -> None:
        logger.warning(f"{LOG_PREFIX} Cannot read {error.filename}: {error.strerror}")

    for root, _dirs, files in os.walk(path, onerror=_on_error):
        for name in files:
            file_path = os.path.join(root, name)
            try:
                total += os.path.getsize(file_path)
            except OSError as e:
                logger.warning(f"{LOG_PREFIX} Cannot stat {file_path}: {e}")
    return total


@dataclass(frozen=True)
class MonitorStatus:
    monitoring: bool
    instance_id: str
    start_time: str
    interval_seconds: float


def _new_instance_id() -> str:
    return uuid.uuid4().hex[:12]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DirectorySizeMonitor:
    """
    Start/stop/restart/collect control over one PeriodicTask.

    Args:
        store: Config document store (endpoint, token, dataPath, activeBucket)
        gateway_factory: Builds a gateway from the config document
        interval_seconds: Default tick interval
        default_data_path: Used when the config document has no dataPath
        clock: Nanosecond timestamp source
    """

    def __init__(
        self,
        store: ConfigStore,
        gateway_factory: Callable[[dict], InfluxGateway],
        interval_seconds: float = 10.0,
        default_data_path: Optional[str] = None,
        clock: Callable[[], int] = now_ns,
    ):
        self.store = store
        self.gateway_factory = gateway_factory
        self.interval_seconds = interval_seconds
        self.default_data_path = default_data_path
        self.clock = clock
        self.instance_id = _new_instance_id()
        self.start_time = _now_iso()
        self._task: Optional[PeriodicTask] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._task is not None and self._task.active

    def status(self) -> MonitorStatus:
        return MonitorStatus(
            monitoring=self.active,
            instance_id=self.instance_id,
            start_time=self.start_time,
            interval_seconds=self.interval_seconds,
        )

    def _spawn(self) -> None:
        self._task = PeriodicTask(
            name=f"dir-size-monitor-{self.instance_id}",
            func=self.collect_once,
            interval_seconds=self.interval_seconds,
        )
        self._task.start()

    def start(self, interval_seconds: Optional[float] = None) -> bool:
        """Start ticking. Returns False (and changes nothing) if already active."""
        with self._lock:
            if self.active:
                return False
            if interval_seconds:
                self.interval_seconds = interval_seconds
            self.start_time = _now_iso()
            logger.info(f"{LOG_PREFIX} Starting monitoring with instance ID: {self.instance_id}")
            self._spawn()
            return True

    def stop(self) -> bool:
        """Stop ticking. Returns False if it was not active."""
        with self._lock:
            if not self.active:
                return False
            self._task.cancel()
            self._task = None
            logger.info(f"{LOG_PREFIX} Monitoring stopped (instance {self.instance_id})")
            return True

    def restart(self, interval_seconds: Optional[float] = None) -> str:
        """Reset the timer under a fresh instance id; returns the new id."""
        with self._lock:
            if self._task is not None:
                self._task.cancel()
                self._task = None
            if interval_seconds:
                self.interval_seconds = interval_seconds
            self.instance_id = _new_instance_id()
            self.start_time = _now_iso()
            logger.info(f"{LOG_PREFIX} Restarting with new instance {self.instance_id}")
            self._spawn()
            return self.instance_id

    def collect_once(self) -> Optional[str]:
        """
        Measure and write one sample now.

        Returns the line written, or None when the tick was skipped or the
        write failed. Never raises.
        """
        try:
            config = self.store.read()
            gateway = self.gateway_factory(config)
            if not gateway.configured:
                logger.error(f"{LOG_PREFIX} InfluxDB configuration is incomplete")
                return None

            data_path = config.get("dataPath") or self.default_data_path
            if not data_path:
                logger.error(f"{LOG_PREFIX} dataPath is missing in config")
                return None
            if not os.path.isdir(data_path):
                logger.error(f"{LOG_PREFIX} Could not find DB directory {data_path}")
                return None

            bucket = config.get("activeBucket")
            if not bucket:
                logger.error(f"{LOG_PREFIX} No active bucket configured")
                return None

            size = calculate_dir_size(data_path)
            line = directory_size_line(size, self.clock())
            logger.debug(f"{LOG_PREFIX} Data to send: {line}")

            written = gateway.write_line_protocol(bucket, line)
            if not written.ok:
                logger.error(f"{LOG_PREFIX} Error writing to InfluxDB: {written.error.message}")
                return None
            logger.info(f"{LOG_PREFIX} Data written successfully: {size} bytes")
            return line
        except Exception as e:
            logger.error(f"{LOG_PREFIX} Error in collection cycle: {e}")
            return None
