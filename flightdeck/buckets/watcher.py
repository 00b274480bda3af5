"""
Bucket Watcher — Resolve Every Bucket, Then Reconcile the Active One

One pass = list databases, resolve each non-reserved bucket, hand the
status map to the selector. The same pass backs the
/api/influxdb/buckets/status endpoint and, when enabled, a background
PeriodicTask so the active bucket follows liveness without a browser open.
"""

import logging
from typing import Callable, Dict, Optional

from flightdeck.influx.client import InfluxGateway
from flightdeck.monitor.scheduler import PeriodicTask
from flightdeck.storage.schemas import BucketStatus
from flightdeck.storage.store import ConfigStore

from .lifecycle import BucketLifecycleResolver
from .selector import ActiveBucketSelector, Selection


logger = logging.getLogger(__name__)


class BucketWatcher:
    """Aggregates bucket statuses and drives the active-bucket selector."""

    def __init__(
        self,
        store: ConfigStore,
        gateway_factory: Callable[[dict], InfluxGateway],
        resolver: BucketLifecycleResolver,
        selector: ActiveBucketSelector,
    ):
        self.store = store
        self.gateway_factory = gateway_factory
        self.resolver = resolver
        self.selector = selector
        self._task: Optional[PeriodicTask] = None

    def poll(self) -> Dict[str, BucketStatus]:
        """
        Resolve all buckets except the reserved one.

        Returns an empty map when the bucket list cannot be fetched.
        """
        listed = self.gateway_factory(self.store.read()).list_databases()
        if not listed.ok:
            logger.debug(f"Bucket list unavailable: {listed.error.message}")
            return {}

        return {
            name: self.resolver.resolve(name)
            for name in listed.data
            if name and name != self.selector.reserved_bucket
        }

    def run_once(self) -> tuple[Dict[str, BucketStatus], Selection]:
        statuses = self.poll()
        return statuses, self.selector.reconcile(statuses)

    def start(self, interval_seconds: float) -> PeriodicTask:
        """Start background polling; returns the task handle (cancel() to stop)."""
        if self._task is None or not self._task.active:
            self._task = PeriodicTask("bucket-watcher", self.run_once, interval_seconds)
            self._task.start()
        return self._task

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
