"""
Bucket Lifecycle Resolver — Freshness Check + Last-Value-Cache Provisioning

Data freshness IS liveness: a bucket is online when its flight_data table
received at least one row in the last minute. There is no separate
heartbeat.

When a bucket comes online without a cache descriptor in the config, we
create exactly one last-value cache for it (fixed telemetry schema) and
record the descriptor under the bucket's `lvc` key.

Failure policy: best effort. Failed freshness queries read as offline; cache
provisioning failures are logged and retried on a later poll.
"""

import logging
import threading
from typing import Callable, Dict, Optional

from flightdeck.influx.client import InfluxGateway
from flightdeck.storage.schemas import BucketState, BucketStatus, CacheRecord
from flightdeck.storage.store import ConfigStore


logger = logging.getLogger(__name__)


# ============================================================================
# Telemetry schema
# ============================================================================

FLIGHT_TABLE = "flight_data"

LVC_KEY_COLUMNS = "aircraft_tailnumber"
LVC_VALUE_COLUMNS = ",".join([
    "flight_altitude",
    "speed_true_airspeed",
    "flight_heading_magnetic",
    "flight_latitude",
    "flight_longitude",
    "speed_vertical",
    "autopilot_heading_target",
    "autopilot_master",
    "autopilot_altitude_target",
    "flight_bank",
    "flight_pitch",
    "aircraft_airline",
    "aircraft_callsign",
    "aircraft_type",
])
LVC_COUNT = 1
LVC_TTL = "10s"

ONLINE_CHECK_SQL = (
    f"SELECT 1 AS online FROM {FLIGHT_TABLE} "
    "WHERE time >= now() - INTERVAL '1 minute' LIMIT 1"
)


def cache_name_for(bucket_name: str, table: str = FLIGHT_TABLE) -> str:
    """Name of the last-value cache provisioned for a bucket."""
    return f"{bucket_name}_{table}_lvc"


def default_cache_record(bucket_name: str) -> CacheRecord:
    """Cache descriptor for the fixed flight telemetry schema."""
    return CacheRecord(
        name=cache_name_for(bucket_name),
        tableName=FLIGHT_TABLE,
        keyColumns=LVC_KEY_COLUMNS,
        valueColumns=LVC_VALUE_COLUMNS,
        count=LVC_COUNT,
        ttl=LVC_TTL,
    )


class BucketLifecycleResolver:
    """
    Derives BucketStatus for one bucket per call.

    Args:
        store: Config document store
        gateway_factory: Builds a gateway from the current config document
    """

    def __init__(
        self,
        store: ConfigStore,
        gateway_factory: Callable[[dict], InfluxGateway],
    ):
        self.store = store
        self.gateway_factory = gateway_factory
        self._bucket_locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, bucket_name: str) -> threading.Lock:
        with self._guard:
            return self._bucket_locks.setdefault(bucket_name, threading.Lock())

    def resolve(self, bucket_name: str) -> BucketStatus:
        """
        Check a bucket and provision its cache if it just came online.

        Never raises.
        """
        status = BucketStatus()
        try:
            gateway = self.gateway_factory(self.store.read())
            if not gateway.configured:
                return status

            check = gateway.query_sql(bucket_name, ONLINE_CHECK_SQL)
            if not check.ok:
                logger.debug(f"Freshness query failed for bucket {bucket_name}: {check.error.message}")
                return status

            status.hasTable = True
            rows = check.data or []
            if rows and _is_positive(rows[0].get("online")):
                status.status = BucketState.ONLINE

            if status.status == BucketState.ONLINE:
                self._ensure_cache(bucket_name, gateway, status)
        except Exception as e:
            logger.error(f"Unexpected error resolving bucket {bucket_name}: {e}")
            return BucketStatus()

        return status

    def _ensure_cache(self, bucket_name: str, gateway: InfluxGateway, status: BucketStatus) -> None:
        """Create the bucket's last-value cache once; record it in the config."""
        with self._lock_for(bucket_name):
            record = self.store.get_bucket(bucket_name) or {}
            if record.get("lvc"):
                status.hasLvc = True
                return

            cache = default_cache_record(bucket_name)
            logger.info(f"Creating last-value cache {cache.name} for bucket {bucket_name}")
            created = gateway.create_last_value_cache(
                bucket_name,
                cache.tableName,
                cache.keyColumns,
                cache.valueColumns,
                cache.count,
                cache.ttl,
                cache.name,
            )
            if not created.ok:
                logger.warning(
                    f"Last-value cache creation failed for {bucket_name}: {created.error.message}"
                )
                return

            self.store.merge_bucket(bucket_name, {"lvc": cache.model_dump()})
            status.hasLvc = True
            status.lvcCreated = True


def _is_positive(value: Optional[object]) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False
