"""
API Services — Dashboard Query Logic

SQL behind the data, cockpit, session and inspection views. Routes stay
thin: they resolve a gateway and call into here.

Aggregate statistics are assembled from independent sub-queries; a failed
sub-query leaves its default in place instead of failing the response.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flightdeck.buckets.lifecycle import FLIGHT_TABLE, cache_name_for
from flightdeck.influx.client import InfluxGateway
from flightdeck.influx.points import DB_SIZE_FOLDER, DIRECTORY_MEASUREMENT, flight_session_line


logger = logging.getLogger(__name__)

RECORD_COUNT_SQL = (
    f"SELECT COUNT(*) AS count FROM {FLIGHT_TABLE} "
    "WHERE time >= now() - INTERVAL '1 minute'"
)
SAMPLE_RECORD_SQL = (
    f"SELECT * FROM {FLIGHT_TABLE} "
    "WHERE time >= now() - INTERVAL '1 minute' LIMIT 1"
)
DB_SIZE_SQL = (
    f"SELECT * FROM {DIRECTORY_MEASUREMENT} "
    "WHERE time >= now() - INTERVAL '1 hour'"
)
COMPACTION_EVENTS_SQL = f"""
    SELECT
        (prev_size - directory_size_bytes) AS saved_bytes,
        time,
        directory_size_bytes AS post_compaction_usage
    FROM (
        SELECT
            time,
            directory_size_bytes,
            LAG(directory_size_bytes) OVER (ORDER BY time) AS prev_size
        FROM {DIRECTORY_MEASUREMENT}
        WHERE folder = '{DB_SIZE_FOLDER}'
    )
    WHERE directory_size_bytes < prev_size
    ORDER BY time DESC
"""
FLYING_SQL = f"""
    SELECT
        MIN(flight_altitude) AS min_altitude, MAX(flight_altitude) AS max_altitude,
        MIN(flight_heading_true) AS min_heading, MAX(flight_heading_true) AS max_heading,
        MIN(speed_indicated_airspeed) AS min_airspeed, MAX(speed_indicated_airspeed) AS max_airspeed
    FROM {FLIGHT_TABLE} WHERE time >= now() - INTERVAL '2 seconds'
"""
SESSIONS_SQL = (
    "SELECT pilot_name, anonymous, flight_time, time "
    "FROM flight_session ORDER BY time DESC"
)

IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_\-.]+$")


class InvalidIdentifier(ValueError):
    """Table or bucket name that cannot be safely interpolated into SQL."""
    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _query_rows(gateway: InfluxGateway, db: str, sql: str, label: str) -> Optional[List[Dict[str, Any]]]:
    """Run one sub-query for an aggregate; None on failure (already logged)."""
    outcome = gateway.query_sql(db, sql)
    if not outcome.ok:
        logger.error(f"Error fetching {label} for {db}: {outcome.error.message}")
        return None
    return outcome.data


def _sort_key(timestamp: Any) -> datetime:
    """Parse InfluxDB's naive ISO timestamps (UTC) for ordering."""
    try:
        parsed = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


# ============================================================================
# Data view
# ============================================================================

def bucket_stats(gateway: InfluxGateway, bucket: str) -> Dict[str, Any]:
    """
    Statistics for the data view.

    - recordCount: flight_data rows in the last minute
    - measurementCountPerRecord: columns in one recent row
    - dbSizeData: directory size samples of the last hour, oldest first
    - compactionEvents / lastCompactionSaved / totalCompactionSavings:
      drops in directory size (size shrinks when InfluxDB compacts)
    """
    stats: Dict[str, Any] = {
        "recordCount": 0,
        "measurementCountPerRecord": 0,
        "dbSizeData": [],
        "compactedSizeData": [],
        "compactionEvents": 0,
        "lastCompactionSaved": None,
        "totalCompactionSavings": None,
        "lastUpdated": _now_iso(),
    }

    rows = _query_rows(gateway, bucket, RECORD_COUNT_SQL, "record count")
    if rows:
        stats["recordCount"] = rows[0].get("count", 0)

    rows = _query_rows(gateway, bucket, SAMPLE_RECORD_SQL, "measurement count")
    if rows:
        stats["measurementCountPerRecord"] = len(rows[0])

    rows = _query_rows(gateway, bucket, DB_SIZE_SQL, "db size data")
    if rows is not None:
        samples = [
            {"timestamp": row.get("time"), "value": row.get("directory_size_bytes")}
            for row in rows if row.get("folder") == DB_SIZE_FOLDER
        ]
        stats["dbSizeData"] = sorted(samples, key=lambda s: _sort_key(s["timestamp"]))

    events = _query_rows(gateway, bucket, COMPACTION_EVENTS_SQL, "compaction events")
    if events is not None:
        stats["compactionEvents"] = len(events)
        stats["lastCompactionSaved"] = events[0].get("saved_bytes") if events else None
        stats["totalCompactionSavings"] = sum(ev.get("saved_bytes") or 0 for ev in events)

    return stats


def recent_measurements(
    gateway: InfluxGateway,
    bucket: str,
    limit: int = 20,
    cached: bool = False,
) -> List[Dict[str, Any]]:
    """
    Latest flight_data rows; `cached` reads the bucket's last-value cache.

    A failed query yields [] so the live views simply show no data.

    Raises:
        InvalidIdentifier: If `cached` is set and the bucket name contains
            unsafe characters
    """
    if cached:
        if not IDENTIFIER_RE.match(bucket):
            raise InvalidIdentifier(f"Invalid bucket name: '{bucket}'")
        sql = f"SELECT * FROM last_cache('{FLIGHT_TABLE}', '{cache_name_for(bucket)}')"
    else:
        sql = (
            f"SELECT * FROM {FLIGHT_TABLE} WHERE time >= now() - INTERVAL '1 minute' "
            f"ORDER BY time DESC LIMIT {int(limit)}"
        )
    return _query_rows(gateway, bucket, sql, "flight data records") or []


# ============================================================================
# Cockpit / sessions
# ============================================================================

def is_flying(gateway: InfluxGateway, bucket: str) -> bool:
    """
    True when altitude, heading or airspeed changed in the last 2 seconds.

    Raises:
        GatewayError: If the query fails
    """
    rows = gateway.query_sql(bucket, FLYING_SQL).unwrap()
    if not rows:
        return False
    row = rows[0]
    return any(
        row.get(f"min_{metric}") != row.get(f"max_{metric}")
        for metric in ("altitude", "heading", "airspeed")
    )


def list_sessions(gateway: InfluxGateway, bucket: str) -> List[Dict[str, Any]]:
    """Flight sessions, newest first."""
    return gateway.query_sql(bucket, SESSIONS_SQL).unwrap()


def record_session(gateway: InfluxGateway, bucket: str, pilot_name: str) -> str:
    """Write a new flight_session point; returns the line written."""
    line = flight_session_line(pilot_name)
    logger.info(f"Recording flight session: {line}")
    gateway.write_line_protocol(bucket, line).unwrap()
    return line


# ============================================================================
# Inspection
# ============================================================================

def list_tables(gateway: InfluxGateway, db: str) -> List[str]:
    """Table names of a database (SHOW TABLES)."""
    rows = gateway.query_sql(db, "SHOW TABLES").unwrap()
    tables = []
    for row in rows:
        if row.get("name"):
            tables.append(row["name"])
        elif row.get("table_name"):
            tables.append(row["table_name"])
        else:
            first = next((v for v in row.values() if isinstance(v, str)), None)
            tables.append(first or "unknown")
    return tables


def table_rows(gateway: InfluxGateway, db: str, table: str, limit: int = 10) -> List[Dict[str, Any]]:
    """
    Most recent rows of a table.

    Raises:
        InvalidIdentifier: If the table name contains unsafe characters
        GatewayError: If the query fails
    """
    if not IDENTIFIER_RE.match(table):
        raise InvalidIdentifier(f"Invalid table name: '{table}'")
    sql = f'SELECT * FROM "{table}" ORDER BY time DESC LIMIT {int(limit)}'
    return gateway.query_sql(db, sql).unwrap()


__all__ = [
    "InvalidIdentifier",
    "bucket_stats",
    "recent_measurements",
    "is_flying",
    "list_sessions",
    "record_session",
    "list_tables",
    "table_rows",
]
