"""
Line Protocol Points — Measurements Written by the Dashboard

Points are built with influxdb_client.Point and serialized to line
protocol for InfluxDB 3's write_lp endpoint. Timestamps are integer
nanoseconds since the epoch.

Measurements:
- directory_stats  tag folder=db_size, field directory_size_bytes (float)
- flight_session   tag pilot_name, fields anonymous (bool), flight_time (int)
"""

import time
from typing import Optional

from influxdb_client import Point, WritePrecision


DIRECTORY_MEASUREMENT = "directory_stats"
DB_SIZE_FOLDER = "db_size"
SESSION_MEASUREMENT = "flight_session"


def now_ns() -> int:
    """Current time in nanoseconds since the epoch."""
    return time.time_ns()


def directory_size_line(size_bytes: int, timestamp_ns: Optional[int] = None) -> str:
    """
    Line for one directory-size sample.

    Example:
        directory_stats,folder=db_size directory_size_bytes=161574683 1746597790474000000
    """
    point = (
        Point(DIRECTORY_MEASUREMENT)
        .tag("folder", DB_SIZE_FOLDER)
        # Float field: whole numbers serialize without a trailing ".0" or "i"
        .field("directory_size_bytes", float(size_bytes))
        .time(timestamp_ns if timestamp_ns is not None else now_ns(), WritePrecision.NS)
    )
    return point.to_line_protocol()


def flight_session_line(pilot_name: str, timestamp_ns: Optional[int] = None) -> str:
    """
    Line opening a new flight session for a pilot.

    Tag escaping (spaces, commas, equals signs) is handled by Point.
    """
    point = (
        Point(SESSION_MEASUREMENT)
        .tag("pilot_name", pilot_name)
        .field("anonymous", False)
        .field("flight_time", 0)
        .time(timestamp_ns if timestamp_ns is not None else now_ns(), WritePrecision.NS)
    )
    return point.to_line_protocol()
