"""
Influx Module — InfluxDB 3 Gateway

Public API:
- InfluxGateway: REST + CLI façade returning Outcome objects
- Outcome / GatewayError and subclasses: failure taxonomy
- CliRunner: bounded subprocess execution
- parse_token: token extraction from CLI output
- directory_size_line / flight_session_line: line protocol builders
"""

from .cli import CliRunner, CommandResult
from .client import DatabaseCreation, InfluxGateway, token_name_for
from .errors import (
    CONFIG_INCOMPLETE_MESSAGE,
    ConfigIncomplete,
    EndpointUnreachable,
    GatewayError,
    InvalidDatabaseName,
    Outcome,
    ParseFailed,
    SubprocessFailed,
    Upstream4xx,
    Upstream5xx,
    UpstreamError,
)
from .points import directory_size_line, flight_session_line, now_ns
from .tokens import parse_token

__all__ = [
    "CONFIG_INCOMPLETE_MESSAGE",
    "CliRunner",
    "CommandResult",
    "DatabaseCreation",
    "InfluxGateway",
    "token_name_for",
    "ConfigIncomplete",
    "EndpointUnreachable",
    "GatewayError",
    "InvalidDatabaseName",
    "Outcome",
    "ParseFailed",
    "SubprocessFailed",
    "Upstream4xx",
    "Upstream5xx",
    "UpstreamError",
    "directory_size_line",
    "flight_session_line",
    "now_ns",
    "parse_token",
]
