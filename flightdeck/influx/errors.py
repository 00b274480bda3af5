"""
Gateway Errors — Failure Taxonomy and Uniform Outcome

Every InfluxGateway operation returns an Outcome instead of raising, so
callers (routes, pollers) decide themselves whether a failure matters.

Taxonomy:
- ConfigIncomplete:    endpoint or admin token missing (400)
- EndpointUnreachable: network-level failure talking to InfluxDB (502)
- Upstream4xx/5xx:     InfluxDB answered with a non-2xx status
- SubprocessFailed:    CLI exited non-zero, failed to spawn, or timed out
- ParseFailed:         expected structure missing from a CLI/HTTP response
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar


T = TypeVar("T")

CONFIG_INCOMPLETE_MESSAGE = (
    "InfluxDB configuration is incomplete. "
    "Please configure the endpoint and admin token first."
)


class GatewayError(Exception):
    """Base class for InfluxDB gateway failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigIncomplete(GatewayError):
    """Endpoint or admin token is not configured."""

    status_code = 400

    def __init__(self, message: str = CONFIG_INCOMPLETE_MESSAGE):
        super().__init__(message)


class EndpointUnreachable(GatewayError):
    """Network-level failure (DNS, refused connection, timeout)."""

    status_code = 502


class UpstreamError(GatewayError):
    """InfluxDB returned a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return self.status


class Upstream4xx(UpstreamError):
    """InfluxDB rejected the request."""
    pass


class Upstream5xx(UpstreamError):
    """InfluxDB failed to serve the request."""
    pass


class InvalidDatabaseName(Upstream4xx):
    """InfluxDB refused the database name (HTTP 422)."""

    def __init__(self, name: str):
        super().__init__(422, f"Invalid database name: '{name}'")
        self.name = name


class SubprocessFailed(GatewayError):
    """The influxdb3 CLI did not complete successfully."""

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class ParseFailed(GatewayError):
    """A response did not contain the expected structure."""
    pass


def upstream_error(status: int, message: str) -> UpstreamError:
    """Build the 4xx or 5xx error matching an HTTP status."""
    if status >= 500:
        return Upstream5xx(status, message)
    return Upstream4xx(status, message)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Uniform result of a gateway operation: {ok, data | error}.
    """
    ok: bool
    data: Optional[T] = None
    error: Optional[GatewayError] = None

    @classmethod
    def success(cls, data: Any = None) -> "Outcome":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: GatewayError) -> "Outcome":
        return cls(ok=False, error=error)

    def unwrap(self) -> T:
        """Return data, or raise the carried error."""
        if not self.ok:
            raise self.error
        return self.data
