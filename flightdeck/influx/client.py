"""
InfluxDB Gateway — InfluxDB 3 REST + CLI Façade

Translates dashboard intents into InfluxDB 3 REST calls (httpx) or
`influxdb3` CLI invocations, and normalizes the heterogeneous responses
into Outcome objects. The gateway is stateless apart from the endpoint
and credential it was built with.

REST surface (all with `Authorization: Bearer <token>`):
    GET    {endpoint}health
    GET    {endpoint}api/v3/configure/database?format=json
    POST   {endpoint}api/v3/configure/database           {"db": name}
    DELETE {endpoint}api/v3/configure/database?db=name
    POST   {endpoint}api/v3/query_sql                    {"db": db, "q": sql}
    POST   {endpoint}api/v3/write_lp?db=db&precision=nanosecond
    GET    {endpoint}api/v3/configure/enterprise/token
"""

import functools
import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import httpx

from .cli import DELETE_CONFIRM_PROMPT, CliRunner, CommandResult
from .errors import (
    ConfigIncomplete,
    EndpointUnreachable,
    GatewayError,
    InvalidDatabaseName,
    Outcome,
    ParseFailed,
    SubprocessFailed,
    upstream_error,
)
from .tokens import parse_token
from flightdeck.storage.store import format_endpoint_url


logger = logging.getLogger(__name__)

HEALTH_FAILURE_MESSAGE = "Unable to connect to InfluxDB. Check your endpoint URL and admin token."
DATABASE_NAME_FIELD = "iox::database"
TOKEN_EXPIRY = "7y"


class DatabaseCreation(str, Enum):
    """Successful outcomes of create_database."""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


def _reported(fn: Callable[..., Any]) -> Callable[..., Outcome]:
    """Run a raising implementation and report its result as an Outcome."""

    @functools.wraps(fn)
    def wrapper(self: "InfluxGateway", *args, **kwargs) -> Outcome:
        try:
            return Outcome.success(fn(self, *args, **kwargs))
        except GatewayError as e:
            logger.debug(f"{fn.__name__} failed: {e.message}")
            return Outcome.failure(e)

    return wrapper


def token_name_for(bucket_name: str) -> str:
    """Name given to the read/write token of a bucket."""
    return f"Token for {bucket_name}"


class InfluxGateway:
    """
    InfluxDB 3 façade.

    Args:
        endpoint: Base URL of the InfluxDB server (trailing slash optional)
        token: Admin bearer token
        cli_path: Path to the influxdb3 binary
        http_timeout: Per-request timeout in seconds
        cli_timeout: Per-command timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
        cli_runner: Optional runner replacing CliRunner(cli_path)
    """

    def __init__(
        self,
        endpoint: Optional[str],
        token: Optional[str],
        cli_path: str = "influxdb3",
        http_timeout: float = 10.0,
        cli_timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        cli_runner: Optional[CliRunner] = None,
    ):
        self.endpoint = format_endpoint_url(endpoint) or None
        self.token = token or None
        self.http_timeout = http_timeout
        self.cli_timeout = cli_timeout
        self._transport = transport
        self._cli = cli_runner or CliRunner(cli_path, timeout=cli_timeout)

    @classmethod
    def from_config(cls, config: Dict[str, Any], **kwargs) -> "InfluxGateway":
        """Build a gateway from the config document's endpoint/admin token."""
        return cls(config.get("influxEndpoint"), config.get("adminToken"), **kwargs)

    @property
    def configured(self) -> bool:
        return bool(self.endpoint and self.token)

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigIncomplete()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Send one authenticated request.

        Raises:
            ConfigIncomplete: If endpoint/token are missing
            EndpointUnreachable: On transport-level failures or a malformed endpoint URL
        """
        self._ensure_configured()
        headers = {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}))
        try:
            with httpx.Client(timeout=self.http_timeout, transport=self._transport) as client:
                return client.request(method, f"{self.endpoint}{path}", headers=headers, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise EndpointUnreachable(f"Could not reach InfluxDB at {self.endpoint}: {e}") from e

    def _run_cli(self, args: List[str], **kwargs) -> CommandResult:
        result = self._cli.run(args, **kwargs)
        if not result.ok:
            raise SubprocessFailed(
                f"CLI process exited with code {result.returncode}: {result.stderr.strip()}",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
        return result

    # ------------------------------------------------------------------
    # REST operations
    # ------------------------------------------------------------------

    @_reported
    def health_check(self) -> None:
        """Liveness check; any non-2xx is reported with a generic message."""
        response = self._request("GET", "health")
        if not response.is_success:
            raise upstream_error(response.status_code, HEALTH_FAILURE_MESSAGE)

    @_reported
    def list_databases(self) -> List[str]:
        """Names of all databases on the server."""
        response = self._request("GET", "api/v3/configure/database", params={"format": "json"})
        if not response.is_success:
            raise upstream_error(
                response.status_code, f"Failed to list buckets: {response.reason_phrase}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise ParseFailed(f"Database list is not valid JSON: {e}") from e
        if not isinstance(payload, list):
            raise ParseFailed("Database list is not a JSON array")
        return [
            row[DATABASE_NAME_FIELD] for row in payload
            if isinstance(row, dict) and isinstance(row.get(DATABASE_NAME_FIELD), str)
            and row[DATABASE_NAME_FIELD]
        ]

    @_reported
    def create_database(self, name: str) -> DatabaseCreation:
        """
        Create a database.

        409 means the database already exists and counts as success so that
        provisioning stays idempotent.
        """
        response = self._request("POST", "api/v3/configure/database", json={"db": name})
        if response.status_code == 409:
            return DatabaseCreation.ALREADY_EXISTS
        if response.status_code == 422:
            raise InvalidDatabaseName(name)
        if not response.is_success:
            raise upstream_error(
                response.status_code, f"Failed to create bucket: {response.reason_phrase}"
            )
        return DatabaseCreation.CREATED

    @_reported
    def delete_database(self, name: str) -> None:
        response = self._request("DELETE", "api/v3/configure/database", params={"db": name})
        if response.is_success:
            return None

        message = f"Failed to delete bucket: {response.reason_phrase}"
        body = response.text
        if body:
            try:
                parsed = json.loads(body)
                if isinstance(parsed, dict) and parsed.get("error"):
                    message = str(parsed["error"])
            except ValueError:
                # Only use raw text when it is reasonably short
                if len(body) < 100:
                    message = body
        raise upstream_error(response.status_code, message)

    @_reported
    def query_sql(self, db: str, sql: str) -> List[Dict[str, Any]]:
        """
        Run a SQL query.

        Non-2xx surfaces the raw body as the error; a 2xx body that is not
        a JSON array of rows decodes to [] rather than failing.
        """
        response = self._request("POST", "api/v3/query_sql", json={"db": db, "q": sql})
        if not response.is_success:
            raise upstream_error(response.status_code, response.text or response.reason_phrase)
        try:
            rows = response.json()
        except ValueError:
            logger.warning(f"Undecodable query_sql response for db={db}; treating as no rows")
            return []
        if not isinstance(rows, list):
            return []
        return [row for row in rows if isinstance(row, dict)]

    @_reported
    def write_line_protocol(self, db: str, lines: Union[str, Iterable[str]]) -> None:
        """Write line-protocol points (nanosecond precision) into a database."""
        body = lines if isinstance(lines, str) else "\n".join(lines)
        response = self._request(
            "POST",
            "api/v3/write_lp",
            params={"db": db, "precision": "nanosecond"},
            content=body.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )
        if not response.is_success:
            raise upstream_error(
                response.status_code, f"HTTP error {response.status_code}: {response.text}"
            )

    @_reported
    def list_tokens(self) -> List[Dict[str, Any]]:
        """All tokens known to the enterprise token endpoint."""
        response = self._request("GET", "api/v3/configure/enterprise/token")
        if not response.is_success:
            raise upstream_error(
                response.status_code, f"Failed to list tokens: {response.reason_phrase}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise ParseFailed(f"Token list is not valid JSON: {e}") from e
        tokens = payload.get("tokens") if isinstance(payload, dict) else None
        return [t for t in (tokens or []) if isinstance(t, dict)]

    # ------------------------------------------------------------------
    # CLI operations
    # ------------------------------------------------------------------

    @_reported
    def create_last_value_cache(
        self,
        db: str,
        table: str,
        key_columns: str,
        value_columns: str,
        count: int,
        ttl: str,
        name: str,
    ) -> str:
        """Create a last-value cache; success is exit code 0, output is ignored."""
        self._ensure_configured()
        self._run_cli([
            "create", "last_cache",
            "--database", db,
            "--token", self.token,
            "--table", table,
            "--key-columns", key_columns,
            "--value-columns", value_columns,
            "--count", str(count),
            "--ttl", ttl,
            name,
        ])
        return name

    @_reported
    def create_token(self, bucket_name: str) -> str:
        """Create a read/write token scoped to one bucket and return it."""
        self._ensure_configured()
        result = self._run_cli([
            "create", "token",
            "--permission", f"db:{bucket_name}:read,write",
            "--name", token_name_for(bucket_name),
            "--token", self.token,
            "--expiry", TOKEN_EXPIRY,
        ])
        return parse_token(result.stdout)

    @_reported
    def delete_token(self, token_name: str) -> None:
        """Delete a token by name, answering the CLI's confirmation prompt."""
        self._ensure_configured()
        self._run_cli(
            ["delete", "token", "--token-name", token_name, "--token", self.token],
            confirm_prompt=DELETE_CONFIRM_PROMPT,
        )
