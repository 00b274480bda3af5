"""
Bucket Service — Bucket and Token Provisioning

Combines gateway calls with config-document bookkeeping. Every method
raises a GatewayError subclass on failure; routes turn those into HTTP
responses.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from flightdeck.influx.client import DatabaseCreation, InfluxGateway, token_name_for
from flightdeck.storage.schemas import INFINITE_RETENTION, BucketRecord
from flightdeck.storage.store import ConfigStore


logger = logging.getLogger(__name__)

TOKENS_DB = "_internal"
TOKENS_SQL = "SELECT * FROM system.tokens WHERE permissions NOT LIKE '*%'"
DEFAULT_TOKEN_LIFETIME = timedelta(days=7)


def _default_expiry() -> str:
    return (datetime.now(timezone.utc) + DEFAULT_TOKEN_LIFETIME).isoformat()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_token(raw: Dict[str, Any], default_name: str = "Unnamed Token") -> Dict[str, Any]:
    """Normalize a token row into the shape the dashboard displays."""
    return {
        "id": raw.get("id") or "",
        "name": raw.get("name") or default_name,
        "description": raw.get("description") or "",
        "created_at": raw.get("created_at") or _now_iso(),
        "expiry": raw.get("expiry") or _default_expiry(),
    }


class BucketService:
    """Bucket and token operations for one config store."""

    def __init__(self, store: ConfigStore, gateway: InfluxGateway):
        self.store = store
        self.gateway = gateway

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    def list_buckets(self) -> List[str]:
        return self.gateway.list_databases().unwrap()

    def create_bucket(
        self,
        name: str,
        retention_period: Optional[Union[int, float, str]] = None,
    ) -> DatabaseCreation:
        """
        Create a bucket and record it in the config.

        Idempotent: an existing database is reported as ALREADY_EXISTS and
        recorded the same way. Token and cache fields of an existing record
        are kept.

        Raises:
            ValidationError: If the record would not match BucketRecord;
                nothing is sent to the server
            GatewayError: If the server rejects the database
        """
        record = BucketRecord(name=name, retentionPeriod=retention_period or INFINITE_RETENTION)
        created = self.gateway.create_database(name).unwrap()
        self.store.merge_bucket(name, record.model_dump(include={"name", "retentionPeriod"}))
        logger.info(f"Bucket {name} {created.value}")
        return created

    def delete_bucket(self, name: str) -> None:
        """
        Delete a bucket.

        The config record goes first so that a failed remote delete never
        leaves a phantom entry behind; the remote failure is still raised.
        """
        if self.store.remove_bucket(name):
            logger.info(f"Removed bucket {name} from config")

        outcome = self.gateway.delete_database(name)
        if not outcome.ok:
            logger.warning(
                f"Remote delete of bucket {name} failed after local removal: {outcome.error.message}"
            )
        outcome.unwrap()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def create_token(
        self,
        bucket_name: str,
        token_name: str,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a read/write token for a bucket and store it on the record."""
        token = self.gateway.create_token(bucket_name).unwrap()
        token_id = f"cli-{int(time.time() * 1000)}"
        record = BucketRecord(name=bucket_name, token=token, tokenId=token_id)

        self.store.merge_bucket(
            bucket_name,
            record.model_dump(include={"token", "tokenId"}),
            defaults={"retentionPeriod": record.retentionPeriod},
        )
        return {
            "id": token_id,
            "token": token,
            "name": token_name,
            "description": description or f"Token for {bucket_name} bucket",
        }

    def get_bucket_tokens(self, bucket_name: str) -> Dict[str, Any]:
        """
        Tokens of one bucket: from the config record when present, else
        from the server's system.tokens table.
        """
        record = self.store.get_bucket(bucket_name) or {}
        if record.get("token"):
            return {
                "token": record["token"],
                "tokens": [format_token({
                    "id": record.get("tokenId") or "",
                    "name": token_name_for(bucket_name),
                    "description": f"Token for {bucket_name} bucket",
                })],
            }

        rows = self.gateway.query_sql(TOKENS_DB, TOKENS_SQL).unwrap()
        wanted = token_name_for(bucket_name)
        tokens = [
            format_token(row, default_name=wanted)
            for row in rows if row.get("name") == wanted
        ]
        return {"token": None, "tokens": tokens}

    def list_tokens(self) -> List[Dict[str, Any]]:
        return [format_token(row) for row in self.gateway.list_tokens().unwrap()]

    def delete_token(self, token_name: str, bucket_name: Optional[str] = None) -> None:
        """Delete a token via the CLI and forget it in the config."""
        self.gateway.delete_token(token_name).unwrap()

        if not bucket_name:
            return
        self.store.drop_bucket_fields(bucket_name, ["token", "tokenId"])

        def _drop_legacy(config: Dict[str, Any]) -> None:
            legacy = config.get("tokens")
            if isinstance(legacy, dict):
                legacy.pop(bucket_name, None)

        if isinstance(self.store.read().get("tokens"), dict):
            self.store.mutate(_drop_legacy)
