"""
Config Document Schemas — Bucket, Cache and Status Models

The config document itself stays a plain dict (unknown keys must survive
partial updates), but the nested records have a known shape. These models
validate what we write and describe what the API returns.

Key names are camelCase because they are persisted verbatim to config.json.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


INFINITE_RETENTION = "infinite"


class BucketState(str, Enum):
    """Liveness of a bucket as derived from data freshness."""
    ONLINE = "online"
    OFFLINE = "offline"


class CacheRecord(BaseModel):
    """Last-value-cache descriptor stored under a bucket's `lvc` key."""
    name: str
    tableName: str
    keyColumns: str = Field(..., description="Comma-joined key column list")
    valueColumns: str = Field(..., description="Comma-joined value column list")
    count: int = Field(..., ge=1)
    ttl: str = Field(..., description="Duration literal, e.g. '10s'")


class BucketRecord(BaseModel):
    """Per-bucket metadata kept in the config document."""
    model_config = ConfigDict(extra="allow")

    name: str
    retentionPeriod: Union[int, float, str] = INFINITE_RETENTION
    token: Optional[str] = None
    tokenId: Optional[str] = None
    lvc: Optional[CacheRecord] = None


class BucketStatus(BaseModel):
    """
    Derived bucket status. Recomputed on every poll, never persisted.

    lvcCreated is true only for the resolution pass that provisioned the cache.
    """
    status: BucketState = BucketState.OFFLINE
    hasTable: bool = False
    hasLvc: bool = False
    lvcCreated: bool = False

    @property
    def is_live(self) -> bool:
        """Online with a telemetry table: eligible to drive live views."""
        return self.status == BucketState.ONLINE and self.hasTable
