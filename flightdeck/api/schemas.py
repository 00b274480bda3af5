"""
Pydantic Schemas — API Request/Response Models

Field names are camelCase to match the JSON the dashboard already sends
and the keys stored in the config document.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from flightdeck.storage.schemas import BucketStatus


# ============================================================================
# Config
# ============================================================================

class ConfigDeleteRequest(BaseModel):
    """Keys to remove from the config document."""
    keys: List[str] = Field(..., min_length=1)


class ConfigResponse(BaseModel):
    success: bool = True
    config: Dict[str, Any]


# ============================================================================
# Buckets
# ============================================================================

class HealthCheckRequest(BaseModel):
    """Credentials to test without saving them."""
    influxEndpoint: str = Field(..., min_length=1)
    adminToken: str = Field(..., min_length=1)


class CreateBucketRequest(BaseModel):
    bucketName: str = Field(..., min_length=1, description="Database name")
    retentionPeriod: Optional[Union[int, float, str]] = Field(
        default=None, description="Stored as 'infinite' when omitted"
    )

    @field_validator("bucketName")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Bucket name is required")
        return v


class ActiveBucketRequest(BaseModel):
    """Bucket to pin as active; null clears the selection."""
    bucketName: Optional[str] = None


class BucketListResponse(BaseModel):
    success: bool = True
    buckets: List[str]


class BucketsStatusResponse(BaseModel):
    success: bool = True
    statuses: Dict[str, BucketStatus]
    activeBucket: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ============================================================================
# Tokens
# ============================================================================

class CreateTokenRequest(BaseModel):
    bucketName: str = Field(..., min_length=1)
    tokenName: Optional[str] = None
    description: Optional[str] = None


# ============================================================================
# Flight sessions
# ============================================================================

class FlightSessionRequest(BaseModel):
    pilotName: str = Field(..., min_length=1, description="Tag value; escaped on write")


class FlyingResponse(BaseModel):
    success: bool = True
    flying: bool


# ============================================================================
# Monitor
# ============================================================================

class MonitorAction(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    COLLECT = "collect"


class MonitorRequest(BaseModel):
    action: str = Field(..., description="start, stop, restart or collect")
    intervalSeconds: Optional[float] = Field(default=None, gt=0)


class MonitorResponse(BaseModel):
    success: bool = True
    monitoring: bool
    instanceId: str
    startTime: str
    intervalSeconds: float
    message: Optional[str] = None
