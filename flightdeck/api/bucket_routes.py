"""
Bucket Routes — Database Provisioning, Status and Data View

- POST   /api/influxdb/health-check
- GET    /api/influxdb/bucket                    — database names
- POST   /api/influxdb/bucket                    — 201 created, 200 existed
- DELETE /api/influxdb/bucket?name=
- GET    /api/influxdb/bucket/{name}             — online/offline + cache state
- GET    /api/influxdb/bucket/{name}/stats
- GET    /api/influxdb/bucket/{name}/measurements
- GET    /api/influxdb/buckets/status            — resolve all + reconcile
- POST   /api/influxdb/active-bucket             — manual pin
"""

import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from flightdeck.buckets import (
    ActiveBucketSelector,
    BucketLifecycleResolver,
    BucketService,
    BucketWatcher,
)
from flightdeck.influx import DatabaseCreation, GatewayError, InfluxGateway
from flightdeck.storage import BucketStatus

from . import services
from .deps import (
    get_bucket_service,
    get_gateway,
    get_gateway_factory,
    get_resolver,
    get_selector,
    get_watcher,
    raise_http,
)
from .schemas import (
    ActiveBucketRequest,
    BucketListResponse,
    BucketsStatusResponse,
    CreateBucketRequest,
    HealthCheckRequest,
    MessageResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/influxdb", tags=["Buckets"])


@router.post("/health-check", response_model=MessageResponse)
def health_check(
    request: HealthCheckRequest,
    factory: Callable[[dict], InfluxGateway] = Depends(get_gateway_factory),
):
    """Test credentials before they are saved."""
    gateway = factory({
        "influxEndpoint": request.influxEndpoint,
        "adminToken": request.adminToken,
    })
    outcome = gateway.health_check()
    if not outcome.ok:
        raise_http(outcome.error)
    return MessageResponse(message="Successfully connected to InfluxDB")


# ============================================================================
# Bucket CRUD
# ============================================================================

@router.get("/bucket", response_model=BucketListResponse)
def list_buckets(service: BucketService = Depends(get_bucket_service)):
    try:
        return BucketListResponse(buckets=service.list_buckets())
    except GatewayError as e:
        raise_http(e)


@router.post("/bucket", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def create_bucket(
    request: CreateBucketRequest,
    response: Response,
    service: BucketService = Depends(get_bucket_service),
):
    try:
        created = service.create_bucket(request.bucketName, request.retentionPeriod)
    except GatewayError as e:
        raise_http(e)

    if created is DatabaseCreation.ALREADY_EXISTS:
        response.status_code = status.HTTP_200_OK
        return MessageResponse(message=f"Bucket {request.bucketName} already exists")
    return MessageResponse(message=f"Bucket {request.bucketName} created successfully")


@router.delete("/bucket", response_model=MessageResponse)
def delete_bucket(
    name: str = Query(..., min_length=1, description="Bucket to delete"),
    service: BucketService = Depends(get_bucket_service),
):
    try:
        service.delete_bucket(name)
    except GatewayError as e:
        raise_http(e)
    return MessageResponse(message=f"Bucket {name} deleted successfully")


# ============================================================================
# Status
# ============================================================================

@router.get("/bucket/{name}", response_model=BucketStatus)
def bucket_status(
    name: str,
    resolver: BucketLifecycleResolver = Depends(get_resolver),
):
    """Liveness of one bucket; provisions its last-value cache when online."""
    return resolver.resolve(name)


@router.get(
    "/buckets/status",
    response_model=BucketsStatusResponse,
    dependencies=[Depends(get_gateway)],
)
def buckets_status(
    watcher: BucketWatcher = Depends(get_watcher),
):
    statuses, selection = watcher.run_once()
    return BucketsStatusResponse(statuses=statuses, activeBucket=selection.active)


@router.post("/active-bucket")
def set_active_bucket(
    request: ActiveBucketRequest,
    selector: ActiveBucketSelector = Depends(get_selector),
):
    selection = selector.pin(request.bucketName)
    logger.info(f"Active bucket pinned: {selection.previous} -> {selection.active}")
    return {"success": True, "activeBucket": selection.active}


# ============================================================================
# Data view
# ============================================================================

@router.get("/bucket/{name}/stats")
def bucket_stats(name: str, gateway: InfluxGateway = Depends(get_gateway)):
    return {"success": True, "stats": services.bucket_stats(gateway, name)}


@router.get("/bucket/{name}/measurements")
def bucket_measurements(
    name: str,
    limit: int = Query(default=20, ge=1, le=1000),
    cached: bool = Query(default=False, description="Read the last-value cache"),
    gateway: InfluxGateway = Depends(get_gateway),
):
    try:
        records = services.recent_measurements(gateway, name, limit=limit, cached=cached)
    except services.InvalidIdentifier as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "records": records}
