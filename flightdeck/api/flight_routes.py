"""
Flight Routes — Cockpit and Session Views (active bucket)

- GET  /api/influxdb/flightsession  — sessions, newest first
- POST /api/influxdb/flightsession  — start a session for a pilot
- GET  /api/influxdb/flying         — is the aircraft moving right now
"""

import logging

from fastapi import APIRouter, Depends, status

from flightdeck.influx import GatewayError, InfluxGateway

from . import services
from .deps import get_active_bucket, get_gateway, raise_http
from .schemas import FlightSessionRequest, FlyingResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/influxdb", tags=["Flight"])


@router.get("/flightsession")
def get_flight_sessions(
    gateway: InfluxGateway = Depends(get_gateway),
    bucket: str = Depends(get_active_bucket),
):
    try:
        sessions = services.list_sessions(gateway, bucket)
    except GatewayError as e:
        raise_http(e)
    return {"success": True, "sessions": sessions}


@router.post("/flightsession", status_code=status.HTTP_201_CREATED)
def create_flight_session(
    request: FlightSessionRequest,
    gateway: InfluxGateway = Depends(get_gateway),
    bucket: str = Depends(get_active_bucket),
):
    try:
        line = services.record_session(gateway, bucket, request.pilotName)
    except GatewayError as e:
        raise_http(e)
    return {"success": True, "bucket": bucket, "line": line}


@router.get("/flying", response_model=FlyingResponse)
def get_flying(
    gateway: InfluxGateway = Depends(get_gateway),
    bucket: str = Depends(get_active_bucket),
):
    try:
        return FlyingResponse(flying=services.is_flying(gateway, bucket))
    except GatewayError as e:
        raise_http(e)
