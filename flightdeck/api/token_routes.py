"""
Token Routes — Per-Bucket Read/Write Tokens

- POST   /api/influxdb/token                 — create via CLI, store on record
- GET    /api/influxdb/token?bucketName=     — tokens of one bucket
- GET    /api/influxdb/token                 — all non-admin tokens
- DELETE /api/influxdb/token?tokenName=&bucketName=
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from flightdeck.buckets import BucketService
from flightdeck.influx import GatewayError, token_name_for

from .deps import get_bucket_service, raise_http
from .schemas import CreateTokenRequest, MessageResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/influxdb", tags=["Tokens"])


@router.post("/token", status_code=status.HTTP_201_CREATED)
def create_token(
    request: CreateTokenRequest,
    service: BucketService = Depends(get_bucket_service),
):
    token_name = request.tokenName or token_name_for(request.bucketName)
    try:
        token = service.create_token(request.bucketName, token_name, request.description)
    except GatewayError as e:
        raise_http(e)
    logger.info(f"Token created for bucket {request.bucketName}")
    return {"success": True, "token": token}


@router.get("/token")
def get_tokens(
    bucketName: Optional[str] = Query(default=None, description="Limit to one bucket"),
    service: BucketService = Depends(get_bucket_service),
):
    try:
        if bucketName:
            return {"success": True, **service.get_bucket_tokens(bucketName)}
        return {"success": True, "tokens": service.list_tokens()}
    except GatewayError as e:
        raise_http(e)


@router.delete("/token", response_model=MessageResponse)
def delete_token(
    tokenName: str = Query(..., min_length=1),
    bucketName: Optional[str] = Query(default=None),
    service: BucketService = Depends(get_bucket_service),
):
    try:
        service.delete_token(tokenName, bucketName)
    except GatewayError as e:
        raise_http(e)
    return MessageResponse(message=f"Token {tokenName} deleted successfully")
