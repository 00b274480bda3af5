"""
Config Routes — Read and Edit the Config Document

- GET    /api/config        — full document
- POST   /api/config        — shallow merge of the request body
- DELETE /api/config        — remove top-level keys
- GET    /api/debug/config  — document with the admin token masked
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status

from flightdeck.storage import (
    ConfigStore,
    ConfigStoreError,
    get_formatted_endpoint,
    has_valid_credentials,
    mask_token,
)

from .deps import get_store
from .schemas import ConfigDeleteRequest, ConfigResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Config"])


def _persist_failure(e: ConfigStoreError) -> HTTPException:
    logger.error(f"Config write failed: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to update configuration",
    )


@router.get("/config", response_model=ConfigResponse)
def read_config(store: ConfigStore = Depends(get_store)):
    return ConfigResponse(config=store.read())


@router.post("/config", response_model=ConfigResponse)
def update_config(
    payload: Dict[str, Any] = Body(...),
    store: ConfigStore = Depends(get_store),
):
    """Merge the given keys into the document; other keys are kept."""
    try:
        config = store.update(payload)
    except ConfigStoreError as e:
        raise _persist_failure(e)
    logger.info(f"Config updated: {sorted(payload)}")
    return ConfigResponse(config=config)


@router.delete("/config", response_model=ConfigResponse)
def delete_config_keys(
    request: ConfigDeleteRequest,
    store: ConfigStore = Depends(get_store),
):
    try:
        config = store.remove_keys(request.keys)
    except ConfigStoreError as e:
        raise _persist_failure(e)
    logger.info(f"Config keys removed: {request.keys}")
    return ConfigResponse(config=config)


@router.get("/debug/config")
def debug_config(store: ConfigStore = Depends(get_store)):
    """Config as the gateway sees it, safe to show in the browser."""
    config = store.read()
    masked = dict(config)
    if "adminToken" in masked:
        masked["adminToken"] = mask_token(masked["adminToken"])
    return {
        "success": True,
        "config": masked,
        "formattedEndpoint": get_formatted_endpoint(config),
        "hasValidCredentials": has_valid_credentials(config),
    }
