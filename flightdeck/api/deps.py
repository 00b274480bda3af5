"""
API Dependencies — Per-App Components from app.state

create_app() puts the long-lived objects (store, gateway factory,
resolver, selector, watcher, monitor) on app.state; handlers reach them
through these Depends() providers so tests can build isolated apps.
"""

from typing import Callable, NoReturn

from fastapi import Depends, HTTPException, Request, status

from flightdeck.buckets import (
    ActiveBucketSelector,
    BucketLifecycleResolver,
    BucketService,
    BucketWatcher,
)
from flightdeck.config import Settings
from flightdeck.influx import CONFIG_INCOMPLETE_MESSAGE, GatewayError, InfluxGateway
from flightdeck.monitor import DirectorySizeMonitor
from flightdeck.storage import ConfigStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ConfigStore:
    return request.app.state.store


def get_gateway_factory(request: Request) -> Callable[[dict], InfluxGateway]:
    return request.app.state.gateway_factory


def get_resolver(request: Request) -> BucketLifecycleResolver:
    return request.app.state.resolver


def get_selector(request: Request) -> ActiveBucketSelector:
    return request.app.state.selector


def get_watcher(request: Request) -> BucketWatcher:
    return request.app.state.watcher


def get_monitor(request: Request) -> DirectorySizeMonitor:
    return request.app.state.monitor


def get_gateway(
    store: ConfigStore = Depends(get_store),
    factory: Callable[[dict], InfluxGateway] = Depends(get_gateway_factory),
) -> InfluxGateway:
    """
    Gateway for the current config document.

    Raises:
        HTTPException 400: If endpoint or admin token is missing
    """
    gateway = factory(store.read())
    if not gateway.configured:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=CONFIG_INCOMPLETE_MESSAGE,
        )
    return gateway


def get_bucket_service(
    store: ConfigStore = Depends(get_store),
    gateway: InfluxGateway = Depends(get_gateway),
) -> BucketService:
    return BucketService(store, gateway)


def get_active_bucket(store: ConfigStore = Depends(get_store)) -> str:
    """
    The bucket the cockpit views read from.

    Raises:
        HTTPException 400: If no bucket is active
    """
    bucket = store.read().get("activeBucket")
    if not bucket:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active bucket selected",
        )
    return bucket


def raise_http(error: GatewayError) -> NoReturn:
    """Translate a gateway error into the matching HTTP response."""
    raise HTTPException(status_code=error.status_code, detail=error.message)
