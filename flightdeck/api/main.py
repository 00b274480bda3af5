"""
FastAPI Application — Flight Telemetry Dashboard Backend

Configures an InfluxDB 3 server for flight-simulator telemetry and serves
the dashboard's data, cockpit and inspection views.

Background pollers (owned by the app, stopped on shutdown):
- DirectorySizeMonitor: started when MONITOR_AUTOSTART is set
- BucketWatcher: started when BUCKET_WATCH_ENABLED is set

CORS: Configured via environment variables.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flightdeck.buckets import ActiveBucketSelector, BucketLifecycleResolver, BucketWatcher
from flightdeck.config import Settings, settings as default_settings
from flightdeck.influx import InfluxGateway
from flightdeck.monitor import DirectorySizeMonitor
from flightdeck.storage import ConfigStore

from .bucket_routes import router as bucket_router
from .config_routes import router as config_router
from .flight_routes import router as flight_router
from .inspect_routes import router as inspect_router
from .monitor_routes import router as monitor_router
from .token_routes import router as token_router


logging.basicConfig(level=default_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def default_gateway_factory(settings: Settings) -> Callable[[dict], InfluxGateway]:
    """Gateway builder bound to the process-level timeouts and CLI path."""

    def factory(config: dict) -> InfluxGateway:
        return InfluxGateway.from_config(
            config,
            cli_path=settings.INFLUX_CLI_PATH,
            http_timeout=settings.HTTP_TIMEOUT_SECONDS,
            cli_timeout=settings.CLI_TIMEOUT_SECONDS,
        )

    return factory


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings: Settings = app.state.settings
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME}")
    logger.info(f"📍 Running in {settings.ENVIRONMENT} mode")
    logger.info(f"🗂️ Config document: {settings.CONFIG_FILE_PATH}")

    if settings.MONITOR_AUTOSTART:
        app.state.monitor.start()
    if settings.BUCKET_WATCH_ENABLED:
        app.state.watcher.start(settings.BUCKET_POLL_SECONDS)
        logger.info(f"🛰️ Bucket watcher polling every {settings.BUCKET_POLL_SECONDS}s")
    yield
    # Shutdown
    app.state.watcher.cancel()
    app.state.monitor.stop()
    logger.info(f"👋 Shutting down {settings.PROJECT_NAME}")


def create_app(
    settings: Optional[Settings] = None,
    gateway_factory: Optional[Callable[[dict], InfluxGateway]] = None,
) -> FastAPI:
    """
    Build the application and its long-lived components.

    Args:
        settings: Process settings (defaults to the environment)
        gateway_factory: Override for building gateways (tests inject fakes)
    """
    settings = settings or default_settings
    gateway_factory = gateway_factory or default_gateway_factory(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="InfluxDB 3 configuration and flight telemetry API",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    store = ConfigStore(settings.CONFIG_FILE_PATH)
    resolver = BucketLifecycleResolver(store, gateway_factory)
    selector = ActiveBucketSelector(store, reserved_bucket=settings.RESERVED_BUCKET)

    app.state.settings = settings
    app.state.store = store
    app.state.gateway_factory = gateway_factory
    app.state.resolver = resolver
    app.state.selector = selector
    app.state.watcher = BucketWatcher(store, gateway_factory, resolver, selector)
    app.state.monitor = DirectorySizeMonitor(
        store,
        gateway_factory,
        interval_seconds=settings.MONITOR_INTERVAL_SECONDS,
        default_data_path=settings.INFLUX_DATA_PATH,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(config_router)
    app.include_router(bucket_router)
    app.include_router(token_router)
    app.include_router(flight_router)
    app.include_router(inspect_router)
    app.include_router(monitor_router)

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint — points to docs."""
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "docs": "/docs",
            "ping": "/ping",
        }

    @app.get("/ping", tags=["Health"])
    async def ping():
        """Lightweight heartbeat — no InfluxDB round trip."""
        return {"status": "ok"}

    return app


app = create_app()
