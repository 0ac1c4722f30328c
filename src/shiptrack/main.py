"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Mapping

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import drivers, health, public, realtime, shipments
from .config import DEFAULT_JWT_SECRET, settings
from .models.domain import Channel
from .persistence.shipments import ShipmentRepository, get_shipment_repository
from .services.lookup import ShipmentLookup
from .services.notifications import (
    NotificationChannel,
    NotificationOrchestrator,
    close_notification_channels,
    get_notification_channels,
)
from .services.realtime.hub import BroadcastHub
from .services.tracking import TrackingService

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    *,
    repository: ShipmentRepository | None = None,
    channels: Mapping[Channel, NotificationChannel] | None = None,
) -> FastAPI:
    _configure_logging()
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning(
            "SHIPTRACK_JWT_SECRET is not set; bearer tokens are verified with the "
            "built-in development secret"
        )
    owns_channels = channels is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.tracking.drain()
        if owns_channels:
            await close_notification_channels()

    app = FastAPI(title=settings.app_name, root_path="", lifespan=lifespan)
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Shared for the whole process; built here rather than on first use
    app.state.repository = repository if repository is not None else get_shipment_repository()
    app.state.hub = BroadcastHub()
    app.state.tracking = TrackingService(
        hub=app.state.hub,
        lookup=ShipmentLookup(app.state.repository),
        orchestrator=NotificationOrchestrator(channels if channels is not None else get_notification_channels()),
        max_concurrent_notifications=settings.max_concurrent_notifications,
    )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "realtime": "/ws",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(public.router, prefix=settings.api_prefix)
    app.include_router(shipments.router, prefix=settings.api_prefix)
    app.include_router(drivers.router, prefix=settings.api_prefix)
    app.include_router(realtime.router)
    logger.info(f"{settings.app_name} configured with {type(app.state.repository).__name__}")
    return app


app = create_app()
