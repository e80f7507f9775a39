"""ASGI app receiving WooCommerce order webhooks and pushing orders to KeyCRM.

This module is a thin orchestrator that:
1. Manages FastAPI app lifecycle (logging, settings check, service wiring)
2. Includes routers for all endpoints
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.conf.config import get_settings, validate_required_settings
from src.core.logging import setup_logging
from src.server.dependencies import build_sync_service
from src.server.routers import health_router, woocommerce_router
from src.services.sync.orchestrator import OrderSyncService


logger = logging.getLogger(__name__)


def create_app(sync_service: OrderSyncService | None = None) -> FastAPI:
    """Build the application.

    Args:
        sync_service: Pre-built service; when omitted one is wired from settings
            at startup and its HTTP clients are closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        setup_logging(
            level=settings.LOG_LEVEL,
            json_format=settings.LOG_JSON,
            service_name="keycrm-sync",
        )
        validate_required_settings(settings)

        owned = sync_service is None
        app.state.sync_service = sync_service or build_sync_service(settings)
        logger.info("Starting KeyCRM sync server")

        yield

        if owned:
            app.state.sync_service.crm_client.close()
            app.state.sync_service.repository.close()
        logger.info("KeyCRM sync server stopped")

    app = FastAPI(
        title="KeyCRM Order Sync",
        description="Pushes WooCommerce orders to KeyCRM",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    app.include_router(woocommerce_router)
    return app


app = create_app()
