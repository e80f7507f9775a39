"""Routers package for the KeyCRM sync server."""

from src.server.routers.health import router as health_router
from src.server.routers.woocommerce import router as woocommerce_router

__all__ = [
    "health_router",
    "woocommerce_router",
]
