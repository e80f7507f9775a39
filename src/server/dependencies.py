"""FastAPI dependency injection module.

The sync service is built once in the application lifespan and stored on
``app.state``; request handlers receive it through ``get_sync_service``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from src.conf.config import Settings, get_settings
from src.integrations.keycrm.client import KeyCRMClient
from src.integrations.woocommerce.client import WooCommerceOrderRepository
from src.services.sync.mapping import SyncConfig
from src.services.sync.orchestrator import OrderSyncService


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]


def build_sync_service(settings: Settings) -> OrderSyncService:
    """Wire the production sync service from settings."""
    repository = WooCommerceOrderRepository(
        settings.WOOCOMMERCE_URL,
        settings.WOOCOMMERCE_CONSUMER_KEY.get_secret_value(),
        settings.WOOCOMMERCE_CONSUMER_SECRET.get_secret_value(),
    )
    crm_client = KeyCRMClient(settings.KEYCRM_API_URL)
    return OrderSyncService(
        repository=repository,
        crm_client=crm_client,
        config_provider=lambda: SyncConfig.from_settings(settings),
    )


def get_sync_service(request: Request) -> OrderSyncService:
    """Return the service built at startup."""
    return request.app.state.sync_service


SyncServiceDep = Annotated[OrderSyncService, Depends(get_sync_service)]
