"""Health check router."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from src.server.dependencies import SettingsDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: SettingsDep) -> dict[str, Any]:
    """Liveness plus integration configuration status."""
    return {
        "status": "ok",
        "keycrm_configured": settings.keycrm_enabled,
        "woocommerce_configured": settings.woocommerce_enabled,
    }
