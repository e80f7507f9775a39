"""WooCommerce webhook router.

Order events from the shop trigger a KeyCRM sync:
- POST /webhooks/woocommerce/order-created  (topic order.created)
- POST /webhooks/woocommerce/order-updated  (topic order.updated)

Security:
- X-WC-Webhook-Signature: base64(HMAC-SHA256(secret, raw body)),
  checked when WOOCOMMERCE_WEBHOOK_SECRET is set
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status

from src.core.logging import log_event
from src.server.dependencies import SettingsDep, SyncServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/woocommerce", tags=["woocommerce"])

SIGNATURE_HEADER = "X-WC-Webhook-Signature"


def compute_signature(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(secret: str, body: bytes, provided: str | None) -> bool:
    """True when no secret is configured or the signature matches."""
    if not secret:
        return True
    if not provided:
        return False
    return hmac.compare_digest(compute_signature(secret, body), provided.strip())


async def _read_order_event(request: Request, settings: SettingsDep) -> dict[str, Any] | None:
    """Verify and decode a delivery; None for pings and non-order bodies."""
    body = await request.body()

    secret = settings.WOOCOMMERCE_WEBHOOK_SECRET.get_secret_value()
    if not verify_signature(secret, body, request.headers.get(SIGNATURE_HEADER)):
        log_event(logger, event="webhook_rejected", level="warning", path=request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")

    # WooCommerce pings a new webhook with a form body (webhook_id=...)
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict) or not payload.get("id"):
        return None

    log_event(
        logger,
        event="webhook_received",
        order_id=payload.get("id"),
        status=payload.get("status"),
        topic=request.headers.get("X-WC-Webhook-Topic"),
    )
    return payload


@router.post("/order-created")
async def order_created(request: Request, settings: SettingsDep, service: SyncServiceDep) -> dict[str, Any]:
    """Checkout completed: always attempt a sync."""
    payload = await _read_order_event(request, settings)
    if payload is None:
        return {"status": "ignored"}

    result = await asyncio.to_thread(service.on_order_created, int(payload["id"]))
    return result.to_dict()


@router.post("/order-updated")
async def order_updated(request: Request, settings: SettingsDep, service: SyncServiceDep) -> dict[str, Any]:
    """Order changed: retry when it is not synced yet.

    The order.updated topic fires on every save, not only on status
    transitions, and carries no previous status, so old_status is None.
    """
    payload = await _read_order_event(request, settings)
    if payload is None:
        return {"status": "ignored"}

    result = await asyncio.to_thread(
        service.on_status_changed,
        int(payload["id"]),
        None,
        payload.get("status"),
    )
    return result.to_dict()
