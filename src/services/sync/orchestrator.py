"""OrderSyncService - pushes qualifying shop orders to KeyCRM.

Flow for one trigger (order created / status changed):
1. Load the order (missing -> silent no-op)
2. Eligibility gate (ineligible -> silent no-op)
3. Configuration snapshot (no API key -> ConfigurationError)
4. Build payload (any exception -> DeliveryError)
5. POST to KeyCRM (transport / non-2xx -> DeliveryError)
6. Record: note + synced flag on success, note only on failure

Nothing raised inside the pipeline reaches the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.conf.crm_config import (
    DEFAULT_EXCLUDED_STATUSES,
    MESSAGE_MISSING_API_KEY,
    NOTE_SYNC_FAILED,
    NOTE_SYNC_SUCCESS,
    SYNCED_META_KEY,
    SYNCED_META_VALUE,
)
from src.core.logging import log_event
from src.integrations.keycrm.client import KeyCRMClient
from src.services.data.order_model import Order
from src.services.exceptions import (
    ConfigurationError,
    DeliveryError,
    ServiceUnavailableError,
    SyncError,
)
from src.services.orders.repository import OrderRepository
from src.services.sync.mapping import SyncConfig
from src.services.sync.policy import SyncPolicy
from src.services.sync.resolver import build_order_payload


logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    SYNCED = "synced"
    FAILED = "failed"
    SKIPPED = "skipped"
    MISSING = "missing"


@dataclass
class SyncResult:
    """Outcome of one trigger."""

    status: SyncStatus
    order_id: int
    error: SyncError | None = None

    @classmethod
    def ok(cls, order_id: int) -> SyncResult:
        return cls(status=SyncStatus.SYNCED, order_id=order_id)

    @classmethod
    def skipped(cls, order_id: int) -> SyncResult:
        return cls(status=SyncStatus.SKIPPED, order_id=order_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value, "order_id": self.order_id}
        if self.error is not None:
            data["error"] = {"code": self.error.code, "message": self.error.message}
        return data


class OrderSyncService:
    """Coordinates eligibility, payload build, delivery and result recording.

    Construct once at startup and pass it to whatever fires order events.
    """

    def __init__(
        self,
        repository: OrderRepository,
        crm_client: KeyCRMClient,
        config_provider: Callable[[], SyncConfig],
        policy: SyncPolicy | None = None,
    ):
        self.repository = repository
        self.crm_client = crm_client
        self.config_provider = config_provider
        self.policy = policy or SyncPolicy()

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def on_order_created(self, order_id: int) -> SyncResult:
        return self.process_order(order_id)

    def on_status_changed(
        self,
        order_id: int,
        old_status: str | None = None,
        new_status: str | None = None,
    ) -> SyncResult:
        """Retry a not-yet-synced order on any status transition."""
        order = self.repository.get(order_id)
        if order is None:
            log_event(logger, event="sync_missing", level="debug", order_id=order_id)
            return SyncResult(status=SyncStatus.MISSING, order_id=order_id)
        if order.is_synced:
            return SyncResult.skipped(order_id)

        logger.debug("Order %s status %s -> %s, attempting sync", order_id, old_status, new_status)
        return self.process_order(order_id)

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def should_process(self, order: Order) -> bool:
        if order.is_synced:
            return False

        excluded = self.policy.excluded_statuses(DEFAULT_EXCLUDED_STATUSES)
        decision = order.status not in excluded
        return self.policy.should_process(decision, order)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def process_order(self, order_id: int) -> SyncResult:
        order = self.repository.get(order_id)
        if order is None:
            log_event(logger, event="sync_missing", level="debug", order_id=order_id)
            return SyncResult(status=SyncStatus.MISSING, order_id=order_id)

        if not self.should_process(order):
            log_event(logger, event="sync_skipped", level="debug", order_id=order_id, status=order.status)
            return SyncResult.skipped(order_id)

        log_event(logger, event="sync_attempt", order_id=order_id, status=order.status)

        try:
            self._deliver(order)
        except SyncError as e:
            log_event(
                logger,
                event="sync_failed",
                level="warning",
                order_id=order_id,
                error_code=e.code,
                detail=e.message,
            )
            self._record_failure(order, e)
            return SyncResult(status=SyncStatus.FAILED, order_id=order_id, error=e)

        log_event(logger, event="sync_succeeded", order_id=order_id)
        self._record_success(order)
        return SyncResult.ok(order_id)

    def _deliver(self, order: Order) -> None:
        try:
            config = self.config_provider()
        except Exception as e:
            logger.exception("[KEYCRM] Failed to read sync configuration")
            raise ConfigurationError(str(e) or type(e).__name__) from e

        if not config.has_api_key:
            raise ConfigurationError(MESSAGE_MISSING_API_KEY)

        try:
            payload = build_order_payload(order, config)
        except Exception as e:
            logger.exception("[KEYCRM] Failed to build payload for order %s", order.id)
            raise DeliveryError(str(e) or type(e).__name__) from e

        try:
            self.crm_client.send_order(payload, api_key=config.api_key, debug=config.debug)
        except SyncError:
            raise
        except Exception as e:
            logger.exception("[KEYCRM] Unexpected error sending order %s", order.id)
            raise DeliveryError(str(e) or type(e).__name__) from e

    def _record_success(self, order: Order) -> None:
        try:
            self.repository.add_note(order, NOTE_SYNC_SUCCESS)
            order.update_meta(SYNCED_META_KEY, SYNCED_META_VALUE)
            self.repository.save(order)
        except ServiceUnavailableError as e:
            log_event(logger, event="record_failed", level="error", order_id=order.id, detail=e.message)
        except Exception:
            logger.exception("[KEYCRM] Failed to record sync result for order %s", order.id)

    def _record_failure(self, order: Order, error: SyncError) -> None:
        try:
            self.repository.add_note(order, NOTE_SYNC_FAILED.format(message=error.message))
        except ServiceUnavailableError as e:
            log_event(logger, event="record_failed", level="error", order_id=order.id, detail=e.message)
        except Exception:
            logger.exception("[KEYCRM] Failed to record sync result for order %s", order.id)
