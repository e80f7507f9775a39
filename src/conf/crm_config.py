"""
KeyCRM Configuration Constants.
===============================
Centralizes all external system strings and ids so the sync logic holds none.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from src.conf.config import sanitize_mapping

logger = logging.getLogger(__name__)

# HTTP
ORDER_ENDPOINT = "order"
REQUEST_TIMEOUT_SECONDS = 30.0
SUCCESS_STATUS_CODES = frozenset({200, 201})

# Mapping fallbacks (KeyCRM-side ids)
DEFAULT_PAYMENT_METHOD_ID = 2
DEFAULT_DELIVERY_SERVICE_ID = 1

# This carrier rejects recipients without a trailing " ." token
DOT_SUFFIX_DELIVERY_SERVICE_ID = 2
RECIPIENT_NAME_SUFFIX = " ."

# Payment
CASH_ON_DELIVERY_GATEWAY = "cod"
CASH_ON_DELIVERY_LABEL = "Оплата при отриманні"
PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_NOT_PAID = "not_paid"

# Order statuses (WooCommerce slugs, without the "wc-" prefix)
DEFAULT_EXCLUDED_STATUSES = frozenset({"cancelled", "failed", "refunded"})
PAID_STATUSES = frozenset({"processing", "completed"})

# Order / product metadata keys
SYNCED_META_KEY = "keycrm_synced"
SYNCED_META_VALUE = "yes"
TRACKING_CODE_META_KEY = "_tracking_code"
WAREHOUSE_REF_META_KEY = "wcus_warehouse_ref"
PURCHASE_PRICE_META_KEY = "_purchase_price"

# Date formats
SHIPPING_DATE_FORMAT = "%Y-%m-%d"
PAYMENT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Order notes
NOTE_SYNC_SUCCESS = "Order synced with KeyCRM successfully"
NOTE_SYNC_FAILED = "Failed to sync with KeyCRM: {message}"
MESSAGE_MISSING_API_KEY = "API ключ KeyCRM не встановлено"
MESSAGE_API_ERROR = "KeyCRM API error (code {status_code}): {body}"


def load_mappings_file(path: str | Path | None) -> tuple[dict[str, int], dict[str, int]]:
    """Load payment and shipping mappings from a YAML file.

    Expected layout::

        payment:
          cod: 1
          liqpay: 3
        shipping:
          5: 2

    Returns:
        (payment_mappings, shipping_mappings), both empty when no path is given.

    Raises:
        RuntimeError: If the file is missing or is not a mapping document.
    """
    if not path:
        return {}, {}

    file_path = Path(path)
    if not file_path.exists():
        raise RuntimeError(f"KeyCRM mappings file not found: {file_path}")

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise RuntimeError(f"Failed to parse KeyCRM mappings file {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise RuntimeError(
            f"Invalid KeyCRM mappings file {file_path}: expected 'payment' and 'shipping' sections"
        )

    payment = sanitize_mapping(data.get("payment") or {})
    shipping = sanitize_mapping(data.get("shipping") or {})
    logger.debug(
        "Loaded KeyCRM mappings from %s: %d payment, %d shipping",
        file_path,
        len(payment),
        len(shipping),
    )
    return payment, shipping
