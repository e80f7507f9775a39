"""
Service Exceptions - Sync error handling.
=========================================
Typed failures raised inside the sync pipeline and converted into order notes
at the orchestrator boundary.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for a failed KeyCRM sync attempt."""

    code = "sync_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(SyncError):
    """Raised when the integration is not configured (missing API key)."""

    code = "configuration_error"


class DeliveryError(SyncError):
    """Raised when the order could not be delivered to KeyCRM.

    Covers transport failures, non-2xx responses and payload build errors.
    """

    code = "api_error"

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class InvalidLineItemError(ValueError):
    """Raised when a line item cannot be priced (zero quantity)."""

    def __init__(self, item_id: int | None, reason: str):
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"Invalid line item {item_id}: {reason}")


class ServiceUnavailableError(Exception):
    """Raised when an external service (shop REST API) is unavailable."""

    def __init__(self, service_name: str, message: str | None = None):
        self.service_name = service_name
        self.message = message or f"{service_name} is unavailable"
        super().__init__(self.message)
