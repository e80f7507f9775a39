"""Configuration for the KeyCRM order sync service.

Reads environment variables for API access and runtime tuning.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


def absint(value: Any) -> int:
    """Coerce a value to a non-negative integer, 0 when it cannot be parsed."""
    if isinstance(value, bool):
        return int(value)
    try:
        return abs(int(value))
    except (TypeError, ValueError):
        pass
    try:
        return abs(int(float(str(value).strip())))
    except (TypeError, ValueError, OverflowError):
        return 0


def sanitize_mapping(raw: Any) -> dict[str, int]:
    """Normalize an admin mapping: string keys, non-negative integer values."""
    if not isinstance(raw, dict):
        return {}
    return {str(key).strip(): absint(value) for key, value in raw.items()}


class Settings(BaseSettings):
    """Runtime configuration loaded from environment."""

    # KeyCRM integration
    KEYCRM_API_URL: str = Field(
        default="https://openapi.keycrm.app/v1", description="KeyCRM OpenAPI base URL."
    )
    KEYCRM_API_KEY: SecretStr = Field(
        default=SecretStr(""), description="KeyCRM API key (Bearer token)."
    )
    KEYCRM_SOURCE_ID: int = Field(
        default=1, ge=1, description="KeyCRM source id attached to every pushed order."
    )
    KEYCRM_DEBUG_MODE: bool = Field(
        default=False,
        description="Log outbound URL/payload and inbound status/body for every CRM call.",
    )
    KEYCRM_PAYMENT_MAPPINGS: dict[str, int] = Field(
        default_factory=dict,
        description="JSON object: payment gateway id -> KeyCRM payment method id.",
    )
    KEYCRM_SHIPPING_MAPPINGS: dict[str, int] = Field(
        default_factory=dict,
        description="JSON object: shipping method instance id -> KeyCRM delivery service id.",
    )
    KEYCRM_MAPPINGS_FILE: str = Field(
        default="",
        description="Optional YAML file with 'payment' and 'shipping' mapping sections.",
    )

    # WooCommerce (order lifecycle host)
    WOOCOMMERCE_URL: str = Field(default="", description="Shop base URL, e.g. https://shop.example.com.")
    WOOCOMMERCE_CONSUMER_KEY: SecretStr = Field(default=SecretStr(""), description="REST API consumer key.")
    WOOCOMMERCE_CONSUMER_SECRET: SecretStr = Field(
        default=SecretStr(""), description="REST API consumer secret."
    )
    WOOCOMMERCE_WEBHOOK_SECRET: SecretStr = Field(
        default=SecretStr(""),
        description="Secret used by WooCommerce to sign webhook deliveries. Empty disables the check.",
    )

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================
    LOG_LEVEL: str = Field(default="INFO", description="Root log level.")
    LOG_JSON: bool = Field(default=False, description="Emit JSON log lines (production).")

    @field_validator("KEYCRM_PAYMENT_MAPPINGS", "KEYCRM_SHIPPING_MAPPINGS", mode="before")
    @classmethod
    def _sanitize_mappings(cls, value: Any) -> dict[str, int]:
        return sanitize_mapping(value)

    @property
    def keycrm_enabled(self) -> bool:
        """Check if KeyCRM credentials are configured."""
        return bool(self.KEYCRM_API_URL and self.KEYCRM_API_KEY.get_secret_value())

    @property
    def woocommerce_enabled(self) -> bool:
        """Check if the WooCommerce REST API is configured."""
        return bool(
            self.WOOCOMMERCE_URL
            and self.WOOCOMMERCE_CONSUMER_KEY.get_secret_value()
            and self.WOOCOMMERCE_CONSUMER_SECRET.get_secret_value()
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[arg-type]


def validate_required_settings(settings_instance: Settings | None = None) -> list[str]:
    """Log a warning for every missing integration setting.

    Nothing here raises: a missing KeyCRM key is reported per order as a
    configuration failure note, so the service still has to start.

    Returns:
        The list of warnings that were logged.
    """
    if settings_instance is None:
        settings_instance = get_settings()

    warnings: list[str] = []

    if not settings_instance.KEYCRM_API_KEY.get_secret_value():
        warnings.append("KEYCRM_API_KEY not set (every sync attempt will fail)")

    if not settings_instance.woocommerce_enabled:
        warnings.append(
            "WOOCOMMERCE_URL / WOOCOMMERCE_CONSUMER_KEY / WOOCOMMERCE_CONSUMER_SECRET not set "
            "(orders cannot be loaded)"
        )

    if not settings_instance.WOOCOMMERCE_WEBHOOK_SECRET.get_secret_value():
        warnings.append("WOOCOMMERCE_WEBHOOK_SECRET not set (webhook signatures are not verified)")

    for warning in warnings:
        logger.warning("Configuration warning: %s", warning)

    return warnings


settings = get_settings()
