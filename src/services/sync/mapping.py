"""Mapping tables and the per-attempt configuration snapshot.

Admin-configured lookups (payment gateway -> KeyCRM payment method id,
shipping instance -> KeyCRM delivery service id) are wrapped in an explicit
lookup-with-default so the fallback ids live in one place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from src.conf.config import sanitize_mapping
from src.conf.crm_config import (
    DEFAULT_DELIVERY_SERVICE_ID,
    DEFAULT_PAYMENT_METHOD_ID,
    load_mappings_file,
)

if TYPE_CHECKING:
    from src.conf.config import Settings


@dataclass(frozen=True)
class MappingTable:
    """Immutable local id -> KeyCRM id lookup.

    Keys are compared as strings, so an instance id of ``5`` and ``"5"`` hit
    the same entry. Misses never raise; they return ``default``.
    """

    entries: Mapping[str, int] = field(default_factory=dict)
    default: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(sanitize_mapping(dict(self.entries))))

    def lookup(self, key: str | int | None) -> int:
        if key is None:
            return self.default
        normalized = str(key).strip()
        if not normalized:
            return self.default
        return self.entries.get(normalized, self.default)

    def __contains__(self, key: object) -> bool:
        return key is not None and str(key).strip() in self.entries

    def __len__(self) -> int:
        return len(self.entries)


def payment_table(entries: Mapping[str, int] | None = None) -> MappingTable:
    return MappingTable(entries or {}, default=DEFAULT_PAYMENT_METHOD_ID)


def shipping_table(entries: Mapping[str, int] | None = None) -> MappingTable:
    return MappingTable(entries or {}, default=DEFAULT_DELIVERY_SERVICE_ID)


@dataclass(frozen=True)
class SyncConfig:
    """Everything one sync attempt needs from configuration, read once."""

    api_key: str
    api_url: str = "https://openapi.keycrm.app/v1"
    source_id: int = 1
    debug: bool = False
    payment_map: MappingTable = field(default_factory=payment_table)
    shipping_map: MappingTable = field(default_factory=shipping_table)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_settings(cls, settings: Settings) -> SyncConfig:
        """Snapshot settings; env mappings override entries from the YAML file."""
        file_payment, file_shipping = load_mappings_file(settings.KEYCRM_MAPPINGS_FILE)
        return cls(
            api_key=settings.KEYCRM_API_KEY.get_secret_value(),
            api_url=settings.KEYCRM_API_URL,
            source_id=settings.KEYCRM_SOURCE_ID,
            debug=settings.KEYCRM_DEBUG_MODE,
            payment_map=payment_table({**file_payment, **settings.KEYCRM_PAYMENT_MAPPINGS}),
            shipping_map=shipping_table({**file_shipping, **settings.KEYCRM_SHIPPING_MAPPINGS}),
        )
