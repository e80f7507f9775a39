"""Order model for CRM integration.

This module defines the shop-side Order data structure the sync pipeline reads
from. Orders are owned by WooCommerce; the only mutations made here are
appending notes and setting metadata flags.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from src.conf.crm_config import PAID_STATUSES, SYNCED_META_KEY, SYNCED_META_VALUE


class OrderStatus(str, Enum):
    """WooCommerce core order statuses."""

    PENDING = "pending"  # Очікує оплати
    PROCESSING = "processing"  # В обробці
    ON_HOLD = "on-hold"  # На утриманні
    COMPLETED = "completed"  # Виконано
    CANCELLED = "cancelled"  # Скасовано
    REFUNDED = "refunded"  # Повернено
    FAILED = "failed"  # Не вдалося
    CHECKOUT_DRAFT = "checkout-draft"  # Чернетка


class Address(BaseModel):
    """Billing or shipping address block."""

    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ShippingLine(BaseModel):
    """Shipping method chosen for the order."""

    method_id: str = ""
    instance_id: str | int | None = None
    method_title: str = ""


class Product(BaseModel):
    """Catalog product referenced by a line item."""

    id: int
    sku: str = ""
    image_url: str | None = None  # full-size image
    meta: dict[str, Any] = Field(default_factory=dict)

    def get_meta(self, key: str) -> Any:
        return self.meta.get(key, "")


class LineItem(BaseModel):
    """Single line of the order."""

    id: int | None = None
    name: str = ""
    product: Product | None = None
    quantity: int = 1
    total: Decimal = Decimal("0")


class Order(BaseModel):
    """Shop order as seen by the sync pipeline."""

    id: int
    status: str = OrderStatus.PENDING.value
    date_created: datetime
    total: Decimal = Decimal("0")

    payment_method: str = ""
    payment_method_title: str = ""

    billing: Address = Field(default_factory=Address)
    shipping: Address = Field(default_factory=Address)
    shipping_lines: list[ShippingLine] = Field(default_factory=list)
    line_items: list[LineItem] = Field(default_factory=list)

    meta: dict[str, Any] = Field(default_factory=dict)
    notes: list[str] = Field(default_factory=list)

    _dirty_meta: set[str] = PrivateAttr(default_factory=set)

    def get_meta(self, key: str) -> Any:
        """Return a metadata value, empty string when absent."""
        return self.meta.get(key, "")

    def update_meta(self, key: str, value: Any) -> None:
        """Set a metadata value; it is written on the next save."""
        self.meta[key] = value
        self._dirty_meta.add(key)

    @property
    def dirty_meta(self) -> dict[str, Any]:
        return {key: self.meta[key] for key in sorted(self._dirty_meta)}

    def mark_clean(self) -> None:
        self._dirty_meta.clear()

    @property
    def is_synced(self) -> bool:
        return self.get_meta(SYNCED_META_KEY) == SYNCED_META_VALUE

    @property
    def is_paid(self) -> bool:
        return self.status in PAID_STATUSES

    @property
    def billing_full_name(self) -> str:
        return self.billing.full_name

    @property
    def shipping_method_label(self) -> str:
        """Titles of all shipping lines, comma separated."""
        return ", ".join(line.method_title for line in self.shipping_lines)

    @classmethod
    def from_woocommerce(
        cls,
        data: Mapping[str, Any],
        products: Mapping[int, Product | None] | None = None,
    ) -> Order:
        """Build an Order from a WooCommerce REST v3 order document.

        Args:
            data: Order JSON as returned by GET /wp-json/wc/v3/orders/{id}
            products: Resolved products keyed by line item id (None = deleted product)
        """
        products = products or {}
        meta = {entry["key"]: entry.get("value") for entry in data.get("meta_data") or [] if "key" in entry}

        line_items = [
            LineItem(
                id=item.get("id"),
                name=item.get("name") or "",
                product=products.get(item.get("id")),
                quantity=item.get("quantity") or 0,
                total=item.get("total") or "0",
            )
            for item in data.get("line_items") or []
        ]

        shipping_lines = [
            ShippingLine(
                method_id=line.get("method_id") or "",
                instance_id=line.get("instance_id"),
                method_title=line.get("method_title") or "",
            )
            for line in data.get("shipping_lines") or []
        ]

        return cls(
            id=data["id"],
            status=data.get("status") or OrderStatus.PENDING.value,
            date_created=data["date_created"],
            total=data.get("total") or "0",
            payment_method=data.get("payment_method") or "",
            payment_method_title=data.get("payment_method_title") or "",
            billing=Address(**_clean_address(data.get("billing"))),
            shipping=Address(**_clean_address(data.get("shipping"))),
            shipping_lines=shipping_lines,
            line_items=line_items,
            meta=meta,
        )


def _clean_address(raw: Mapping[str, Any] | None) -> dict[str, str]:
    if not raw:
        return {}
    fields = Address.model_fields
    return {key: str(value or "") for key, value in raw.items() if key in fields}


def product_from_woocommerce(data: Mapping[str, Any]) -> Product:
    """Build a Product from a WooCommerce product or variation document."""
    image_url = None
    if data.get("image") and data["image"].get("src"):
        image_url = data["image"]["src"]
    elif data.get("images"):
        image_url = data["images"][0].get("src") or None

    meta = {entry["key"]: entry.get("value") for entry in data.get("meta_data") or [] if "key" in entry}
    return Product(id=data["id"], sku=data.get("sku") or "", image_url=image_url, meta=meta)
