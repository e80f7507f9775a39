"""Order -> KeyCRM payload mapping.

Pure functions: they read an Order and the mapping tables and never mutate
either. ``build_order_payload`` composes them into the body of
``POST /order``.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel

from src.conf.crm_config import (
    CASH_ON_DELIVERY_GATEWAY,
    CASH_ON_DELIVERY_LABEL,
    DOT_SUFFIX_DELIVERY_SERVICE_ID,
    PAYMENT_DATE_FORMAT,
    PAYMENT_STATUS_NOT_PAID,
    PAYMENT_STATUS_PAID,
    PURCHASE_PRICE_META_KEY,
    RECIPIENT_NAME_SUFFIX,
    SHIPPING_DATE_FORMAT,
    TRACKING_CODE_META_KEY,
    WAREHOUSE_REF_META_KEY,
)
from src.services.data.order_model import Order
from src.services.exceptions import InvalidLineItemError
from src.services.sync.mapping import MappingTable, SyncConfig

_NON_DIGITS = re.compile(r"[^0-9]")


class Buyer(BaseModel):
    full_name: str
    email: str
    phone: str


class ShippingInfo(BaseModel):
    delivery_service_id: int
    tracking_code: Any = ""
    shipping_service: str = ""
    shipping_address_city: str = ""
    shipping_address_country: str = ""
    shipping_address_region: str = ""
    shipping_address_zip: str = ""
    shipping_secondary_line: str = ""
    shipping_receive_point: str = ""
    recipient_full_name: str = ""
    recipient_phone: str = ""
    warehouse_ref: Any = ""
    shipping_date: str = ""


class PaymentInfo(BaseModel):
    payment_method_id: int
    payment_method: str
    amount: float
    payment_date: str
    status: str


class ProductLine(BaseModel):
    sku: str
    name: str
    price: float
    purchased_price: Any = ""
    quantity: int
    image_url: str = ""


def resolve_phone(raw: str | None) -> str:
    """Keep digits only, then make sure the number starts with '+'.

    The '+' check runs after stripping, so it always prepends:
    "+38 (050) 123-45-67" -> "+380501234567", "0501234567" -> "+0501234567".
    """
    phone = _NON_DIGITS.sub("", raw or "")
    if not phone.startswith("+"):
        phone = "+" + phone
    return phone


def _has_instance_id(instance_id: str | int | None) -> bool:
    """Zero, empty and missing instance ids mean no configured shipping method."""
    return bool(instance_id) and str(instance_id).strip() not in ("", "0")


def resolve_shipping(order: Order, shipping_map: MappingTable) -> ShippingInfo:
    first_line = order.shipping_lines[0] if order.shipping_lines else None
    if first_line is None or not _has_instance_id(first_line.instance_id):
        delivery_service_id = shipping_map.default
    else:
        delivery_service_id = shipping_map.lookup(first_line.instance_id)

    recipient_full_name = order.shipping.full_name
    if delivery_service_id == DOT_SUFFIX_DELIVERY_SERVICE_ID:
        recipient_full_name += RECIPIENT_NAME_SUFFIX

    return ShippingInfo(
        delivery_service_id=delivery_service_id,
        tracking_code=order.get_meta(TRACKING_CODE_META_KEY),
        shipping_service=order.shipping_method_label,
        shipping_address_city=order.billing.city,
        shipping_address_country=order.billing.country,
        shipping_address_region=order.billing.state,
        shipping_address_zip=order.billing.postcode,
        shipping_secondary_line=order.billing.address_1,
        shipping_receive_point=order.shipping.address_1,
        recipient_full_name=recipient_full_name,
        recipient_phone=resolve_phone(order.billing.phone),
        warehouse_ref=order.get_meta(WAREHOUSE_REF_META_KEY),
        shipping_date=order.date_created.strftime(SHIPPING_DATE_FORMAT),
    )


def resolve_payment(order: Order, payment_map: MappingTable) -> PaymentInfo:
    if order.payment_method == CASH_ON_DELIVERY_GATEWAY:
        label = CASH_ON_DELIVERY_LABEL
    else:
        label = order.payment_method_title

    return PaymentInfo(
        payment_method_id=payment_map.lookup(order.payment_method),
        payment_method=label,
        amount=float(order.total),
        payment_date=order.date_created.strftime(PAYMENT_DATE_FORMAT),
        status=PAYMENT_STATUS_PAID if order.is_paid else PAYMENT_STATUS_NOT_PAID,
    )


def resolve_line_items(order: Order) -> list[ProductLine]:
    """Map order lines to KeyCRM products, skipping lines whose product is gone.

    Raises:
        InvalidLineItemError: If a line with a product has zero quantity.
    """
    products: list[ProductLine] = []

    for item in order.line_items:
        product = item.product
        if product is None:
            continue

        if not item.quantity:
            raise InvalidLineItemError(item.id, "quantity is zero, unit price is undefined")

        products.append(
            ProductLine(
                sku=product.sku,
                name=item.name,
                price=float(item.total / item.quantity),
                purchased_price=product.get_meta(PURCHASE_PRICE_META_KEY),
                quantity=item.quantity,
                image_url=product.image_url or "",
            )
        )

    return products


def resolve_buyer(order: Order) -> Buyer:
    return Buyer(
        full_name=order.billing_full_name,
        email=order.billing.email,
        phone=resolve_phone(order.billing.phone),
    )


def build_order_payload(order: Order, config: SyncConfig) -> dict[str, Any]:
    """Build the KeyCRM ``POST /order`` body for one order."""
    return {
        "source_id": config.source_id,
        "external_id": order.id,
        "buyer": resolve_buyer(order).model_dump(),
        "shipping": resolve_shipping(order, config.shipping_map).model_dump(),
        "payments": [resolve_payment(order, config.payment_map).model_dump()],
        "products": [line.model_dump() for line in resolve_line_items(order)],
    }
