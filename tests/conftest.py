import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import httpx
import pytest

# Add project root to path
root = Path(__file__).resolve().parents[1]
project_root = str(root)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from src.services.data.order_model import Address, LineItem, Order, Product, ShippingLine  # noqa: E402
from src.services.sync.mapping import SyncConfig, payment_table, shipping_table  # noqa: E402


def build_order(**overrides: Any) -> Order:
    """A processing COD order with one real product line and one deleted one."""
    data: dict[str, Any] = {
        "id": 1042,
        "status": "processing",
        "date_created": datetime(2024, 5, 17, 14, 30, 45),
        "total": Decimal("1350.00"),
        "payment_method": "cod",
        "payment_method_title": "Cash on delivery",
        "billing": Address(
            first_name="Олена",
            last_name="Ковальчук",
            email="olena@example.com",
            phone="+38 (050) 123-45-67",
            city="Київ",
            state="UA30",
            postcode="01001",
            country="UA",
            address_1="вул. Хрещатик, 1",
        ),
        "shipping": Address(
            first_name="Олена",
            last_name="Ковальчук",
            address_1="Відділення №25",
        ),
        "shipping_lines": [
            ShippingLine(method_id="nova_poshta_shipping", instance_id="5", method_title="Нова Пошта"),
        ],
        "line_items": [
            LineItem(
                id=11,
                name="Сукня Анна",
                product=Product(
                    id=7,
                    sku="DRESS-ANNA-122",
                    image_url="https://shop.example.com/wp-content/uploads/anna.jpg",
                    meta={"_purchase_price": "600"},
                ),
                quantity=2,
                total=Decimal("1200.00"),
            ),
            LineItem(id=12, name="Видалений товар", product=None, quantity=1, total=Decimal("150.00")),
        ],
        "meta": {"_tracking_code": "20450000000000", "wcus_warehouse_ref": "wh-ref-25"},
    }
    data.update(overrides)
    return Order(**data)


@pytest.fixture
def order_factory():
    return build_order


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(
        api_key="test_api_key_123",
        api_url="https://openapi.keycrm.test/v1",
        source_id=3,
        payment_map=payment_table({"liqpay": 4, "cod": 1}),
        shipping_map=shipping_table({"5": 2, "9": 7}),
    )


class RecordingTransport:
    """httpx.MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code: int = 201, body: str = '{"id": 555}', exc: Exception | None = None):
        self.status_code = status_code
        self.body = body
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, text=self.body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def recording_transport():
    return RecordingTransport
