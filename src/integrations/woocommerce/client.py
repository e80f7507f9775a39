"""WooCommerce REST API adapter for the order lifecycle host.

Implements ``OrderRepository`` on top of ``/wp-json/wc/v3``:
- GET  /orders/{id}                       load order
- GET  /products/{id}[/variations/{vid}]  load line item products
- POST /orders/{id}/notes                 append private note
- PUT  /orders/{id}                       write changed meta_data

Documentation: https://woocommerce.github.io/woocommerce-rest-api-docs/

SETUP IN WOOCOMMERCE:
1. WooCommerce → Settings → Advanced → REST API → Add key (Read/Write)
2. Add to .env: WOOCOMMERCE_URL, WOOCOMMERCE_CONSUMER_KEY, WOOCOMMERCE_CONSUMER_SECRET
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.conf.crm_config import REQUEST_TIMEOUT_SECONDS
from src.services.data.order_model import Order, Product, product_from_woocommerce
from src.services.exceptions import ServiceUnavailableError


logger = logging.getLogger(__name__)

API_PREFIX = "/wp-json/wc/v3"


class WooCommerceOrderRepository:
    """Loads and annotates orders through the WooCommerce REST API."""

    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        http_client: httpx.Client | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/") + API_PREFIX
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)
        self._auth = httpx.BasicAuth(consumer_key, consumer_secret)

    def __enter__(self) -> WooCommerceOrderRepository:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return self._client.request(method, f"{self.base_url}{path}", auth=self._auth, **kwargs)

    def _get_json(self, path: str) -> dict[str, Any] | None:
        """GET a document; None on 404 or transport error."""
        try:
            response = self._request("GET", path)
        except httpx.HTTPError as e:
            logger.warning("[WOOCOMMERCE] GET %s failed: %s", path, e)
            return None

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.warning("[WOOCOMMERCE] GET %s returned %s: %s", path, response.status_code, response.text)
            return None

        try:
            return response.json()
        except ValueError:
            logger.warning("[WOOCOMMERCE] GET %s returned invalid JSON", path)
            return None

    def _get_product(self, product_id: int, variation_id: int = 0) -> Product | None:
        if not product_id:
            return None
        if variation_id:
            data = self._get_json(f"/products/{product_id}/variations/{variation_id}")
        else:
            data = self._get_json(f"/products/{product_id}")
        return product_from_woocommerce(data) if data else None

    def get(self, order_id: int) -> Order | None:
        data = self._get_json(f"/orders/{order_id}")
        if data is None:
            logger.info("[WOOCOMMERCE] Order %s could not be loaded", order_id)
            return None

        products: dict[int, Product | None] = {}
        for item in data.get("line_items") or []:
            products[item.get("id")] = self._get_product(
                item.get("product_id") or 0,
                item.get("variation_id") or 0,
            )

        try:
            return Order.from_woocommerce(data, products)
        except (KeyError, ValueError) as e:
            logger.warning("[WOOCOMMERCE] Order %s has an unexpected shape: %s", order_id, e)
            return None

    def add_note(self, order: Order, note: str) -> None:
        self._write("POST", f"/orders/{order.id}/notes", {"note": note, "customer_note": False})
        order.notes.append(note)

    def save(self, order: Order) -> None:
        changed = order.dirty_meta
        if not changed:
            return
        meta_data = [{"key": key, "value": value} for key, value in changed.items()]
        self._write("PUT", f"/orders/{order.id}", {"meta_data": meta_data})
        order.mark_clean()

    def _write(self, method: str, path: str, body: dict[str, Any]) -> None:
        try:
            response = self._request(method, path, json=body)
        except httpx.HTTPError as e:
            raise ServiceUnavailableError("woocommerce", f"{method} {path} failed: {e}") from e

        if response.status_code not in (200, 201):
            raise ServiceUnavailableError(
                "woocommerce",
                f"{method} {path} returned {response.status_code}: {response.text}",
            )
