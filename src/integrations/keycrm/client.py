"""KeyCRM API client.

KeyCRM OpenAPI integration for order creation.
Documentation: https://docs.keycrm.app

One call per order, no retries: ``POST {api_url}/order`` with a Bearer token.
HTTP 200/201 is success; anything else, or no response at all, raises
``DeliveryError``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from src.conf.crm_config import (
    MESSAGE_API_ERROR,
    ORDER_ENDPOINT,
    REQUEST_TIMEOUT_SECONDS,
    SUCCESS_STATUS_CODES,
)
from src.core.logging import get_debug_logger
from src.integrations.keycrm.base import CRMResponse
from src.services.exceptions import DeliveryError


logger = logging.getLogger(__name__)
debug_logger = get_debug_logger()


class KeyCRMClient:
    """Synchronous KeyCRM API client.

    Usage:
        with KeyCRMClient("https://openapi.keycrm.app/v1") as client:
            client.send_order(payload, api_key=key)
    """

    def __init__(
        self,
        api_url: str,
        http_client: httpx.Client | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        """Initialize KeyCRM client.

        Args:
            api_url: KeyCRM API base URL
            http_client: Pre-built client (tests, shared pools); not closed by us
            timeout: Request timeout in seconds
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def __enter__(self) -> KeyCRMClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @staticmethod
    def _headers(api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

    def send_order(self, payload: dict[str, Any], *, api_key: str, debug: bool = False) -> CRMResponse:
        """Create an order in KeyCRM.

        Raises:
            DeliveryError: On transport failure or a status other than 200/201.
        """
        url = f"{self.api_url}/{ORDER_ENDPOINT}"
        body = json.dumps(payload, ensure_ascii=False)

        if debug:
            debug_logger.info("[KEYCRM:DEBUG] Sending request to: %s", url)
            debug_logger.info("[KEYCRM:DEBUG] Request data: %s", body)

        try:
            response = self._client.post(
                url,
                content=body.encode("utf-8"),
                headers=self._headers(api_key),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("[KEYCRM] Request failed: %s", e)
            raise DeliveryError(str(e) or type(e).__name__) from e

        if debug:
            debug_logger.info("[KEYCRM:DEBUG] Response code: %s", response.status_code)
            debug_logger.info("[KEYCRM:DEBUG] Response body: %s", response.text)

        if response.status_code not in SUCCESS_STATUS_CODES:
            raise DeliveryError(
                MESSAGE_API_ERROR.format(status_code=response.status_code, body=response.text),
                status_code=response.status_code,
                body=response.text,
            )

        return CRMResponse.ok(response.status_code, response.text)
