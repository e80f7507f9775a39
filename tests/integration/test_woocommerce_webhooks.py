"""
Integration tests for the WooCommerce webhook endpoints.

The sync service is injected with an in-memory shop and a recorded KeyCRM
endpoint; settings are overridden to control the webhook secret.
"""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.conf.config import Settings, get_settings
from src.integrations.keycrm.client import KeyCRMClient
from src.server.main import create_app
from src.server.routers.woocommerce import SIGNATURE_HEADER, compute_signature, verify_signature
from src.services.orders.repository import InMemoryOrderRepository
from src.services.sync.orchestrator import OrderSyncService, SyncResult, SyncStatus


SECRET = "wc-webhook-secret"


def signed(body: bytes, secret: str = SECRET) -> dict[str, str]:
    return {SIGNATURE_HEADER: compute_signature(secret, body), "Content-Type": "application/json"}


@pytest.fixture
def webhook_env(order_factory, sync_config, recording_transport):
    """Yield (client, repository, transport) for an app with a signed webhook secret."""
    order = order_factory()
    repository = InMemoryOrderRepository([order])
    transport = recording_transport()
    http_client = transport.client()
    service = OrderSyncService(
        repository=repository,
        crm_client=KeyCRMClient(sync_config.api_url, http_client=http_client),
        config_provider=lambda: sync_config,
    )

    app = create_app(sync_service=service)
    app.dependency_overrides[get_settings] = lambda: Settings(
        _env_file=None,
        KEYCRM_API_KEY="test_api_key_123",
        WOOCOMMERCE_WEBHOOK_SECRET=SECRET,
    )

    with TestClient(app) as client:
        yield client, repository, transport

    http_client.close()


class TestSignature:
    def test_verify_signature(self):
        body = b'{"id": 1}'
        assert verify_signature(SECRET, body, compute_signature(SECRET, body))
        assert not verify_signature(SECRET, body, compute_signature("other", body))
        assert not verify_signature(SECRET, body, None)
        assert verify_signature("", body, None)

    def test_bad_signature_rejected(self, webhook_env):
        client, _, transport = webhook_env
        body = json.dumps({"id": 1042, "status": "processing"}).encode()

        response = client.post(
            "/webhooks/woocommerce/order-created",
            content=body,
            headers=signed(body, secret="wrong"),
        )

        assert response.status_code == 401
        assert transport.requests == []

    def test_missing_signature_rejected(self, webhook_env):
        client, _, _ = webhook_env
        response = client.post("/webhooks/woocommerce/order-created", json={"id": 1042})
        assert response.status_code == 401


class TestOrderWebhooks:
    def test_order_created_syncs(self, webhook_env):
        client, repository, transport = webhook_env
        body = json.dumps({"id": 1042, "status": "processing"}).encode()

        response = client.post("/webhooks/woocommerce/order-created", content=body, headers=signed(body))

        assert response.status_code == 200
        assert response.json() == {"status": "synced", "order_id": 1042}
        assert len(transport.requests) == 1
        assert repository.get(1042).is_synced

    def test_order_updated_after_sync_is_skipped(self, webhook_env):
        client, _, transport = webhook_env
        body = json.dumps({"id": 1042, "status": "completed"}).encode()

        client.post("/webhooks/woocommerce/order-created", content=body, headers=signed(body))
        response = client.post("/webhooks/woocommerce/order-updated", content=body, headers=signed(body))

        assert response.json() == {"status": "skipped", "order_id": 1042}
        assert len(transport.requests) == 1

    def test_unknown_order(self, webhook_env):
        client, _, _ = webhook_env
        body = json.dumps({"id": 5, "status": "processing"}).encode()
        response = client.post("/webhooks/woocommerce/order-updated", content=body, headers=signed(body))
        assert response.json() == {"status": "missing", "order_id": 5}

    def test_ping_is_ignored(self, webhook_env):
        client, _, transport = webhook_env
        body = b"webhook_id=17"
        response = client.post("/webhooks/woocommerce/order-created", content=body, headers=signed(body))
        assert response.status_code == 200
        assert response.json() == {"status": "ignored"}
        assert transport.requests == []

    def test_failure_reported_in_body(self, webhook_env):
        client, repository, transport = webhook_env
        transport.status_code = 500
        transport.body = "server error"
        body = json.dumps({"id": 1042}).encode()

        response = client.post("/webhooks/woocommerce/order-created", content=body, headers=signed(body))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failed"
        assert data["error"]["code"] == "api_error"
        assert "500" in repository.get(1042).notes[0]


class TestWithMockedService:
    def test_order_updated_passes_new_status(self):
        service = MagicMock(spec=OrderSyncService)
        service.on_status_changed.return_value = SyncResult(status=SyncStatus.SKIPPED, order_id=3)
        app = create_app(sync_service=service)
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, WOOCOMMERCE_WEBHOOK_SECRET="")

        with TestClient(app) as client:
            response = client.post("/webhooks/woocommerce/order-updated", json={"id": 3, "status": "on-hold"})

        assert response.json() == {"status": "skipped", "order_id": 3}
        service.on_status_changed.assert_called_once_with(3, None, "on-hold")


class TestHealth:
    def test_health(self, webhook_env):
        client, _, _ = webhook_env
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["keycrm_configured"] is True
