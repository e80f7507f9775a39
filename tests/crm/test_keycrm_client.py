"""Tests for the KeyCRM HTTP client."""

import json
import logging

import httpx
import pytest

from src.integrations.keycrm.client import KeyCRMClient
from src.services.exceptions import DeliveryError


pytestmark = pytest.mark.crm

API_URL = "https://openapi.keycrm.test/v1"
PAYLOAD = {"source_id": 3, "external_id": 1042, "buyer": {"full_name": "Олена Ковальчук"}}


@pytest.fixture
def make_client(recording_transport):
    clients = []

    def _make(**kwargs):
        transport = recording_transport(**kwargs)
        http_client = transport.client()
        clients.append(http_client)
        return KeyCRMClient(API_URL + "/", http_client=http_client), transport

    yield _make

    for http_client in clients:
        http_client.close()


class TestSendOrder:
    def test_request_shape(self, make_client):
        client, transport = make_client()
        client.send_order(PAYLOAD, api_key="secret-key")

        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{API_URL}/order"
        assert request.headers["Authorization"] == "Bearer secret-key"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Cache-Control"] == "no-cache"
        assert request.headers["Pragma"] == "no-cache"
        assert json.loads(request.content.decode("utf-8")) == PAYLOAD
        assert request.extensions["timeout"] == {"connect": 30.0, "read": 30.0, "write": 30.0, "pool": 30.0}

    def test_non_ascii_sent_unescaped(self, make_client):
        client, transport = make_client()
        client.send_order(PAYLOAD, api_key="k")
        assert "Олена".encode() in transport.requests[0].content

    @pytest.mark.parametrize("status_code", [200, 201])
    def test_success(self, make_client, status_code):
        client, _ = make_client(status_code=status_code, body='{"id": 9}')
        response = client.send_order(PAYLOAD, api_key="k")
        assert response.success
        assert response.status_code == status_code
        assert response.body == '{"id": 9}'

    @pytest.mark.parametrize("status_code", [202, 204, 401, 422, 500])
    def test_other_status_is_failure(self, make_client, status_code):
        client, _ = make_client(status_code=status_code, body="server error")
        with pytest.raises(DeliveryError) as exc_info:
            client.send_order(PAYLOAD, api_key="k")

        error = exc_info.value
        assert error.code == "api_error"
        assert error.status_code == status_code
        assert error.body == "server error"
        assert error.message == f"KeyCRM API error (code {status_code}): server error"

    def test_transport_error(self, make_client):
        client, _ = make_client(exc=httpx.ConnectError("Connection refused"))
        with pytest.raises(DeliveryError) as exc_info:
            client.send_order(PAYLOAD, api_key="k")
        assert "Connection refused" in exc_info.value.message
        assert exc_info.value.status_code is None

    def test_timeout_without_message(self, make_client):
        client, _ = make_client(exc=httpx.ReadTimeout(""))
        with pytest.raises(DeliveryError, match="ReadTimeout"):
            client.send_order(PAYLOAD, api_key="k")


class TestDebugLogging:
    def test_debug_traces_request_and_response(self, make_client, caplog):
        client, _ = make_client(status_code=201, body='{"id": 9}')
        with caplog.at_level(logging.INFO, logger="keycrm.debug"):
            client.send_order(PAYLOAD, api_key="k", debug=True)

        messages = [r.getMessage() for r in caplog.records if r.name == "keycrm.debug"]
        assert messages[0] == f"[KEYCRM:DEBUG] Sending request to: {API_URL}/order"
        assert messages[1].startswith("[KEYCRM:DEBUG] Request data: ")
        assert "Олена" in messages[1]
        assert messages[2] == "[KEYCRM:DEBUG] Response code: 201"
        assert messages[3] == '[KEYCRM:DEBUG] Response body: {"id": 9}'

    def test_debug_off_is_silent(self, make_client, caplog):
        client, _ = make_client()
        with caplog.at_level(logging.INFO, logger="keycrm.debug"):
            client.send_order(PAYLOAD, api_key="k")
        assert not [r for r in caplog.records if r.name == "keycrm.debug"]

    def test_debug_transport_error_logs_request_only(self, make_client, caplog):
        client, _ = make_client(exc=httpx.ConnectError("down"))
        with caplog.at_level(logging.INFO, logger="keycrm.debug"), pytest.raises(DeliveryError):
            client.send_order(PAYLOAD, api_key="k", debug=True)
        messages = [r.getMessage() for r in caplog.records if r.name == "keycrm.debug"]
        assert len(messages) == 2


class TestClientLifecycle:
    def test_injected_client_not_closed(self, recording_transport):
        http_client = recording_transport().client()
        with KeyCRMClient(API_URL, http_client=http_client):
            pass
        assert not http_client.is_closed
        http_client.close()

    def test_owned_client_closed(self):
        client = KeyCRMClient(API_URL)
        client.close()
        assert client._client.is_closed
