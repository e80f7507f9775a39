"""
CRM Test Configuration and Fixtures
====================================

Wires OrderSyncService against an in-memory shop and a recorded KeyCRM
endpoint, so the whole trigger -> payload -> POST -> note pipeline runs
without network.
"""

import pytest

from src.integrations.keycrm.client import KeyCRMClient
from src.services.orders.repository import InMemoryOrderRepository
from src.services.sync.orchestrator import OrderSyncService


@pytest.fixture
def make_sync_service(sync_config, recording_transport):
    """Factory: (orders, transport=None, config=None, policy=None) -> (service, repo, transport)."""
    clients = []

    def _make(orders, transport=None, config=None, policy=None):
        transport = transport or recording_transport()
        http_client = transport.client()
        clients.append(http_client)
        repository = InMemoryOrderRepository(orders)
        snapshot = config or sync_config
        service = OrderSyncService(
            repository=repository,
            crm_client=KeyCRMClient(snapshot.api_url, http_client=http_client),
            config_provider=lambda: snapshot,
            policy=policy,
        )
        return service, repository, transport

    yield _make

    for http_client in clients:
        http_client.close()
