"""Order -> KeyCRM sync pipeline."""
from src.services.sync.mapping import MappingTable, SyncConfig
from src.services.sync.orchestrator import OrderSyncService, SyncResult, SyncStatus
from src.services.sync.policy import SyncPolicy

__all__ = [
    "MappingTable",
    "OrderSyncService",
    "SyncConfig",
    "SyncPolicy",
    "SyncResult",
    "SyncStatus",
]
