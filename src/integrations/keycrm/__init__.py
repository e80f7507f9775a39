"""KeyCRM integration package."""
from src.integrations.keycrm.base import CRMResponse
from src.integrations.keycrm.client import KeyCRMClient

__all__ = ["CRMResponse", "KeyCRMClient"]
