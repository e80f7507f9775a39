"""WooCommerce integration package."""
from src.integrations.woocommerce.client import WooCommerceOrderRepository

__all__ = ["WooCommerceOrderRepository"]
