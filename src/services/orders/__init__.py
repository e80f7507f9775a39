from .repository import InMemoryOrderRepository, OrderRepository

__all__ = [
    "InMemoryOrderRepository",
    "OrderRepository",
]
