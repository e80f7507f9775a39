"""Order lifecycle host port.

The sync service never talks to the shop directly; it goes through an
``OrderRepository``. ``WooCommerceOrderRepository`` is the production
implementation, ``InMemoryOrderRepository`` backs embedding and tests.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from src.services.data.order_model import Order


logger = logging.getLogger(__name__)


@runtime_checkable
class OrderRepository(Protocol):
    def get(self, order_id: int) -> Order | None:
        """Load an order; None when it cannot be loaded."""
        ...

    def add_note(self, order: Order, note: str) -> None:
        """Append a private note to the order (persisted immediately)."""
        ...

    def save(self, order: Order) -> None:
        """Persist changed order metadata."""
        ...


class InMemoryOrderRepository:
    """Dict-backed repository."""

    def __init__(self, orders: list[Order] | None = None):
        self._orders: dict[int, Order] = {order.id: order for order in orders or []}
        self.saves: list[int] = []

    def put(self, order: Order) -> None:
        self._orders[order.id] = order

    def get(self, order_id: int) -> Order | None:
        return self._orders.get(order_id)

    def add_note(self, order: Order, note: str) -> None:
        order.notes.append(note)
        logger.debug("Note added to order %s: %s", order.id, note)

    def save(self, order: Order) -> None:
        self._orders[order.id] = order
        order.mark_clean()
        self.saves.append(order.id)
