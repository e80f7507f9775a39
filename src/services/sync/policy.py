"""Extension points for deciding which orders are pushed to KeyCRM."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from src.services.data.order_model import Order


class SyncPolicy:
    """Overridable sync policy.

    Subclass it, or pass callables:

        SyncPolicy(excluded_statuses=lambda defaults: defaults | {"on-hold"})
        SyncPolicy(should_process=lambda decision, order: decision and order.total > 0)

    The already-synced check runs before the policy and cannot be overridden.
    """

    def __init__(
        self,
        excluded_statuses: Callable[[frozenset[str]], Iterable[str]] | None = None,
        should_process: Callable[[bool, Order], bool] | None = None,
    ):
        self._excluded_statuses = excluded_statuses
        self._should_process = should_process

    def excluded_statuses(self, defaults: frozenset[str]) -> frozenset[str]:
        """Statuses that never sync. Receives the built-in defaults."""
        if self._excluded_statuses is None:
            return defaults
        return frozenset(self._excluded_statuses(defaults))

    def should_process(self, decision: bool, order: Order) -> bool:
        """Final say over an unsynced order; ``decision`` is the status-based default."""
        if self._should_process is None:
            return decision
        return bool(self._should_process(decision, order))
