"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the Order aggregate
needs: atomic creation with lines, locked reads for transitions,
lookup by payment transaction id, partial updates and the status
history trail.

The Service Layer depends exclusively on this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its lines atomically.

        ``data`` holds the order's field values plus ``lines``: a list of
        dicts with ``product_id``, ``title``, ``quantity``, ``unit_price``.
        """

    @abstractmethod
    def get_for_update(self, id: Any, user_id: Any = None) -> Optional[Order]:
        """Locked order, optionally restricted to *user_id*'s orders."""

    @abstractmethod
    def get_by_transaction_id(self, transaction_id: str) -> Optional[Order]:
        """Locked order carrying the payment *transaction_id*."""

    @abstractmethod
    def update_fields(self, order: Order, fields: Dict[str, Any]) -> Order:
        """Write *fields* on *order* and publish its pending domain events."""

    @abstractmethod
    def flush_events(self, order: Order) -> None:
        """Publish the order's pending domain events after commit."""

    @abstractmethod
    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Order]:
        """Lazy, further filterable collection of orders for paginated listings."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        user_id: Any = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
