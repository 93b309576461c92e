"""Django ORM implementation of the Order repository.

Writes run inside ``transaction.atomic()`` so an order and its lines
are persisted together.  Status transitions lock the order row with
``select_for_update()``; two concurrent cancellations of the same order
are serialized and the loser sees the already-cancelled status.

Domain events collected on the aggregate are handed to the event bus
with ``publish_on_commit`` so handlers never see rolled-back orders.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.models import Order, OrderLine, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        fields = dict(data)
        lines = fields.pop("lines", [])

        order = Order(**fields)
        order.save()

        OrderLine.objects.bulk_create(
            [
                OrderLine(
                    order=order,
                    product_id=line["product_id"],
                    title=line["title"],
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    subtotal=line["unit_price"] * line["quantity"],
                )
                for line in lines
            ]
        )

        logger.bind(order_id=str(order.id), line_count=len(lines)).info(
            "order.persisted"
        )
        return order

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_fields(self, order: Order, fields: Dict[str, Any]) -> Order:
        for field, value in fields.items():
            setattr(order, field, value)
        order.save(update_fields=list(fields))
        logger.info("order.updated", order_id=str(order.id), fields=sorted(fields))
        self.flush_events(order)
        return order

    def flush_events(self, order: Order) -> None:
        event_bus.publish_on_commit(order.pull_domain_events())

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _with_relations(self) -> QuerySet[Order]:
        return Order.objects.select_related("user").prefetch_related(
            "lines", "status_history"
        )

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Order with lines and history preloaded; ``None`` for unknown or invalid IDs."""
        try:
            return self._with_relations().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any, user_id: Any = None) -> Optional[Order]:
        queryset = Order.objects.select_for_update().prefetch_related("lines")
        if user_id is not None:
            queryset = queryset.filter(user_id=user_id)
        try:
            return queryset.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_transaction_id(self, transaction_id: str) -> Optional[Order]:
        if not transaction_id:
            return None
        return (
            Order.objects.select_for_update()
            .filter(transaction_id=transaction_id)
            .order_by("created_at")
            .first()
        )

    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """Lazy queryset for the API layer's filter and pagination backends."""
        queryset = self._with_relations()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        user_id: Any = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history
