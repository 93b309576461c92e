"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderPaymentUpdated,
    OrderPlaced,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info(
            "order.placed_handled",
            order_id=str(event.aggregate_id),
            order_number=event.data.get("order_number"),
            total=event.data.get("total"),
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.cancelled_handled",
            order_id=str(event.aggregate_id),
            reason=event.data.get("reason"),
            inventory_restored=event.data.get("inventory_restored", False),
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.status_changed_handled",
            order_id=str(event.aggregate_id),
            old_status=event.data.get("old_status"),
            new_status=event.data.get("new_status"),
        )


class OrderPaymentUpdatedHandler(IEventHandler[OrderPaymentUpdated]):
    def handle(self, event: OrderPaymentUpdated) -> None:
        logger.info(
            "order.payment_updated_handled",
            order_id=str(event.aggregate_id),
            payment_status=event.data.get("payment_status"),
        )


order_placed_handler = OrderPlacedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_payment_updated_handler = OrderPaymentUpdatedHandler()

SUBSCRIPTIONS = (
    (OrderPlaced, order_placed_handler),
    (OrderCancelled, order_cancelled_handler),
    (OrderStatusChanged, order_status_changed_handler),
    (OrderPaymentUpdated, order_payment_updated_handler),
)
