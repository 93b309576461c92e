"""Celery tasks for payment webhooks.

The webhook view verifies the signature and enqueues the event; this
task applies it to the matching order.  Failures are logged and never
reach the processor.
"""

from __future__ import annotations

from typing import Any, Dict

import structlog
from celery import shared_task

from modules.payments.dtos import PaymentEventDTO

logger = structlog.get_logger(__name__)


@shared_task(name="payments.reconcile_payment_event")
def reconcile_payment_event(event_data: Dict[str, Any]) -> str | None:
    from modules.orders.factory import build_order_service

    event = PaymentEventDTO(**event_data)
    log = logger.bind(event_id=event.id, event_type=event.type)
    try:
        order = build_order_service().reconcile_payment(event)
    except Exception:
        log.exception("payment.reconcile_failed")
        return None
    return str(order.id) if order else None
