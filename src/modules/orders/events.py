"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when checkout turns a cart into an order."""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled (by its owner, an admin or a payment failure)."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an admin moves an order to another status."""


@dataclass(frozen=True)
class OrderPaymentUpdated(DomainEvent):
    """Raised when the payment status changes (webhook or refund)."""
