"""Order service layer (Use Cases).

Orchestrates checkout, payment reconciliation, cancellation and the
admin back-office operations.  Every write runs in one transaction; the
service defines the unit-of-work boundary.

Business rules enforced:
- Checkout re-validates every cart line against fresh product state
  and recomputes totals server-side.
- Inventory is taken with the repository's conditional decrement, so a
  line that lost a race rolls back the whole checkout (order, earlier
  decrements and the cart clear).
- Shoppers cancel only their own orders, only from pending/confirmed,
  and cancellation returns every line's units to inventory.
- Payment failures and refunds cancel without returning inventory.
- Every status change is written to the order's history.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import structlog
from django.conf import settings
from django.db import transaction

from modules.catalog.exceptions import InsufficientInventory
from modules.catalog.rules import ensure_purchasable
from modules.orders.constants import (
    AMOUNT_TOLERANCE,
    PAYMENT_CONFIRMABLE_STATES,
    PAYMENT_FAILABLE_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.events import (
    OrderCancelled,
    OrderPaymentUpdated,
    OrderPlaced,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    AmountMismatch,
    EmptyCart,
    InvalidTransition,
    OrderNotFound,
    OrderNotRefundable,
    PaymentNotCompleted,
)
from modules.orders.pricing import compute_totals

if TYPE_CHECKING:
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.orders.dtos import (
        CheckoutDTO,
        PaymentCheckoutDTO,
        RefundDTO,
        ShippingAddressDTO,
        UpdateStatusDTO,
    )
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import ChargeDTO, PaymentEventDTO, RefundResultDTO
    from modules.payments.gateway import IPaymentGateway

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the payment gateway via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
        payment_gateway: Optional[IPaymentGateway] = None,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository
        self._product_repo = product_repository
        self._gateway = payment_gateway

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @transaction.atomic
    def checkout(self, user_id: Any, dto: CheckoutDTO) -> Order:
        """Turn the user's cart into a ``pending`` order.

        A ``transaction_id`` binds a payment intent the webhook will settle
        later.  The intent must belong to the user, be in the store currency,
        match the recomputed total and not already be bound to an order.

        Raises:
            EmptyCart: no cart, or a cart without items.
            ProductNotFound: a line's product is no longer purchasable.
            InsufficientInventory: a line asks for more than is available.
            InvalidTransition: the intent cannot be bound to this order.
            AmountMismatch: the intent amount differs from the recomputed total.
            UpstreamFailure: the processor could not be reached.
        """
        charged_amount = None
        if dto.transaction_id:
            log = logger.bind(user_id=str(user_id), charge_id=dto.transaction_id)
            charge = self._verified_charge(user_id, dto.transaction_id, log)
            if self._order_repo.get_by_transaction_id(charge.id) is not None:
                log.warning("order.payment_intent_reused")
                raise InvalidTransition("Payment has already been used for an order.")
            charged_amount = charge.amount

        return self._place_order(
            user_id,
            dto.shipping_address,
            payment_method=dto.payment_method,
            transaction_id=dto.transaction_id,
            notes=dto.notes,
            order_status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            charged_amount=charged_amount,
        )

    def _verified_charge(self, user_id: Any, charge_id: str, log) -> ChargeDTO:
        """Retrieve an intent opened by *user_id* in the store currency."""
        charge = self._gateway.retrieve_charge(charge_id)
        if charge.metadata.get("user_id") != str(user_id):
            log.warning("order.payment_intent_not_owned")
            raise InvalidTransition("Payment intent does not belong to this account.")
        if charge.currency.lower() != settings.PAYMENT_CURRENCY.lower():
            log.warning("order.payment_currency_mismatch", currency=charge.currency)
            raise InvalidTransition(
                f"Payment currency {charge.currency.upper()} does not match "
                f"store currency {settings.PAYMENT_CURRENCY.upper()}."
            )
        return charge

    def checkout_with_payment(self, user_id: Any, dto: PaymentCheckoutDTO) -> Order:
        """Checkout gated on a succeeded payment intent; the order starts ``confirmed``.

        Confirming the same intent twice returns the order it already paid for.

        Raises:
            UpstreamFailure: the processor could not be reached.
            InvalidTransition: the intent belongs to another user, is in
                another currency, or already paid for someone else's order.
            PaymentNotCompleted: the intent has not succeeded.
            AmountMismatch: the charged amount differs from the recomputed total.
            EmptyCart / ProductNotFound / InsufficientInventory: as ``checkout``.
        """
        log = logger.bind(user_id=str(user_id), charge_id=dto.payment_intent_id)
        charge = self._verified_charge(user_id, dto.payment_intent_id, log)
        if not charge.succeeded:
            log.warning("order.payment_not_completed", payment_status=charge.status)
            raise PaymentNotCompleted(charge.status)

        with transaction.atomic():
            existing = self._order_repo.get_by_transaction_id(charge.id)
            if existing is not None:
                if existing.user_id != user_id:
                    log.warning("order.payment_intent_reused", order_id=str(existing.id))
                    raise InvalidTransition("Payment has already been used for an order.")
                log.info("order.payment_checkout_replayed", order_id=str(existing.id))
                return self._order_repo.get_by_id(existing.id)

            return self._place_order(
                user_id,
                dto.shipping_address,
                payment_method=PaymentMethod.CARD,
                transaction_id=charge.id,
                notes=dto.notes,
                order_status=OrderStatus.CONFIRMED,
                payment_status=PaymentStatus.COMPLETED,
                charged_amount=charge.amount,
            )

    def _place_order(
        self,
        user_id: Any,
        address: ShippingAddressDTO,
        *,
        payment_method: str,
        transaction_id: str,
        notes: str,
        order_status: str,
        payment_status: str,
        charged_amount: Optional[Decimal] = None,
    ) -> Order:
        log = logger.bind(user_id=str(user_id))
        log.info("order.checkout_started", order_status=order_status)

        # 1. Lock the cart
        cart = self._cart_repo.get_for_update(user_id)
        items = sorted(cart.items.all(), key=lambda i: str(i.product_id)) if cart else []
        if not items:
            log.info("order.checkout_empty_cart")
            raise EmptyCart("Cart is empty.")

        # 2. Totals from the cart lines
        totals = compute_totals(cart.compute_total())
        if charged_amount is not None and abs(
            charged_amount - totals.total
        ) > Decimal(AMOUNT_TOLERANCE):
            log.warning(
                "order.amount_mismatch",
                charged=str(charged_amount),
                expected=str(totals.total),
            )
            raise AmountMismatch(charged=charged_amount, expected=totals.total)

        # 3. Re-verify every line against current product state
        lines: List[Dict[str, Any]] = []
        for item in items:
            product = ensure_purchasable(
                self._product_repo.get_by_id(item.product_id), item.quantity
            )
            lines.append(
                {
                    "product_id": product.id,
                    "title": product.title,
                    "quantity": item.quantity,
                    "unit_price": item.price,
                }
            )

        # 4. Persist the order
        order = self._order_repo.create(
            {
                "user_id": user_id,
                **address.as_order_fields(),
                "payment_method": payment_method,
                "transaction_id": transaction_id,
                "payment_status": payment_status,
                "order_status": order_status,
                "subtotal": totals.subtotal,
                "tax": totals.tax,
                "shipping": totals.shipping,
                "total": totals.total,
                "notes": notes,
                "lines": lines,
            }
        )
        log = log.bind(order_id=str(order.id), order_number=order.order_number)

        # 5. Take inventory; a lost race aborts the whole transaction
        for line in lines:
            if not self._product_repo.decrement_inventory(
                line["product_id"], line["quantity"]
            ):
                current = self._product_repo.get_by_id(line["product_id"])
                log.warning("order.inventory_race_lost", product_id=str(line["product_id"]))
                raise InsufficientInventory(
                    product_id=line["product_id"],
                    title=line["title"],
                    requested=line["quantity"],
                    available=current.inventory if current else 0,
                )

        # 6. Empty the cart (row kept)
        self._cart_repo.replace_items(cart, [])

        self._order_repo.add_history(
            order_id=order.id,
            new_status=order_status,
            user_id=user_id,
            notes="Order placed",
        )
        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                data={
                    "order_number": order.order_number,
                    "total": str(totals.total),
                    "order_status": order_status,
                },
            )
        )
        self._order_repo.flush_events(order)

        log.info("order.checkout_completed", total=str(totals.total))
        return self._order_repo.get_by_id(order.id)

    # ------------------------------------------------------------------
    # Payment reconciliation
    # ------------------------------------------------------------------

    @transaction.atomic
    def reconcile_payment(self, event: PaymentEventDTO) -> Optional[Order]:
        """Apply a verified processor event to the order carrying its charge id.

        Unknown event types, unknown orders and orders past the applicable
        states are logged and left untouched.
        """
        log = logger.bind(
            event_id=event.id, event_type=event.type, charge_id=event.charge_id
        )
        if event.outcome not in {"succeeded", "failed"}:
            log.info("payment.event_ignored")
            return None

        order = self._order_repo.get_by_transaction_id(event.charge_id)
        if order is None:
            log.info("payment.order_not_found")
            return None
        log = log.bind(order_id=str(order.id), current_status=order.order_status)

        if event.outcome == "succeeded":
            if order.order_status not in PAYMENT_CONFIRMABLE_STATES:
                log.info("payment.reconcile_skipped")
                return order
            if not self._settles(event, order):
                log.warning(
                    "payment.reconcile_amount_mismatch",
                    charged=str(event.amount),
                    currency=event.currency,
                    expected=str(order.total),
                )
                return order
            payment_status, new_status = PaymentStatus.COMPLETED, OrderStatus.CONFIRMED
        else:
            if order.order_status not in PAYMENT_FAILABLE_STATES:
                log.info("payment.reconcile_skipped")
                return order
            payment_status, new_status = PaymentStatus.FAILED, OrderStatus.CANCELLED
            order.add_domain_event(
                OrderCancelled(
                    aggregate_id=order.id,
                    data={"reason": "payment_failed", "inventory_restored": False},
                )
            )

        old_status = order.order_status
        order.add_domain_event(
            OrderPaymentUpdated(
                aggregate_id=order.id, data={"payment_status": payment_status}
            )
        )
        self._order_repo.update_fields(
            order, {"payment_status": payment_status, "order_status": new_status}
        )
        self._order_repo.add_history(
            order_id=order.id,
            new_status=new_status,
            old_status=old_status,
            notes=f"Payment {event.outcome} ({event.type})",
        )
        log.info("payment.reconciled", payment_status=payment_status, new_status=new_status)
        return order

    @staticmethod
    def _settles(event: PaymentEventDTO, order: Order) -> bool:
        """True when the event paid the order total in the store currency."""
        if event.amount is None or event.currency is None:
            return False
        if event.currency.lower() != settings.PAYMENT_CURRENCY.lower():
            return False
        return abs(event.amount - order.total) <= Decimal(AMOUNT_TOLERANCE)

    # ------------------------------------------------------------------
    # Cancellation / admin transitions
    # ------------------------------------------------------------------

    @transaction.atomic
    def cancel_order(self, user_id: Any, order_id: Any, notes: str = "") -> Order:
        """Cancel one of the user's own orders and return its units to inventory.

        The order row is locked first, so two concurrent cancels restore
        inventory once.

        Raises:
            OrderNotFound: no such order for this user.
            InvalidTransition: the order is past pending/confirmed.
        """
        order = self._order_repo.get_for_update(order_id, user_id=user_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order.id), current_status=order.order_status)
        if not order.is_user_cancellable:
            log.warning("order.cancel_not_allowed")
            raise InvalidTransition(
                f"Order cannot be cancelled in its current status ({order.order_status})."
            )

        for line in sorted(order.lines.all(), key=lambda line: str(line.product_id)):
            self._product_repo.increment_inventory(line.product_id, line.quantity)

        old_status = order.order_status
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                data={"reason": "user", "inventory_restored": True},
            )
        )
        self._order_repo.update_fields(order, {"order_status": OrderStatus.CANCELLED})
        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.CANCELLED,
            old_status=old_status,
            user_id=user_id,
            notes=notes or "Cancelled by customer",
        )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(order.id)

    @transaction.atomic
    def update_status(
        self, order_id: Any, dto: UpdateStatusDTO, actor_id: Any = None
    ) -> Order:
        """Admin: set any status and optionally a tracking number; inventory untouched.

        Raises:
            OrderNotFound: the order does not exist.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        old_status = order.order_status
        fields: Dict[str, Any] = {"order_status": dto.status}
        if dto.tracking_number is not None:
            fields["tracking_number"] = dto.tracking_number

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                data={"old_status": old_status, "new_status": str(dto.status)},
            )
        )
        self._order_repo.update_fields(order, fields)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=dto.status,
            old_status=old_status,
            user_id=actor_id,
            notes=dto.notes,
        )

        logger.info(
            "order.status_updated",
            order_id=str(order.id),
            old_status=old_status,
            new_status=str(dto.status),
        )
        return self._order_repo.get_by_id(order.id)

    @transaction.atomic
    def refund_order(
        self, order_id: Any, dto: RefundDTO, actor_id: Any = None
    ) -> Tuple[Order, RefundResultDTO]:
        """Admin: refund the order's payment and cancel it; inventory untouched.

        Raises:
            OrderNotFound: the order does not exist.
            OrderNotRefundable: no transaction id, or the payment is not completed.
            UpstreamFailure: the processor rejected the refund.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if not order.transaction_id:
            raise OrderNotRefundable("Order has no payment transaction to refund.")
        if order.payment_status == PaymentStatus.REFUNDED:
            raise OrderNotRefundable("Order has already been refunded.")
        if order.payment_status != PaymentStatus.COMPLETED:
            raise OrderNotRefundable(
                f"Only completed payments can be refunded ({order.payment_status})."
            )

        log = logger.bind(order_id=str(order.id), charge_id=order.transaction_id)
        result = self._gateway.refund(order.transaction_id, dto.amount, dto.reason)

        old_status = order.order_status
        order.add_domain_event(
            OrderPaymentUpdated(
                aggregate_id=order.id, data={"payment_status": PaymentStatus.REFUNDED}
            )
        )
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                data={"reason": "refund", "inventory_restored": False},
            )
        )
        self._order_repo.update_fields(
            order,
            {
                "payment_status": PaymentStatus.REFUNDED,
                "order_status": OrderStatus.CANCELLED,
            },
        )
        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.CANCELLED,
            old_status=old_status,
            user_id=actor_id,
            notes=f"Refunded {result.amount} ({result.reason or 'no reason given'})",
        )

        log.info("order.refunded", refund_id=result.id, amount=str(result.amount))
        return self._order_repo.get_by_id(order.id), result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, user_id: Any = None, is_admin: bool = False) -> Order:
        """Owner or admin view of one order; anything else reads as not found."""
        order = self._order_repo.get_by_id(order_id)
        if not order or (not is_admin and order.user_id != user_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_user_orders(self, user_id: Any, status: Optional[str] = None):
        filters: Dict[str, Any] = {"user_id": user_id}
        if status:
            filters["order_status"] = status
        return self._order_repo.queryset(filters)

    def list_orders(self, filters: Optional[Dict[str, Any]] = None):
        return self._order_repo.queryset(filters)
