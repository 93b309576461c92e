"""Unit tests for OrderService with mocked dependencies.

``__wrapped__`` skips the ``transaction.atomic`` decorator on service methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest

from modules.catalog.exceptions import InsufficientInventory, ProductNotFound
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import CheckoutDTO, PaymentCheckoutDTO, RefundDTO
from modules.orders.exceptions import (
    AmountMismatch,
    EmptyCart,
    InvalidTransition,
    OrderNotFound,
    OrderNotRefundable,
    PaymentNotCompleted,
)
from modules.orders.services import OrderService
from modules.payments.dtos import ChargeDTO, PaymentEventDTO

pytestmark = pytest.mark.unit

OWNER = {"user_id": "1"}

ADDRESS = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "555-0100",
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


@dataclass
class StubProduct:
    id: UUID
    title: str = "Widget"
    price: Decimal = Decimal("25.00")
    inventory: int = 10
    is_purchasable: bool = True


@dataclass
class StubItem:
    product_id: UUID
    quantity: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class StubCart:
    lines: list = field(default_factory=list)

    @property
    def items(self):
        manager = MagicMock()
        manager.all.return_value = list(self.lines)
        return manager

    def compute_total(self) -> Decimal:
        return sum((item.line_total for item in self.lines), Decimal("0.00"))


@pytest.fixture()
def repos():
    order_repo = MagicMock()
    cart_repo = MagicMock()
    product_repo = MagicMock()
    gateway = MagicMock()
    service = OrderService(order_repo, cart_repo, product_repo, gateway)
    return service, order_repo, cart_repo, product_repo, gateway


def _checkout(service, user_id, dto):
    return OrderService.checkout.__wrapped__(service, user_id, dto)


class TestCheckout:
    def test_empty_cart_raises(self, repos):
        service, order_repo, cart_repo, _, _ = repos
        cart_repo.get_for_update.return_value = StubCart()

        with pytest.raises(EmptyCart):
            _checkout(service, 1, CheckoutDTO(shipping_address=ADDRESS))
        order_repo.create.assert_not_called()

    def test_missing_cart_raises(self, repos):
        service, order_repo, cart_repo, _, _ = repos
        cart_repo.get_for_update.return_value = None

        with pytest.raises(EmptyCart):
            _checkout(service, 1, CheckoutDTO(shipping_address=ADDRESS))
        order_repo.create.assert_not_called()

    def test_unpurchasable_product_aborts_before_persisting(self, repos):
        service, order_repo, cart_repo, product_repo, _ = repos
        product = StubProduct(id=uuid4(), is_purchasable=False)
        cart_repo.get_for_update.return_value = StubCart(
            [StubItem(product.id, 1, product.price)]
        )
        product_repo.get_by_id.return_value = product

        with pytest.raises(ProductNotFound):
            _checkout(service, 1, CheckoutDTO(shipping_address=ADDRESS))
        order_repo.create.assert_not_called()
        product_repo.decrement_inventory.assert_not_called()

    def test_lost_inventory_race_raises_insufficient_inventory(self, repos):
        service, order_repo, cart_repo, product_repo, _ = repos
        product = StubProduct(id=uuid4(), inventory=1)
        cart = StubCart([StubItem(product.id, 1, product.price)])
        cart_repo.get_for_update.return_value = cart
        product_repo.get_by_id.side_effect = [product, StubProduct(id=product.id, inventory=0)]
        product_repo.decrement_inventory.return_value = False

        with pytest.raises(InsufficientInventory) as exc_info:
            _checkout(service, 1, CheckoutDTO(shipping_address=ADDRESS))

        assert exc_info.value.available == 0
        cart_repo.replace_items.assert_not_called()

    def test_totals_and_lines_are_computed_server_side(self, repos):
        service, order_repo, cart_repo, product_repo, _ = repos
        product = StubProduct(id=uuid4(), title="Current title", price=Decimal("30.00"))
        # Line keeps the price captured when it was added to the cart
        cart = StubCart([StubItem(product.id, 2, Decimal("25.00"))])
        cart_repo.get_for_update.return_value = cart
        product_repo.get_by_id.return_value = product
        product_repo.decrement_inventory.return_value = True
        order = MagicMock(id=uuid4(), order_number="ORD-20260101-ABCDEF")
        order_repo.create.return_value = order

        _checkout(service, 7, CheckoutDTO(shipping_address=ADDRESS))

        data = order_repo.create.call_args.args[0]
        assert data["user_id"] == 7
        assert data["subtotal"] == Decimal("50.00")
        assert data["tax"] == Decimal("4.00")
        assert data["shipping"] == Decimal("15.00")
        assert data["total"] == Decimal("69.00")
        assert data["order_status"] == OrderStatus.PENDING
        assert data["payment_status"] == PaymentStatus.PENDING
        assert data["shipping_city"] == "Springfield"
        assert data["lines"] == [
            {
                "product_id": product.id,
                "title": "Current title",
                "quantity": 2,
                "unit_price": Decimal("25.00"),
            }
        ]
        product_repo.decrement_inventory.assert_called_once_with(product.id, 2)
        cart_repo.replace_items.assert_called_once_with(cart, [])
        order_repo.flush_events.assert_called_once_with(order)


class TestCheckoutWithPayment:
    def _dto(self, intent_id="pi_1"):
        return PaymentCheckoutDTO(payment_intent_id=intent_id, shipping_address=ADDRESS)

    def test_unsuccessful_payment_raises(self, repos):
        service, order_repo, _, _, gateway = repos
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1",
            status="requires_payment_method",
            amount=Decimal("69.00"),
            metadata=OWNER,
        )

        with pytest.raises(PaymentNotCompleted) as exc_info:
            service.checkout_with_payment(1, self._dto())

        assert exc_info.value.payment_status == "requires_payment_method"
        order_repo.create.assert_not_called()

    def test_amount_mismatch_raises(self, repos):
        service, order_repo, cart_repo, product_repo, gateway = repos
        product = StubProduct(id=uuid4(), price=Decimal("50.00"))
        cart_repo.get_for_update.return_value = StubCart(
            [StubItem(product.id, 1, product.price)]
        )
        order_repo.get_by_transaction_id.return_value = None
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1", status="succeeded", amount=Decimal("50.00"), metadata=OWNER
        )

        with pytest.raises(AmountMismatch) as exc_info:
            service.checkout_with_payment(1, self._dto())

        assert exc_info.value.charged == Decimal("50.00")
        assert exc_info.value.expected == Decimal("69.00")
        order_repo.create.assert_not_called()
        product_repo.decrement_inventory.assert_not_called()

    def test_intent_used_by_another_user_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1", status="succeeded", amount=Decimal("69.00"), metadata=OWNER
        )
        order_repo.get_by_transaction_id.return_value = MagicMock(id=uuid4(), user_id=2)

        with pytest.raises(InvalidTransition):
            service.checkout_with_payment(1, self._dto())
        order_repo.create.assert_not_called()

    def test_intent_opened_by_another_user_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1", status="succeeded", amount=Decimal("69.00"), metadata={"user_id": "2"}
        )

        with pytest.raises(InvalidTransition, match="does not belong"):
            service.checkout_with_payment(1, self._dto())
        order_repo.get_by_transaction_id.assert_not_called()
        order_repo.create.assert_not_called()

    def test_intent_in_another_currency_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1",
            status="succeeded",
            amount=Decimal("69.00"),
            currency="gbp",
            metadata=OWNER,
        )

        with pytest.raises(InvalidTransition, match="GBP"):
            service.checkout_with_payment(1, self._dto())
        order_repo.create.assert_not_called()


class TestCheckoutBindsTransaction:
    def _dto(self, transaction_id="pi_1"):
        return CheckoutDTO(shipping_address=ADDRESS, transaction_id=transaction_id)

    def test_underpaying_intent_is_rejected(self, repos):
        service, order_repo, cart_repo, product_repo, gateway = repos
        product = StubProduct(id=uuid4(), price=Decimal("50.00"))
        cart_repo.get_for_update.return_value = StubCart(
            [StubItem(product.id, 1, product.price)]
        )
        order_repo.get_by_transaction_id.return_value = None
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1", status="requires_payment_method", amount=Decimal("0.50"), metadata=OWNER
        )

        with pytest.raises(AmountMismatch):
            _checkout(service, 1, self._dto())
        order_repo.create.assert_not_called()
        product_repo.decrement_inventory.assert_not_called()

    def test_intent_of_another_user_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1",
            status="requires_payment_method",
            amount=Decimal("69.00"),
            metadata={"user_id": "2"},
        )

        with pytest.raises(InvalidTransition):
            _checkout(service, 1, self._dto())
        order_repo.create.assert_not_called()

    def test_intent_already_bound_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        gateway.retrieve_charge.return_value = ChargeDTO(
            id="pi_1", status="requires_payment_method", amount=Decimal("69.00"), metadata=OWNER
        )
        order_repo.get_by_transaction_id.return_value = MagicMock(id=uuid4(), user_id=1)

        with pytest.raises(InvalidTransition, match="already been used"):
            _checkout(service, 1, self._dto())
        order_repo.create.assert_not_called()

    def test_no_transaction_skips_the_processor(self, repos):
        service, _, cart_repo, _, gateway = repos
        cart_repo.get_for_update.return_value = StubCart()

        with pytest.raises(EmptyCart):
            _checkout(service, 1, CheckoutDTO(shipping_address=ADDRESS))
        gateway.retrieve_charge.assert_not_called()


class TestReconcilePayment:
    def _reconcile(self, service, event):
        return OrderService.reconcile_payment.__wrapped__(service, event)

    def test_ignored_outcome_does_not_touch_orders(self, repos):
        service, order_repo, _, _, _ = repos
        event = PaymentEventDTO(id="evt_1", type="charge.refunded", charge_id="pi_1")

        assert self._reconcile(service, event) is None
        order_repo.get_by_transaction_id.assert_not_called()

    def test_unknown_order_is_ignored(self, repos):
        service, order_repo, _, _, _ = repos
        order_repo.get_by_transaction_id.return_value = None
        event = PaymentEventDTO(
            id="evt_1", type="payment_intent.succeeded", charge_id="pi_x", outcome="succeeded"
        )

        assert self._reconcile(service, event) is None
        order_repo.update_fields.assert_not_called()

    def test_success_on_shipped_order_is_skipped(self, repos):
        service, order_repo, _, _, _ = repos
        order = MagicMock(id=uuid4(), order_status=OrderStatus.SHIPPED)
        order_repo.get_by_transaction_id.return_value = order
        event = PaymentEventDTO(
            id="evt_1", type="payment_intent.succeeded", charge_id="pi_1", outcome="succeeded"
        )

        assert self._reconcile(service, event) is order
        order_repo.update_fields.assert_not_called()
        order_repo.add_history.assert_not_called()

    def test_success_below_order_total_is_not_applied(self, repos):
        service, order_repo, _, _, _ = repos
        order = MagicMock(id=uuid4(), order_status=OrderStatus.PENDING, total=Decimal("216.00"))
        order_repo.get_by_transaction_id.return_value = order
        event = PaymentEventDTO(
            id="evt_1",
            type="payment_intent.succeeded",
            charge_id="pi_1",
            outcome="succeeded",
            amount=Decimal("0.50"),
            currency="usd",
        )

        assert self._reconcile(service, event) is order
        order_repo.update_fields.assert_not_called()

    def test_success_without_amount_is_not_applied(self, repos):
        service, order_repo, _, _, _ = repos
        order = MagicMock(id=uuid4(), order_status=OrderStatus.PENDING, total=Decimal("216.00"))
        order_repo.get_by_transaction_id.return_value = order
        event = PaymentEventDTO(
            id="evt_1", type="payment_intent.succeeded", charge_id="pi_1", outcome="succeeded"
        )

        assert self._reconcile(service, event) is order
        order_repo.update_fields.assert_not_called()

    def test_success_matching_total_confirms(self, repos):
        service, order_repo, _, _, _ = repos
        order = MagicMock(id=uuid4(), order_status=OrderStatus.PENDING, total=Decimal("216.00"))
        order_repo.get_by_transaction_id.return_value = order
        event = PaymentEventDTO(
            id="evt_1",
            type="payment_intent.succeeded",
            charge_id="pi_1",
            outcome="succeeded",
            amount=Decimal("216.00"),
            currency="USD",
        )

        self._reconcile(service, event)

        order_repo.update_fields.assert_called_once_with(
            order,
            {"payment_status": PaymentStatus.COMPLETED, "order_status": OrderStatus.CONFIRMED},
        )


class TestCancelAndRefund:
    def test_cancel_unknown_order(self, repos):
        service, order_repo, _, _, _ = repos
        order_repo.get_for_update.return_value = None

        with pytest.raises(OrderNotFound):
            OrderService.cancel_order.__wrapped__(service, 1, uuid4())

    def test_cancel_shipped_order_is_rejected(self, repos):
        service, order_repo, _, product_repo, _ = repos
        order_repo.get_for_update.return_value = MagicMock(
            id=uuid4(), order_status=OrderStatus.SHIPPED, is_user_cancellable=False
        )

        with pytest.raises(InvalidTransition):
            OrderService.cancel_order.__wrapped__(service, 1, uuid4())
        product_repo.increment_inventory.assert_not_called()

    def test_refund_without_transaction_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        order_repo.get_for_update.return_value = MagicMock(
            id=uuid4(), transaction_id="", payment_status=PaymentStatus.PENDING
        )

        with pytest.raises(OrderNotRefundable):
            OrderService.refund_order.__wrapped__(service, uuid4(), RefundDTO())
        gateway.refund.assert_not_called()

    def test_refund_of_unsettled_payment_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        order_repo.get_for_update.return_value = MagicMock(
            id=uuid4(), transaction_id="pi_1", payment_status=PaymentStatus.PENDING
        )

        with pytest.raises(OrderNotRefundable, match="Only completed payments"):
            OrderService.refund_order.__wrapped__(service, uuid4(), RefundDTO())
        gateway.refund.assert_not_called()

    def test_refund_twice_is_rejected(self, repos):
        service, order_repo, _, _, gateway = repos
        order_repo.get_for_update.return_value = MagicMock(
            id=uuid4(), transaction_id="pi_1", payment_status=PaymentStatus.REFUNDED
        )

        with pytest.raises(OrderNotRefundable):
            OrderService.refund_order.__wrapped__(service, uuid4(), RefundDTO())
        gateway.refund.assert_not_called()


class TestQueries:
    def test_get_order_hides_other_users_orders(self, repos):
        service, order_repo, _, _, _ = repos
        order_repo.get_by_id.return_value = MagicMock(user_id=2)

        with pytest.raises(OrderNotFound):
            service.get_order(uuid4(), user_id=1)

    def test_get_order_admin_sees_any_order(self, repos):
        service, order_repo, _, _, _ = repos
        order = MagicMock(user_id=2)
        order_repo.get_by_id.return_value = order

        assert service.get_order(uuid4(), user_id=1, is_admin=True) is order

    def test_list_user_orders_filters_by_status(self, repos):
        service, order_repo, _, _, _ = repos
        service.list_user_orders(5, "shipped")
        order_repo.queryset.assert_called_once_with(
            {"user_id": 5, "order_status": "shipped"}
        )
