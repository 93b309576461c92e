"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderLine, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ShippingAddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=32)
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zip_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)


class CheckoutSerializer(serializers.Serializer):
    shipping_address = ShippingAddressSerializer()
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.CARD
    )
    transaction_id = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentCheckoutSerializer(serializers.Serializer):
    payment_intent_id = serializers.CharField(max_length=255)
    shipping_address = ShippingAddressSerializer()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_number = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
    )
    reason = serializers.ChoiceField(
        choices=["duplicate", "fraudulent", "requested_by_customer"],
        required=False,
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderLine
        fields = ["id", "product_id", "title", "quantity", "unit_price", "subtotal"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["id", "old_status", "new_status", "user_id", "notes", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order with lines, address, payment info and history."""

    lines = OrderLineSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    shipping_address = serializers.DictField(read_only=True)
    payment_info = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "order_status",
            "lines",
            "shipping_address",
            "payment_info",
            "subtotal",
            "tax",
            "shipping",
            "total",
            "tracking_number",
            "notes",
            "status_history",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_payment_info(self, order: Order) -> dict:
        return {
            "method": order.payment_method,
            "transaction_id": order.transaction_id,
            "payment_status": order.payment_status,
        }


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order listings."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "order_status",
            "payment_status",
            "total",
            "item_count",
            "tracking_number",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, order: Order) -> int:
        return sum(line.quantity for line in order.lines.all())
