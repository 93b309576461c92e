"""Payment request serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.payments.dtos import MINIMUM_CHARGE, SUPPORTED_CURRENCIES


class CreateIntentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=MINIMUM_CHARGE,
        error_messages={"min_value": "Amount must be at least $0.50."},
    )
    currency = serializers.ChoiceField(choices=SUPPORTED_CURRENCIES, default="usd")


class ChargeSerializer(serializers.Serializer):
    id = serializers.CharField()
    status = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    created = serializers.IntegerField(allow_null=True)
