"""Cart request serializers.

Responses are rendered from ``CartOutputDTO``; these only validate input.
"""

from __future__ import annotations

from rest_framework import serializers


class AddCartItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)
