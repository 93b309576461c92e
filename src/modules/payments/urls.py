"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import (
    PaymentConfirmView,
    PaymentIntentCreateView,
    PaymentIntentDetailView,
    PaymentWebhookView,
)

urlpatterns = [
    path("payments/intents/", PaymentIntentCreateView.as_view(), name="payment-intents"),
    path(
        "payments/intents/<str:intent_id>/",
        PaymentIntentDetailView.as_view(),
        name="payment-intent-detail",
    ),
    path("payments/confirm/", PaymentConfirmView.as_view(), name="payment-confirm"),
    path("payments/webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
]
