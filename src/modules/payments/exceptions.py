"""Payment domain exceptions."""

from __future__ import annotations


class UpstreamFailure(Exception):
    """The payment processor rejected or failed a request.

    The message is the processor's user-facing text; API keys never end
    up in it.
    """


class WebhookSignatureError(Exception):
    """A webhook payload failed signature verification or could not be parsed."""


class PaymentAccessDenied(Exception):
    """The payment intent belongs to another user."""
