"""Cart domain exceptions."""

from __future__ import annotations


class CartNotFound(Exception):
    """The user has no cart yet."""


class CartItemNotFound(Exception):
    """The product is not in the user's cart."""
