"""
Module 'checkout' (feature-first): point d'entrée public.
Réunit calculs panier -> Stripe, gateway Stripe, repository commandes, services et requester.
"""

from .line_items import (
    to_minor_units,
    compute_subtotal,
    compute_total,
    compute_tax,
    to_line_items,
    make_metadata,
    items_metadata,
    cart_fingerprint,
)
from .stripe_client import PaymentGateway, get_payment_gateway
from .repository import find_order_by_session, insert_order, insert_order_items, delete_order, mark_order_paid
from .service import create_checkout_session, record_order, record_payment
from .requester import CheckoutRequester, get_checkout_requester
from .errors import (
    CheckoutError,
    RequestError,
    MalformedResponseError,
    EmptyCartError,
    IncompleteProfileError,
)

__all__ = [
    # line items
    "to_minor_units",
    "compute_subtotal",
    "compute_total",
    "compute_tax",
    "to_line_items",
    "make_metadata",
    "items_metadata",
    "cart_fingerprint",
    # stripe
    "PaymentGateway",
    "get_payment_gateway",
    # repository
    "find_order_by_session",
    "insert_order",
    "insert_order_items",
    "delete_order",
    "mark_order_paid",
    # services
    "create_checkout_session",
    "record_order",
    "record_payment",
    # requester
    "CheckoutRequester",
    "get_checkout_requester",
    # errors
    "CheckoutError",
    "RequestError",
    "MalformedResponseError",
    "EmptyCartError",
    "IncompleteProfileError",
]
