"""
Hosted checkout sessions for placed orders.
"""
import logging
from typing import Any, Dict

import stripe

from config import Settings

logger = logging.getLogger(__name__)


class PaymentsUnavailable(Exception):
    pass


def to_minor_units(amount: float) -> int:
    return int(round(float(amount) * 100))


def create_checkout_session(order: Dict[str, Any], settings: Settings, cart_id: str) -> str:
    """Create a one-line-item card checkout for ``order`` and return its URL.

    Price and product name are taken from the stored order.
    """
    if not settings.stripe_secret:
        raise PaymentsUnavailable("Payments are not configured")
    stripe.api_key = settings.stripe_secret
    try:
        session = stripe.checkout.Session.create(
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": settings.stripe_currency,
                        "unit_amount": to_minor_units(order.get("totalPrice", 0)),
                        "product_data": {"name": order.get("productName") or "Garment order"},
                    },
                    "quantity": 1,
                }
            ],
            customer_email=order.get("userEmail"),
            mode="payment",
            success_url=f"{settings.site_domain}/dashboard/payment-success?cartId={cart_id}",
            cancel_url=f"{settings.site_domain}/dashboard/payment-cancelled",
        )
    except stripe.StripeError as e:
        logger.exception("Checkout session creation failed for cart %s", cart_id)
        raise PaymentsUnavailable(str(e)) from e
    logger.info("Checkout session %s created for cart %s", session.id, cart_id)
    return session.url
