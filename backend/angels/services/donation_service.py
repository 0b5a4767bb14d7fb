"""Stripe Checkout session creation for online donations.

The donate page posts an amount, a donation type and a recurring flag;
the returned session id is handed to Stripe.js, which redirects the
donor to the hosted checkout page. Payment outcome is not verified
server-side; the page reads the ``success`` / ``canceled`` query flag on
return.
"""

import logging
import math
import os
from typing import Optional

import stripe
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
CURRENCY = "usd"
MIN_DONATION = 1
ORGANIZATION_NAME = "Kelly's Angels Inc."


class CheckoutNotConfigured(RuntimeError):
    """Raised when no Stripe secret key is configured."""


def is_configured() -> bool:
    return bool(STRIPE_SECRET_KEY)


def to_cents(amount: float) -> int:
    """Dollars to integer cents, rounding half up."""
    return int(math.floor(amount * 100 + 0.5))


def build_line_item(amount: float, donation_type: Optional[str], is_recurring: bool) -> dict:
    """One price_data line item; recurring gifts bill monthly."""
    label = donation_type or "General"
    price_data = {
        "currency": CURRENCY,
        "product_data": {
            "name": "Monthly Donation" if is_recurring else "One-time Donation",
            "description": f"Donation to {ORGANIZATION_NAME} ({label})",
        },
        "unit_amount": to_cents(amount),
    }
    if is_recurring:
        price_data["recurring"] = {"interval": "month"}
    return {"price_data": price_data, "quantity": 1}


def create_checkout_session(
    amount: float,
    donation_type: Optional[str],
    is_recurring: bool,
    origin: str,
) -> str:
    """Create a Checkout Session and return its id.

    Args:
        amount: Donation in dollars; must be at least MIN_DONATION.
        donation_type: Program the gift supports, or None for general.
        is_recurring: True for a monthly subscription.
        origin: Site origin used to build the return URLs.

    Raises:
        ValueError: If the amount is missing or below the minimum.
        CheckoutNotConfigured: If STRIPE_SECRET_KEY is unset.
        stripe.StripeError: If Stripe rejects the request.
    """
    if amount is None or amount < MIN_DONATION:
        raise ValueError("Valid amount is required")
    if not is_configured():
        raise CheckoutNotConfigured("Online donations are not configured")

    stripe.api_key = STRIPE_SECRET_KEY
    origin = origin.rstrip("/")
    session = stripe.checkout.Session.create(
        payment_method_types=["card"],
        line_items=[build_line_item(amount, donation_type, is_recurring)],
        mode="subscription" if is_recurring else "payment",
        success_url=f"{origin}/donate?success=true",
        cancel_url=f"{origin}/donate?canceled=true",
    )
    logger.info(
        "Checkout session created: mode=%s amount_cents=%d type=%s",
        "subscription" if is_recurring else "payment",
        to_cents(amount),
        donation_type or "general",
    )
    return session.id


def describe_result(success: bool, canceled: bool) -> dict:
    """Banner text for the donate page after Stripe redirects back."""
    if success:
        return {
            "status": "success",
            "message": (
                "Thank you for your generous donation! "
                "You will receive a receipt by email."
            ),
        }
    if canceled:
        return {
            "status": "canceled",
            "message": "Your donation was canceled. No charge was made.",
        }
    return {"status": "none", "message": ""}
