"""Donation router: checkout session creation and donate-page options."""

import asyncio
import logging
import os
from typing import Optional

import stripe
from fastapi import APIRouter, HTTPException, Query, Request, status

from angels.models.donation_models import (
    DONATION_TYPES,
    MAILING_ADDRESS,
    PRESET_AMOUNTS,
    CheckoutRequest,
    CheckoutResponse,
    DonationOptions,
    DonationResult,
    DonationTypeOption,
)
from angels.security import rate_limit_checkout
from angels.services import donation_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["donations"])

SITE_URL = os.getenv("SITE_URL", "")


def _request_origin(request: Request) -> str:
    """Origin the donor came from; Stripe sends them back there."""
    return (
        request.headers.get("origin")
        or SITE_URL
        or str(request.base_url).rstrip("/")
    )


@router.get("/api/v1/donations/options", response_model=DonationOptions)
async def get_donation_options():
    """Preset amounts, program choices and the mail-in address."""
    return DonationOptions(
        preset_amounts=PRESET_AMOUNTS,
        donation_types=[
            DonationTypeOption(value=value, label=label)
            for value, label in DONATION_TYPES.items()
        ],
        mailing_address=MAILING_ADDRESS,
        online_enabled=donation_service.is_configured(),
    )


@router.post("/api/create-checkout-session", response_model=CheckoutResponse)
@rate_limit_checkout()
async def create_checkout_session(request: Request, body: CheckoutRequest):
    """
    Create a Stripe Checkout Session for a one-time or monthly gift.

    Raises:
        HTTPException 400: Amount missing or below $1.
        HTTPException 503: Stripe is not configured.
        HTTPException 500: Stripe rejected the request.
    """
    try:
        session_id = await asyncio.to_thread(
            donation_service.create_checkout_session,
            body.amount,
            body.donationType,
            body.isRecurring,
            _request_origin(request),
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e
    except donation_service.CheckoutNotConfigured as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Online donations are temporarily unavailable. Please give by mail.",
        ) from e
    except stripe.StripeError as e:
        logger.error("Stripe error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Error creating checkout session",
                "details": getattr(e, "user_message", None) or str(e),
            },
        ) from e
    return CheckoutResponse(sessionId=session_id)


@router.get("/api/v1/donations/result", response_model=DonationResult)
async def get_donation_result(
    success: Optional[bool] = Query(None),
    canceled: Optional[bool] = Query(None),
):
    """Banner for the donate page after Stripe redirects back.

    The flags come straight from the redirect URL; nothing is verified
    with Stripe.
    """
    return DonationResult(**donation_service.describe_result(bool(success), bool(canceled)))
