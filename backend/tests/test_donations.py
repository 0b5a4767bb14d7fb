"""
Tests for Stripe Checkout donations.

Stripe is never called; ``stripe.checkout.Session.create`` is patched and
its keyword arguments inspected.

Usage:
    cd backend && pytest tests/test_donations.py -v
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

CHECKOUT_URL = "/api/create-checkout-session"


@pytest.fixture
def stripe_key(monkeypatch):
    monkeypatch.setattr(
        "angels.services.donation_service.STRIPE_SECRET_KEY", "sk_test_123"
    )


@pytest.fixture
def session_create(stripe_key):
    with patch("stripe.checkout.Session.create") as create:
        create.return_value = SimpleNamespace(id="cs_test_abc")
        yield create


class TestToCents:

    @pytest.mark.parametrize(
        "amount,cents",
        [(25, 2500), (19.99, 1999), (0.375, 38), (1, 100), (0.125, 13)],
    )
    def test_rounds_half_up(self, amount, cents):
        from angels.services.donation_service import to_cents

        assert to_cents(amount) == cents


class TestCheckoutSession:

    def test_one_time_payment(self, api, session_create):
        response = api.post(
            CHECKOUT_URL,
            json={"amount": 50, "donationType": "scholarship", "isRecurring": False},
            headers={"Origin": "https://kellysangelsinc.org"},
        )
        assert response.status_code == 200
        assert response.json() == {"sessionId": "cs_test_abc"}

        kwargs = session_create.call_args.kwargs
        assert kwargs["mode"] == "payment"
        assert kwargs["payment_method_types"] == ["card"]
        assert kwargs["success_url"] == "https://kellysangelsinc.org/donate?success=true"
        assert kwargs["cancel_url"] == "https://kellysangelsinc.org/donate?canceled=true"

        price = kwargs["line_items"][0]["price_data"]
        assert kwargs["line_items"][0]["quantity"] == 1
        assert price["unit_amount"] == 5000
        assert price["currency"] == "usd"
        assert price["product_data"]["name"] == "One-time Donation"
        assert price["product_data"]["description"] == "Donation to Kelly's Angels Inc. (scholarship)"
        assert "recurring" not in price

    def test_recurring_uses_monthly_subscription(self, api, session_create):
        response = api.post(
            CHECKOUT_URL, json={"amount": 25, "isRecurring": True}
        )
        assert response.status_code == 200

        kwargs = session_create.call_args.kwargs
        price = kwargs["line_items"][0]["price_data"]
        assert kwargs["mode"] == "subscription"
        assert price["recurring"] == {"interval": "month"}
        assert price["product_data"]["name"] == "Monthly Donation"
        assert price["product_data"]["description"].endswith("(General)")

    @pytest.mark.parametrize("body", [{"amount": 0.5}, {"amount": 0}, {"donationType": "general"}])
    def test_invalid_amount_rejected_without_calling_stripe(self, api, session_create, body):
        response = api.post(CHECKOUT_URL, json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Valid amount is required"
        session_create.assert_not_called()

    def test_unconfigured_returns_503(self, api, monkeypatch):
        monkeypatch.setattr("angels.services.donation_service.STRIPE_SECRET_KEY", "")
        with patch("stripe.checkout.Session.create") as create:
            response = api.post(CHECKOUT_URL, json={"amount": 50})
        assert response.status_code == 503
        create.assert_not_called()

    def test_stripe_error_returns_500_with_details(self, api, stripe_key):
        with patch(
            "stripe.checkout.Session.create",
            side_effect=stripe.StripeError("Your card was declined"),
        ):
            response = api.post(CHECKOUT_URL, json={"amount": 50})
        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "Error creating checkout session"
        assert "declined" in detail["details"]

    def test_get_not_allowed(self, api):
        assert api.get(CHECKOUT_URL).status_code == 405


class TestDonatePage:

    def test_options(self, api, stripe_key):
        body = api.get("/api/v1/donations/options").json()
        assert body["preset_amounts"] == [25, 50, 100, 250, 500]
        assert {"value": "general", "label": "General"} in body["donation_types"]
        assert body["mailing_address"]["street"] == "P.O. Box 2034"
        assert body["online_enabled"] is True

    def test_options_offline_when_unconfigured(self, api):
        assert api.get("/api/v1/donations/options").json()["online_enabled"] is False

    @pytest.mark.parametrize(
        "params,expected",
        [({"success": "true"}, "success"), ({"canceled": "true"}, "canceled"), ({}, "none")],
    )
    def test_result_banner(self, api, params, expected):
        body = api.get("/api/v1/donations/result", params=params).json()
        assert body["status"] == expected
