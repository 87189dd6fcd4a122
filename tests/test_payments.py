"""
Tests for the Stripe payment client.
"""

from decimal import Decimal

import pytest
import stripe


class TestMinorUnits:
    """Test pound to pence conversion."""

    def test_whole_pounds(self):
        from lea.payments.client import to_minor_units

        assert to_minor_units(Decimal("150")) == 15000
        assert to_minor_units(75) == 7500

    def test_rounds_half_up(self):
        from lea.payments.client import to_minor_units

        assert to_minor_units("19.995") == 2000
        assert to_minor_units("19.994") == 1999
        assert to_minor_units(0.1) == 10


class TestStripeConfig:
    def test_unconfigured(self, monkeypatch):
        from lea.payments.client import StripeConfig, get_payment_client, reset_payment_client

        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        reset_payment_client()

        assert not StripeConfig().is_configured
        with pytest.raises(ValueError, match="STRIPE_SECRET_KEY"):
            get_payment_client()

    def test_singleton(self, monkeypatch):
        from lea.payments.client import get_payment_client, reset_payment_client

        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
        reset_payment_client()

        assert get_payment_client() is get_payment_client()
        assert get_payment_client().secret_key == "sk_test_123"
        reset_payment_client()


class TestCreateIntent:
    """Test PaymentIntent creation with Stripe patched out."""

    def test_parameters(self, monkeypatch):
        from lea.payments.client import PaymentClient

        calls = []

        def fake_create(**params):
            calls.append(params)
            return {"id": "pi_1", "client_secret": "pi_1_secret"}

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
        intent = PaymentClient("sk_test_123").create_intent(
            Decimal("85.50"), currency="GBP", metadata={"booking_id": "b1"},
        )

        assert intent["client_secret"] == "pi_1_secret"
        assert calls == [{
            "amount": 8550,
            "currency": "gbp",
            "metadata": {"booking_id": "b1"},
            "api_key": "sk_test_123",
        }]

    def test_api_version_passed(self, monkeypatch):
        from lea.payments.client import PaymentClient

        calls = []
        monkeypatch.setattr(stripe.PaymentIntent, "create", lambda **params: calls.append(params))
        PaymentClient("sk_test_123", api_version="2024-06-20").create_intent(Decimal("10"))

        assert calls[0]["stripe_version"] == "2024-06-20"
        assert calls[0]["metadata"] == {}

    def test_stripe_error_wrapped(self, monkeypatch):
        from lea.payments.client import PaymentClient, PaymentError

        def failing_create(**params):
            raise stripe.StripeError("Network down")

        monkeypatch.setattr(stripe.PaymentIntent, "create", failing_create)

        with pytest.raises(PaymentError, match="Network down") as exc:
            PaymentClient("sk_test_123").create_intent(Decimal("10"))
        assert isinstance(exc.value.__cause__, stripe.StripeError)
