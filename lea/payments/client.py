"""
Stripe client for Lea.

Creates card payment intents for bookings and course enrollments.
"""

from __future__ import annotations

import os
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import stripe


def to_minor_units(amount: Decimal | float | int | str) -> int:
  """Convert a major-unit amount (pounds) to minor units (pence), rounding half up."""
  value = Decimal(str(amount)) * 100
  return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentError(Exception):
  """Stripe refused or failed to create a payment."""


class StripeConfig:
  """Configuration for the Stripe connection."""

  def __init__(self):
    self.secret_key = os.environ.get("STRIPE_SECRET_KEY")
    self.api_version = os.environ.get("STRIPE_API_VERSION")

  @property
  def is_configured(self) -> bool:
    return bool(self.secret_key)

  def validate(self) -> None:
    if not self.secret_key:
      raise ValueError("STRIPE_SECRET_KEY environment variable not set")


class PaymentClient:
  """
  Thin wrapper around the Stripe PaymentIntent API.

  The secret key is passed per call so the global stripe module state
  stays untouched.
  """

  def __init__(self, secret_key: str, api_version: str | None = None):
    self.secret_key = secret_key
    self.api_version = api_version

  def create_intent(self, amount: Decimal, currency: str = "gbp", metadata: dict | None = None):
    """Create a PaymentIntent for `amount` in major units."""
    params = {
      "amount": to_minor_units(amount),
      "currency": currency.lower(),
      "metadata": metadata or {},
      "api_key": self.secret_key,
    }
    if self.api_version:
      params["stripe_version"] = self.api_version
    try:
      return stripe.PaymentIntent.create(**params)
    except stripe.StripeError as e:
      raise PaymentError(e.user_message or str(e)) from e


_payment_client: Optional[PaymentClient] = None


def is_configured() -> bool:
  return StripeConfig().is_configured


def get_payment_client() -> PaymentClient:
  """Get the payment client (singleton). Raises ValueError when unconfigured."""
  global _payment_client
  if _payment_client is None:
    config = StripeConfig()
    config.validate()
    _payment_client = PaymentClient(config.secret_key, config.api_version)
  return _payment_client


def reset_payment_client() -> None:
  global _payment_client
  _payment_client = None
