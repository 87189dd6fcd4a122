"""
Payment processing for Lea.
"""

from lea.payments.client import (
  PaymentClient,
  PaymentError,
  StripeConfig,
  get_payment_client,
  is_configured,
  reset_payment_client,
  to_minor_units,
)

__all__ = [
  "PaymentClient",
  "PaymentError",
  "StripeConfig",
  "get_payment_client",
  "is_configured",
  "reset_payment_client",
  "to_minor_units",
]
