"""
Payment adapters for external services.

All Stripe calls go through StripeAdapter so error translation, timeouts
and logging stay consistent.

Usage:
    from payments.adapters import StripeAdapter

    adapter = StripeAdapter.from_settings()
"""

from payments.adapters.stripe_adapter import (
    CreatePaymentIntentParams,
    PaymentIntentResult,
    StripeAdapter,
    is_retryable_stripe_error,
)

__all__ = [
    "CreatePaymentIntentParams",
    "PaymentIntentResult",
    "StripeAdapter",
    "is_retryable_stripe_error",
]
