"""
Payment-specific exceptions.

Exception Hierarchy:
    PaymentError (base for payment domain)
    └── StripeError - Base for all Stripe errors
        ├── StripeInvalidRequestError - Bad request or signature (permanent)
        ├── StripeRateLimitError - Rate limited (transient, retry)
        └── StripeAPIUnavailableError - API unreachable (transient, retry)

Usage:
    from payments.exceptions import StripeError

    try:
        adapter.retrieve_payment_intent("pi_xxx")
    except StripeError as e:
        if e.is_retryable:
            ...  # leave the webhook failed; retry_failed_webhooks picks it up
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any


class PaymentError(BaseApplicationError):
    """Base exception for payment operations."""

    default_error_code: str = "PAYMENT_ERROR"


class StripeError(PaymentError):
    """
    Base exception for Stripe failures.

    Attributes:
        stripe_code: Stripe's error code, if any
        is_retryable: Whether repeating the call may succeed
    """

    default_error_code: str = "STRIPE_ERROR"
    status_code: int = 503
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code


class StripeInvalidRequestError(StripeError):
    """
    Stripe rejected the request, or a webhook failed verification.

    Permanent: repeating the same request fails the same way.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    status_code: int = 400
    is_retryable: bool = False


class StripeRateLimitError(StripeError):
    """Stripe rate limited the call. Retry with backoff."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """Stripe could not be reached or returned a server error."""

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True
