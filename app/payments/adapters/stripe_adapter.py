"""
Stripe API adapter.

StripeAdapter wraps the Stripe operations this service needs: verifying
webhook signatures and creating, reading and canceling PaymentIntents. It is an
explicitly constructed object holding its own credentials and client,
so services receive it as a dependency and tests pass in a fake.

Configuration (via settings, see StripeAdapter.from_settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Network retries for transient failures (default: 3)

Usage:
    from payments.adapters import StripeAdapter

    adapter = StripeAdapter.from_settings()
    event = adapter.verify_webhook_signature(request.body, signature)
    intent = adapter.retrieve_payment_intent("pi_xxx")
    intent.metadata.get("holdingId")

    result = adapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=100000,
            currency="usd",
            idempotency_key="hold:hold_xxx:100000:us_bank_account",
            metadata={"holdingId": "hold_xxx"},
        )
    )
    result.client_secret  # handed to Stripe.js on the pay page
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)


@dataclass
class CreatePaymentIntentParams:
    """
    Parameters for creating a Stripe PaymentIntent.

    Attributes:
        amount_cents: Amount in the smallest currency unit
        currency: ISO 4217 currency code
        idempotency_key: Unique key for idempotent creation
        metadata: Key-value pairs attached to the PaymentIntent
        payment_method_types: Allowed payment methods
        payment_method_options: Per-method options (e.g. ACH verification)
        transfer_data: Connect destination for destination charges
        description: Shown in the Stripe dashboard
    """

    amount_cents: int
    currency: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)
    payment_method_types: list[str] = field(default_factory=lambda: ["card"])
    payment_method_options: dict[str, Any] | None = None
    transfer_data: dict[str, Any] | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")

    def as_stripe_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "amount": self.amount_cents,
            "currency": self.currency,
            "metadata": self.metadata,
            "payment_method_types": self.payment_method_types,
        }
        optional = {
            "payment_method_options": self.payment_method_options,
            "transfer_data": self.transfer_data,
            "description": self.description,
        }
        params.update({key: value for key, value in optional.items() if value})
        return params


@dataclass
class PaymentIntentResult:
    """
    A PaymentIntent as seen by this service.

    Attributes:
        id: PaymentIntent ID (pi_xxx)
        status: Stripe status (processing, succeeded, ...)
        amount_cents: Requested amount
        amount_received: Amount actually collected
        currency: Currency code
        client_secret: Secret the pay page confirms the intent with
        payment_method_types: Payment methods the intent accepts
        metadata: Attached metadata (holdingId, firmId, token)
        raw_response: Full Stripe response dict
    """

    id: str
    status: str
    amount_cents: int
    amount_received: int
    currency: str
    client_secret: str | None = None
    payment_method_types: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


def is_retryable_stripe_error(error: Exception) -> bool:
    """Check whether an error is a transient Stripe failure."""
    if isinstance(error, StripeError):
        return error.is_retryable
    return False


class StripeAdapter:
    """
    Adapter for the Stripe operations used by payment reconciliation.

    Args:
        api_key: Stripe secret key
        webhook_secret: Endpoint signing secret (whsec_xxx)
        timeout: Per-request timeout in seconds
        max_retries: Network retries performed by the Stripe client
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: int = 10,
        max_retries: int = 3,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self.max_retries = max_retries
        self._client: stripe.StripeClient | None = None

    @classmethod
    def from_settings(cls) -> StripeAdapter:
        """Build an adapter from Django settings."""
        return cls(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            timeout=getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10),
            max_retries=getattr(settings, "STRIPE_MAX_RETRIES", 3),
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @property
    def client(self) -> stripe.StripeClient:
        """Lazily constructed Stripe client bound to this adapter's key."""
        if self._client is None:
            self._client = stripe.StripeClient(
                self.api_key,
                http_client=stripe.RequestsClient(timeout=self.timeout),
                max_network_retries=self.max_retries,
            )
        return self._client

    # =========================================================================
    # PaymentIntents
    # =========================================================================

    def create_payment_intent(
        self,
        params: CreatePaymentIntentParams,
        trace_id: str | None = None,
    ) -> PaymentIntentResult:
        """
        Create a Stripe PaymentIntent.

        Repeating a call with the same idempotency key returns the intent
        created by the first call instead of a second one.

        Args:
            params: Parameters for creating the PaymentIntent
            trace_id: Optional correlation ID for logs

        Returns:
            PaymentIntentResult including the client_secret

        Raises:
            StripeInvalidRequestError: Invalid parameters or destination
            StripeRateLimitError, StripeAPIUnavailableError: Transient failures
        """
        logger = self.get_logger()
        log_context = {
            "operation": "create_payment_intent",
            "amount_cents": params.amount_cents,
            "currency": params.currency,
            "idempotency_key": params.idempotency_key,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = self.client.payment_intents.create(
                params=params.as_stripe_params(),
                options={"idempotency_key": params.idempotency_key},
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "payment_intent_id": intent.id,
                "status": intent.status,
                "duration_ms": duration_ms,
            },
        )
        return self._to_result(intent)

    def retrieve_payment_intent(
        self,
        payment_intent_id: str,
        trace_id: str | None = None,
    ) -> PaymentIntentResult:
        """
        Retrieve a PaymentIntent by ID.

        Args:
            payment_intent_id: Stripe PaymentIntent ID (pi_xxx)
            trace_id: Optional correlation ID for logs (e.g. the event id)

        Raises:
            StripeInvalidRequestError: PaymentIntent not found
            StripeRateLimitError, StripeAPIUnavailableError: Transient failures
        """
        logger = self.get_logger()
        log_context = {
            "operation": "retrieve_payment_intent",
            "payment_intent_id": payment_intent_id,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.debug("Starting Stripe operation", extra=log_context)

        try:
            intent = self.client.payment_intents.retrieve(payment_intent_id)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            "Stripe operation completed",
            extra={**log_context, "status": intent.status, "duration_ms": duration_ms},
        )
        return self._to_result(intent)

    def cancel_payment_intent(
        self,
        payment_intent_id: str,
        trace_id: str | None = None,
    ) -> PaymentIntentResult:
        """
        Cancel a PaymentIntent that has not been paid.

        Raises:
            StripeInvalidRequestError: Intent missing or no longer cancelable
            StripeRateLimitError, StripeAPIUnavailableError: Transient failures
        """
        logger = self.get_logger()
        log_context = {
            "operation": "cancel_payment_intent",
            "payment_intent_id": payment_intent_id,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = self.client.payment_intents.cancel(payment_intent_id)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={**log_context, "status": intent.status, "duration_ms": duration_ms},
        )
        return self._to_result(intent)

    @staticmethod
    def _to_result(intent: Any) -> PaymentIntentResult:
        return PaymentIntentResult(
            id=intent.id,
            status=intent.status,
            amount_cents=intent.amount,
            amount_received=getattr(intent, "amount_received", None) or 0,
            currency=intent.currency,
            client_secret=getattr(intent, "client_secret", None),
            payment_method_types=list(
                getattr(intent, "payment_method_types", None) or []
            ),
            metadata=dict(getattr(intent, "metadata", None) or {}),
            raw_response=intent.to_dict(),
        )

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    def verify_webhook_signature(
        self,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw request body
            signature: Stripe-Signature header value

        Returns:
            Parsed event as a dict

        Raises:
            StripeInvalidRequestError: Bad signature or malformed payload
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                self.webhook_secret,
            )
        except stripe.SignatureVerificationError as e:
            raise StripeInvalidRequestError(
                "Invalid webhook signature",
                stripe_code="signature_verification_failed",
                details={"error": str(e)},
            )
        except ValueError as e:
            raise StripeInvalidRequestError(
                "Invalid webhook payload",
                stripe_code="invalid_payload",
                details={"error": str(e)},
            )
        return event.to_dict()

    # =========================================================================
    # Error Handling
    # =========================================================================

    def _handle_stripe_error(
        self,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe SDK exceptions into payments.exceptions.

        Raises:
            StripeInvalidRequestError: Permanent request or auth failure
            StripeRateLimitError: Rate limited
            StripeAPIUnavailableError: Network, server or unknown failure
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(str(error), stripe_code=error.code)

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            )

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            )

        if isinstance(error, (stripe.APIConnectionError, stripe.APIError)):
            logger.error("Stripe unavailable", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Could not reach Stripe. Please retry.",
                stripe_code="api_unavailable",
            )

        logger.error(
            f"Unexpected error from Stripe: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise StripeAPIUnavailableError(
            f"Unexpected Stripe error: {error}",
            stripe_code="unknown_error",
        )
