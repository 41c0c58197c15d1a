"""
Webhook event handlers for Stripe events.

Handlers are registered by event type and return a ServiceResult. A
failure result (or an exception) leaves the WebhookEvent FAILED so the
retry task picks it up; stale or duplicate events are successes.

Handled events:
    payment_intent.succeeded, charge.succeeded -> holding deposit paid
    payment_intent.processing -> holding payment in flight
    payment_intent.payment_failed, charge.failed -> holding payment failed
    account.updated -> firm payment-account status

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("custom.event")
    def handle_custom_event(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from core.services import ServiceResult
from firms.services import FirmPaymentAccountService
from holding.services import PaymentEventReconciler
from holding.types import ReconcileOutcome
from payments.adapters import StripeAdapter
from payments.exceptions import StripeError
from payments.models import WebhookEvent

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(*event_types: str) -> Callable:
    """
    Decorator registering a handler for one or more event types.

    Usage:
        @register_handler("payment_intent.succeeded", "charge.succeeded")
        def handle_paid(webhook_event: WebhookEvent) -> ServiceResult:
            ...
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        for event_type in event_types:
            WEBHOOK_HANDLERS[event_type] = func
            logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to its handler.

    Unknown event types succeed so Stripe stops redelivering them.
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"stripe_event_id": webhook_event.stripe_event_id},
    )
    return handler(webhook_event)


def get_payment_reconciler() -> PaymentEventReconciler:
    """Build the reconciler with a Stripe client from settings."""
    return PaymentEventReconciler(payment_client=StripeAdapter.from_settings())


# =============================================================================
# Holding Deposit Handlers
# =============================================================================


@register_handler(
    "payment_intent.succeeded",
    "charge.succeeded",
    "payment_intent.processing",
    "payment_intent.payment_failed",
    "charge.failed",
)
def handle_holding_payment_event(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Apply a PaymentIntent or charge event to the matching holding request.

    Returns:
        ServiceResult with the ReconcileOutcome, or a failure when Stripe
        could not be reached to resolve a charge's PaymentIntent
    """
    reconciler = get_payment_reconciler()

    try:
        event = reconciler.event_from_stripe(webhook_event.payload)
    except StripeError as e:
        logger.warning(
            "Could not resolve PaymentIntent for webhook",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "error_code": e.error_code,
            },
        )
        return ServiceResult.failure(str(e), error_code=e.error_code)

    if event is None:
        return ServiceResult.success(ReconcileOutcome.IGNORED)

    outcome = reconciler.reconcile(event)
    logger.info(
        "Holding payment event reconciled",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "holding_id": event.holding_id,
            "outcome": outcome.value,
        },
    )
    return ServiceResult.success(outcome)


# =============================================================================
# Connect Account Handlers
# =============================================================================


@register_handler("account.updated")
def handle_account_updated(webhook_event: WebhookEvent) -> ServiceResult:
    """Refresh the owning firm's payment-account status."""
    account = webhook_event.get_object()
    if not account.get("id"):
        logger.error(
            "account.updated: Could not extract account id",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.failure(
            "Could not extract account id from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    firm = FirmPaymentAccountService().apply_account_update(account)
    return ServiceResult.success(firm.id if firm else None)
