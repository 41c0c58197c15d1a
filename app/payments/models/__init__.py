"""
Payment domain models.

- WebhookEvent: Stripe webhook ledger for idempotent processing
"""

from payments.models.webhook_event import WebhookEvent

__all__ = ["WebhookEvent"]
