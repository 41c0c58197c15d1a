"""
Stripe webhook handling.

Webhooks are verified, stored idempotently as WebhookEvent rows and
processed asynchronously by payments.tasks.process_webhook_event.
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.views import stripe_webhook

__all__ = [
    "dispatch_webhook",
    "register_handler",
    "stripe_webhook",
]
