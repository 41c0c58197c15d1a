"""
Payments app configuration.

This app provides the Stripe integration:
- StripeAdapter for API calls and signature verification
- WebhookEvent storage with idempotent receipt
- Celery tasks that dispatch webhooks to domain handlers
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
