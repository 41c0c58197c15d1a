"""
Payment state definitions.

Status Flow (WebhookEvent):
    PENDING -> PROCESSING -> PROCESSED
    PENDING -> PROCESSING -> FAILED -> PROCESSING (retried)
"""

from django.db import models


class WebhookEventStatus(models.TextChoices):
    """Processing status of a stored Stripe webhook event."""

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
