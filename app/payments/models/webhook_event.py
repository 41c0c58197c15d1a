"""
WebhookEvent model.

Every verified Stripe webhook is stored once, keyed by its event id.
Stripe retries deliveries until it gets a 2xx, and may send the same
event more than once; the unique stripe_event_id lets the endpoint
acknowledge duplicates without dispatching them again.

Usage:
    event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id=payload["id"],
        defaults={"event_type": payload["type"], "payload": payload},
    )
    if event.is_processed:
        return HttpResponse("Already processed", status=200)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Stored Stripe webhook event.

    Processing Flow:
        1. View verifies the signature and get_or_creates the row
        2. process_webhook_event marks it PROCESSING and dispatches it
        3. Handler result marks it PROCESSED or FAILED
        4. retry_failed_webhooks re-queues FAILED rows under the retry cap

    Fields:
        stripe_event_id: Stripe event id (evt_xxx), unique
        event_type: e.g. "payment_intent.succeeded"
        payload: Verified event body
        status: Processing status
        processed_at: When processing succeeded
        error_message: Last failure
        retry_count: Processing attempts so far
    """

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx)",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type",
    )

    payload = models.JSONField(
        help_text="Verified webhook payload",
    )

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )

    processed_at = models.DateTimeField(null=True, blank=True)

    error_message = models.TextField(null=True, blank=True)

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(
                fields=["status", "retry_count"],
                name="payments_we_status_2c41a8_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def can_retry(self) -> bool:
        """Failed and still under STRIPE_WEBHOOK_MAX_RETRIES."""
        return (
            self.status == WebhookEventStatus.FAILED
            and self.retry_count < settings.STRIPE_WEBHOOK_MAX_RETRIES
        )

    # The mark_* helpers do not save; callers save after calling.

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_object(self) -> dict:
        """Return payload.data.object, or an empty dict."""
        data = self.payload.get("data") if isinstance(self.payload, dict) else None
        return (data or {}).get("object") or {}

    def get_object_id(self) -> str | None:
        return self.get_object().get("id")
