"""
Tests for webhook Celery tasks.

Tests cover:
- process_webhook_event status bookkeeping
- Handler failures and exceptions leave the event FAILED
- End-to-end processing of a holding payment
- retry_failed_webhooks and cleanup_stuck_webhooks
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from applications.states import ApplicationStatus
from core.services import ServiceResult
from holding.states import HoldingStatus
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.tasks import (
    cleanup_stuck_webhooks,
    process_webhook_event,
    retry_failed_webhooks,
)
from payments.tests.factories import WebhookEventFactory


def age(webhook_event, **delta):
    """Backdate created_at/updated_at, bypassing auto_now."""
    past = timezone.now() - timedelta(**delta)
    WebhookEvent.objects.filter(id=webhook_event.id).update(
        created_at=past, updated_at=past
    )


# =============================================================================
# process_webhook_event
# =============================================================================


@pytest.mark.django_db
class TestProcessWebhookEvent:
    def test_not_found(self):
        result = process_webhook_event("00000000-0000-0000-0000-000000000000")

        assert result["status"] == "not_found"

    def test_already_processed(self):
        webhook_event = WebhookEventFactory(status=WebhookEventStatus.PROCESSED)

        with patch("payments.webhooks.handlers.dispatch_webhook") as mock_dispatch:
            result = process_webhook_event(str(webhook_event.id))

        assert result["status"] == "already_processed"
        mock_dispatch.assert_not_called()

    def test_success_marks_processed(self):
        webhook_event = WebhookEventFactory()

        with patch(
            "payments.webhooks.handlers.dispatch_webhook",
            return_value=ServiceResult.success(None),
        ):
            result = process_webhook_event(str(webhook_event.id))

        assert result["status"] == "processed"
        webhook_event.refresh_from_db()
        assert webhook_event.status == WebhookEventStatus.PROCESSED
        assert webhook_event.processed_at is not None
        assert webhook_event.retry_count == 1

    def test_handler_failure_marks_failed(self):
        webhook_event = WebhookEventFactory()

        with patch(
            "payments.webhooks.handlers.dispatch_webhook",
            return_value=ServiceResult.failure(
                "Could not reach Stripe", error_code="STRIPE_UNAVAILABLE"
            ),
        ):
            result = process_webhook_event(str(webhook_event.id))

        assert result["status"] == "handler_failed"
        webhook_event.refresh_from_db()
        assert webhook_event.status == WebhookEventStatus.FAILED
        assert webhook_event.error_message == "Could not reach Stripe"

    def test_exception_marks_failed_and_reraises(self):
        webhook_event = WebhookEventFactory()

        with patch(
            "payments.webhooks.handlers.dispatch_webhook",
            side_effect=RuntimeError("database went away"),
        ):
            with pytest.raises(Exception, match="database went away"):
                process_webhook_event(str(webhook_event.id))

        webhook_event.refresh_from_db()
        assert webhook_event.status == WebhookEventStatus.FAILED
        assert "RuntimeError" in webhook_event.error_message

    def test_processes_holding_payment(self, succeeded_webhook_event, pending_hold):
        with patch(
            "payments.webhooks.handlers.StripeAdapter.from_settings"
        ) as mock_from_settings:
            result = process_webhook_event(str(succeeded_webhook_event.id))

        mock_from_settings.return_value.retrieve_payment_intent.assert_not_called()
        assert result["status"] == "processed"
        pending_hold.refresh_from_db()
        assert pending_hold.status == HoldingStatus.PAID
        pending_hold.application.refresh_from_db()
        assert (
            pending_hold.application.status == ApplicationStatus.APPROVED_PENDING_LEASE
        )


# =============================================================================
# retry_failed_webhooks
# =============================================================================


@pytest.mark.django_db
class TestRetryFailedWebhooks:
    def test_queues_failed_under_limit(self, settings):
        settings.STRIPE_WEBHOOK_MAX_RETRIES = 5
        retryable = WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=2)
        WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=5)
        WebhookEventFactory(status=WebhookEventStatus.PROCESSED)

        with patch("payments.tasks.process_webhook_event.delay") as mock_delay:
            result = retry_failed_webhooks()

        assert result == {"queued_count": 1}
        mock_delay.assert_called_once_with(str(retryable.id))

    def test_queues_stale_pending(self):
        stale = WebhookEventFactory()
        age(stale, minutes=10)
        WebhookEventFactory()  # just received, still in the queue

        with patch("payments.tasks.process_webhook_event.delay") as mock_delay:
            result = retry_failed_webhooks()

        assert result == {"queued_count": 1}
        mock_delay.assert_called_once_with(str(stale.id))

    def test_queue_error_skips_event(self):
        WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=1)

        with patch(
            "payments.tasks.process_webhook_event.delay",
            side_effect=ConnectionError("broker unavailable"),
        ):
            result = retry_failed_webhooks()

        assert result == {"queued_count": 0}


# =============================================================================
# cleanup_stuck_webhooks
# =============================================================================


@pytest.mark.django_db
class TestCleanupStuckWebhooks:
    def test_resets_stuck_processing(self):
        stuck = WebhookEventFactory(status=WebhookEventStatus.PROCESSING)
        age(stuck, hours=1)
        recent = WebhookEventFactory(status=WebhookEventStatus.PROCESSING)

        result = cleanup_stuck_webhooks()

        assert result == {"reset_count": 1}
        stuck.refresh_from_db()
        assert stuck.status == WebhookEventStatus.FAILED
        recent.refresh_from_db()
        assert recent.status == WebhookEventStatus.PROCESSING
