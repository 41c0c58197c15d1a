"""
Pytest fixtures for payment tests.

Usage:
    def test_retry(failed_webhook_event):
        assert failed_webhook_event.can_retry
"""

import pytest

from payments.state_machines import WebhookEventStatus
from payments.tests.factories import WebhookEventFactory


@pytest.fixture
def webhook_event(db):
    """Create a PENDING webhook event."""
    return WebhookEventFactory()


@pytest.fixture
def failed_webhook_event(db):
    """Create a FAILED webhook event with retries left."""
    return WebhookEventFactory(
        status=WebhookEventStatus.FAILED,
        error_message="Processing error",
        retry_count=1,
    )
