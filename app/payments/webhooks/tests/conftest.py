"""
Pytest fixtures for webhook tests.

Provides fixtures for testing webhook views, handlers, and tasks including
Stripe payload builders, WebhookEvent objects and holds awaiting payment.
"""

from unittest.mock import patch

import pytest

from firms.tests.factories import FirmFactory
from holding.tests.factories import HoldingRequestFactory
from holding.tests.fakes import (
    FakePaymentClient,
    build_stripe_event,
    payment_intent_object,
)
from payments.tests.factories import WebhookEventFactory


# =============================================================================
# Payload Fixtures
# =============================================================================


@pytest.fixture
def pending_hold(db):
    """Pending hold on an application awaiting payment."""
    return HoldingRequestFactory()


@pytest.fixture
def succeeded_webhook_event(db, pending_hold):
    """Stored payment_intent.succeeded event for pending_hold."""
    payload = build_stripe_event(
        "payment_intent.succeeded",
        payment_intent_object(pending_hold),
        event_id="evt_succeeded_123",
    )
    return WebhookEventFactory(
        stripe_event_id=payload["id"],
        event_type=payload["type"],
        payload=payload,
    )


@pytest.fixture
def connected_firm(db):
    """Firm with a Stripe connected account still onboarding."""
    return FirmFactory(stripe_account_id="acct_webhook_123")


# =============================================================================
# Stripe Client Fixtures
# =============================================================================


@pytest.fixture
def payment_client():
    """Fake client returned by StripeAdapter.from_settings in handlers."""
    client = FakePaymentClient()
    with patch(
        "payments.webhooks.handlers.StripeAdapter.from_settings",
        return_value=client,
    ):
        yield client
