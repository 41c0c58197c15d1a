"""
Tests for webhook event handlers.

Tests cover:
- Handler registration and dispatch
- Holding payment events end to end (payment_intent and charge)
- Redelivery, unknown holds and Stripe lookup failures
- account.updated handling
"""

from applications.states import ApplicationStatus, TimelineEvent
from core.services import ServiceResult
from firms.models import PaymentAccountStatus
from holding.states import HoldingStatus
from holding.tests.fakes import build_stripe_event, payment_intent_object
from holding.types import ReconcileOutcome
from payments.adapters import PaymentIntentResult
from payments.exceptions import StripeAPIUnavailableError
from payments.tests.factories import WebhookEventFactory
from payments.webhooks.handlers import (
    WEBHOOK_HANDLERS,
    dispatch_webhook,
    handle_account_updated,
    handle_holding_payment_event,
    register_handler,
)


def webhook_for(event_type, obj, event_id="evt_handler_1"):
    payload = build_stripe_event(event_type, obj, event_id=event_id)
    return WebhookEventFactory(
        stripe_event_id=event_id,
        event_type=event_type,
        payload=payload,
    )


# =============================================================================
# Handler Registration Tests
# =============================================================================


class TestRegisterHandler:
    """Tests for handler registration decorator."""

    def test_holding_events_registered(self):
        for event_type in [
            "payment_intent.succeeded",
            "charge.succeeded",
            "payment_intent.processing",
            "payment_intent.payment_failed",
            "charge.failed",
        ]:
            assert WEBHOOK_HANDLERS[event_type] == handle_holding_payment_event

    def test_account_updated_registered(self):
        assert WEBHOOK_HANDLERS["account.updated"] == handle_account_updated

    def test_register_new_handler(self):
        """Should register custom handler for several event types."""

        @register_handler("test.one", "test.two")
        def test_handler(webhook_event):
            return ServiceResult.success("handled")

        try:
            assert WEBHOOK_HANDLERS["test.one"] == test_handler
            assert WEBHOOK_HANDLERS["test.two"] == test_handler
        finally:
            WEBHOOK_HANDLERS.pop("test.one", None)
            WEBHOOK_HANDLERS.pop("test.two", None)


# =============================================================================
# Dispatch Tests
# =============================================================================


class TestDispatchWebhook:
    """Tests for webhook dispatch function."""

    def test_dispatch_unknown_event_type(self, db):
        """Should succeed without a handler so Stripe stops redelivering."""
        webhook_event = webhook_for("customer.created", {"id": "cus_1"})

        result = dispatch_webhook(webhook_event)

        assert result.success is True
        assert result.data is None

    def test_dispatch_to_registered_handler(self, succeeded_webhook_event, payment_client):
        result = dispatch_webhook(succeeded_webhook_event)

        assert result.success is True
        assert result.data is ReconcileOutcome.APPLIED


# =============================================================================
# Holding Payment Tests
# =============================================================================


class TestHoldingPaymentEvents:
    """Tests for handle_holding_payment_event."""

    def test_payment_intent_succeeded(
        self, succeeded_webhook_event, pending_hold, payment_client
    ):
        result = handle_holding_payment_event(succeeded_webhook_event)

        assert result.data is ReconcileOutcome.APPLIED
        pending_hold.refresh_from_db()
        assert pending_hold.status == HoldingStatus.PAID
        assert pending_hold.amount_confirmed == 1000
        assert pending_hold.payment_intent_id == "pi_webhook_123"
        pending_hold.application.refresh_from_db()
        assert (
            pending_hold.application.status == ApplicationStatus.APPROVED_PENDING_LEASE
        )

    def test_redelivered_event_is_noop(
        self, succeeded_webhook_event, pending_hold, payment_client
    ):
        handle_holding_payment_event(succeeded_webhook_event)

        result = handle_holding_payment_event(succeeded_webhook_event)

        assert result.success is True
        assert result.data is ReconcileOutcome.ALREADY_APPLIED
        assert pending_hold.application.timeline.count() == 1

    def test_charge_succeeded_resolves_intent(self, pending_hold, payment_client):
        payment_client.intents["pi_charge_1"] = PaymentIntentResult(
            id="pi_charge_1",
            status="succeeded",
            amount_cents=1000,
            amount_received=1000,
            currency="usd",
            metadata={"holdingId": pending_hold.token},
        )
        webhook_event = webhook_for(
            "charge.succeeded",
            {"id": "ch_1", "object": "charge", "payment_intent": "pi_charge_1"},
            event_id="evt_charge_1",
        )

        result = handle_holding_payment_event(webhook_event)

        assert result.data is ReconcileOutcome.APPLIED
        assert payment_client.calls == [("pi_charge_1", "evt_charge_1")]
        pending_hold.refresh_from_db()
        assert pending_hold.status == HoldingStatus.PAID

    def test_stripe_unavailable_fails_for_retry(self, pending_hold, payment_client):
        payment_client.error = StripeAPIUnavailableError(
            "Could not reach Stripe. Please retry.",
            stripe_code="api_unavailable",
        )
        webhook_event = webhook_for(
            "charge.succeeded",
            {"id": "ch_2", "object": "charge", "payment_intent": "pi_charge_2"},
        )

        result = handle_holding_payment_event(webhook_event)

        assert result.success is False
        pending_hold.refresh_from_db()
        assert pending_hold.status == HoldingStatus.PENDING

    def test_intent_without_holding_metadata_ignored(self, db, payment_client):
        webhook_event = webhook_for(
            "payment_intent.succeeded",
            {"id": "pi_other", "object": "payment_intent", "metadata": {}},
        )

        result = handle_holding_payment_event(webhook_event)

        assert result.success is True
        assert result.data is ReconcileOutcome.IGNORED

    def test_charge_without_payment_intent_ignored(self, db, payment_client):
        webhook_event = webhook_for(
            "charge.succeeded", {"id": "ch_3", "object": "charge"}
        )

        result = handle_holding_payment_event(webhook_event)

        assert result.data is ReconcileOutcome.IGNORED
        assert payment_client.calls == []

    def test_payment_failed_recorded(self, pending_hold, payment_client):
        obj = payment_intent_object(pending_hold, amount=0)
        obj["last_payment_error"] = {"message": "Your card was declined."}
        webhook_event = webhook_for("payment_intent.payment_failed", obj)

        result = handle_holding_payment_event(webhook_event)

        assert result.data is ReconcileOutcome.RECORDED
        entry = pending_hold.application.timeline.get()
        assert entry.event == TimelineEvent.HOLDING_FAILED
        pending_hold.refresh_from_db()
        assert pending_hold.status == HoldingStatus.PENDING


# =============================================================================
# account.updated Tests
# =============================================================================


class TestAccountUpdated:
    """Tests for account.updated handler."""

    def test_enables_firm_account(self, connected_firm):
        webhook_event = webhook_for(
            "account.updated",
            {
                "id": "acct_webhook_123",
                "object": "account",
                "charges_enabled": True,
                "payouts_enabled": True,
                "details_submitted": True,
            },
        )

        result = handle_account_updated(webhook_event)

        assert result.success is True
        assert result.data == connected_firm.id
        connected_firm.refresh_from_db()
        assert connected_firm.payment_account_status == PaymentAccountStatus.ACTIVE

    def test_unknown_account_succeeds(self, db):
        webhook_event = webhook_for(
            "account.updated",
            {"id": "acct_unknown", "object": "account", "charges_enabled": True},
        )

        result = handle_account_updated(webhook_event)

        assert result.success is True
        assert result.data is None

    def test_missing_account_id_fails(self, db):
        webhook_event = webhook_for("account.updated", {"object": "account"})

        result = handle_account_updated(webhook_event)

        assert result.success is False
        assert result.error_code == "INVALID_WEBHOOK_PAYLOAD"
