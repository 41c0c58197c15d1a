"""
Tests for the HoldingRequest model.

Tests cover:
- Token format and pay link
- FSM transitions (pending -> paid, pending -> canceled)
- Database constraints (one active hold per pair, minimum due range)
"""

import pytest
from django.db import IntegrityError, transaction
from django_fsm import TransitionNotAllowed

from holding.models import HoldingRequest
from holding.states import HoldingStatus
from holding.tests.factories import HoldingRequestFactory, PaidHoldingRequestFactory
from holding.types import HoldingAmounts


@pytest.mark.django_db
class TestHoldingRequestFields:
    def test_token_is_prefixed_and_unique(self):
        first = HoldingRequestFactory()
        second = HoldingRequestFactory()

        assert first.token.startswith("hold_")
        assert len(first.token) > len("hold_") + 16
        assert first.token != second.token

    def test_pay_url_uses_template(self, settings):
        settings.HOLDING_PAY_URL_TEMPLATE = "https://pay.example.com/hold/{token}"
        hold = HoldingRequestFactory()

        assert hold.pay_url == f"https://pay.example.com/hold/{hold.token}"

    def test_amounts_property(self):
        hold = HoldingRequestFactory(amount_key=500)

        assert hold.amounts == HoldingAmounts(
            first=2000, last=2000, security=2000, key=500
        )
        assert hold.total == 6500


@pytest.mark.django_db
class TestHoldingRequestTransitions:
    def test_mark_paid(self):
        hold = HoldingRequestFactory()

        hold.mark_paid(amount_confirmed=1000, payment_intent_id="pi_123")
        hold.save()
        hold.refresh_from_db()

        assert hold.status == HoldingStatus.PAID
        assert hold.amount_confirmed == 1000
        assert hold.payment_intent_id == "pi_123"
        assert hold.paid_at is not None

    def test_cancel(self):
        hold = HoldingRequestFactory()

        hold.cancel()
        hold.save()
        hold.refresh_from_db()

        assert hold.status == HoldingStatus.CANCELED
        assert hold.canceled_at is not None

    def test_paid_hold_cannot_be_canceled(self):
        hold = PaidHoldingRequestFactory()

        with pytest.raises(TransitionNotAllowed):
            hold.cancel()

    def test_canceled_hold_cannot_be_paid(self):
        hold = HoldingRequestFactory(status=HoldingStatus.CANCELED)

        with pytest.raises(TransitionNotAllowed):
            hold.mark_paid(amount_confirmed=1000)


@pytest.mark.django_db
class TestHoldingRequestConstraints:
    def test_second_pending_hold_for_pair_rejected(self):
        hold = HoldingRequestFactory()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                HoldingRequestFactory(application=hold.application, firm=hold.firm)

    def test_pending_beside_paid_hold_rejected(self):
        paid = PaidHoldingRequestFactory()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                HoldingRequestFactory(application=paid.application, firm=paid.firm)

    def test_canceled_holds_do_not_count(self):
        canceled = HoldingRequestFactory(status=HoldingStatus.CANCELED)
        HoldingRequestFactory(
            application=canceled.application,
            firm=canceled.firm,
            status=HoldingStatus.CANCELED,
        )

        HoldingRequestFactory(application=canceled.application, firm=canceled.firm)

        assert (
            HoldingRequest.objects.filter(application=canceled.application).count()
            == 3
        )

    def test_minimum_due_must_be_positive(self):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                HoldingRequestFactory(minimum_due=0)

    def test_minimum_due_cannot_exceed_total(self):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                HoldingRequestFactory(minimum_due=6001)
