"""
Tests for HoldPaymentIntentService.

Tests cover:
- A pending hold on an active firm gets a destination-charge intent
- Open intents are reused, stale ones replaced
- Paid, canceled and unknown holds are refused
- Firms without an active connected account are refused
- Intents already processing are never duplicated
"""

import pytest

from firms.models import PaymentAccountStatus
from holding.exceptions import HoldPaymentInProgressError, HoldPaymentUnavailableError
from holding.models import HoldingRequest
from holding.services import HoldingRequestManager, HoldPaymentIntentService
from holding.states import HoldingStatus
from holding.tests.factories import HoldingRequestFactory, PaidHoldingRequestFactory
from payments.adapters import PaymentIntentResult
from payments.exceptions import StripeAPIUnavailableError, StripeInvalidRequestError


def existing_intent(payment_intent_id, status, amount=1000, methods=None):
    return PaymentIntentResult(
        id=payment_intent_id,
        status=status,
        amount_cents=amount,
        amount_received=0,
        currency="usd",
        client_secret=f"{payment_intent_id}_secret",
        payment_method_types=methods or ["us_bank_account"],
    )


def with_intent(hold, payment_client, intent):
    payment_client.intents[intent.id] = intent
    HoldingRequest.objects.filter(pk=hold.pk).update(payment_intent_id=intent.id)


@pytest.mark.django_db
@pytest.mark.usefixtures("pay_settings")
class TestOpen:
    def test_creates_destination_charge(self, intent_service, payment_client, payable_hold):
        result = intent_service.open(payable_hold.token)

        assert len(payment_client.created) == 1
        params = payment_client.created[0]
        assert params.amount_cents == 1000
        assert params.currency == "usd"
        assert params.metadata == {
            "holdingId": payable_hold.token,
            "firmId": str(payable_hold.firm_id),
            "token": payable_hold.token,
        }
        assert params.payment_method_types == ["us_bank_account"]
        assert params.payment_method_options == {
            "us_bank_account": {"verification_method": "automatic"}
        }
        assert params.transfer_data == {"destination": "acct_test_firm"}
        assert params.idempotency_key == f"hold:{payable_hold.token}:1000:us_bank_account"

        assert result.payment_intent_id == "pi_fake_1"
        assert result.client_secret == "pi_fake_1_secret"
        assert result.amount == 1000
        assert result.return_url == f"/tenant/hold/{payable_hold.token}/result"
        assert result.reused is False

    def test_stores_intent_on_hold(self, intent_service, payable_hold):
        intent_service.open(payable_hold.token)

        payable_hold.refresh_from_db()
        assert payable_hold.payment_intent_id == "pi_fake_1"
        assert payable_hold.status == HoldingStatus.PENDING

    def test_card_only_has_no_ach_options(
        self, intent_service, payment_client, payable_hold, settings
    ):
        settings.HOLDING_PAYMENT_METHOD_TYPES = ["card"]

        intent_service.open(payable_hold.token)

        assert payment_client.created[0].payment_method_options is None
        assert payment_client.created[0].payment_method_types == ["card"]

    def test_reuses_open_intent(self, intent_service, payment_client, payable_hold):
        with_intent(
            payable_hold,
            payment_client,
            existing_intent("pi_open", "requires_payment_method"),
        )

        result = intent_service.open(payable_hold.token)

        assert result.payment_intent_id == "pi_open"
        assert result.client_secret == "pi_open_secret"
        assert result.reused is True
        assert payment_client.created == []
        assert payment_client.canceled == []

    def test_replaces_intent_for_changed_amount(
        self, intent_service, payment_client, payable_hold
    ):
        with_intent(
            payable_hold,
            payment_client,
            existing_intent("pi_stale", "requires_payment_method", amount=500),
        )

        result = intent_service.open(payable_hold.token)

        assert payment_client.canceled == ["pi_stale"]
        assert payment_client.created[0].idempotency_key.endswith(":replaces:pi_stale")
        assert result.payment_intent_id == "pi_fake_1"
        payable_hold.refresh_from_db()
        assert payable_hold.payment_intent_id == "pi_fake_1"

    def test_failed_cancel_does_not_block(
        self, intent_service, payment_client, payable_hold, caplog
    ):
        with_intent(
            payable_hold,
            payment_client,
            existing_intent("pi_stale", "requires_payment_method", amount=500),
        )
        payment_client.cancel_error = StripeInvalidRequestError("cannot cancel")

        result = intent_service.open(payable_hold.token)

        assert result.payment_intent_id == "pi_fake_1"
        assert "Failed to cancel replaced payment intent" in caplog.text

    def test_canceled_intent_is_not_canceled_again(
        self, intent_service, payment_client, payable_hold
    ):
        with_intent(payable_hold, payment_client, existing_intent("pi_old", "canceled"))

        result = intent_service.open(payable_hold.token)

        assert payment_client.canceled == []
        assert result.payment_intent_id == "pi_fake_1"

    def test_missing_stored_intent_is_replaced(
        self, intent_service, payment_client, payable_hold
    ):
        HoldingRequest.objects.filter(pk=payable_hold.pk).update(
            payment_intent_id="pi_gone"
        )
        payment_client.error = StripeInvalidRequestError("No such payment_intent")

        result = intent_service.open(payable_hold.token)

        assert result.payment_intent_id == "pi_fake_1"

    @pytest.mark.parametrize("intent_status", ["processing", "succeeded"])
    def test_payment_in_progress(
        self, intent_service, payment_client, payable_hold, intent_status
    ):
        with_intent(payable_hold, payment_client, existing_intent("pi_busy", intent_status))

        with pytest.raises(HoldPaymentInProgressError) as exc_info:
            intent_service.open(payable_hold.token)

        assert exc_info.value.error_code == "payment_in_progress"
        assert exc_info.value.status_code == 409
        assert payment_client.created == []
        assert payment_client.canceled == []

    def test_stripe_outage_propagates(self, intent_service, payment_client, payable_hold):
        with_intent(payable_hold, payment_client, existing_intent("pi_open", "processing"))
        payment_client.error = StripeAPIUnavailableError("Could not reach Stripe")

        with pytest.raises(StripeAPIUnavailableError):
            intent_service.open(payable_hold.token)

        assert payment_client.created == []


@pytest.mark.django_db
@pytest.mark.usefixtures("pay_settings")
class TestRefused:
    @pytest.mark.parametrize(
        "hold_factory",
        [
            PaidHoldingRequestFactory,
            lambda: HoldingRequestFactory(status=HoldingStatus.CANCELED),
        ],
    )
    def test_hold_not_pending(self, intent_service, payment_client, hold_factory):
        hold = hold_factory()

        with pytest.raises(HoldPaymentUnavailableError) as exc_info:
            intent_service.open(hold.token)

        assert exc_info.value.error_code == "invalid_or_paid"
        assert exc_info.value.status_code == 400
        assert payment_client.created == []

    def test_unknown_token(self, intent_service, db):
        with pytest.raises(HoldPaymentUnavailableError) as exc_info:
            intent_service.open("hold_missing")

        assert exc_info.value.error_code == "invalid_or_paid"

    def test_firm_without_account(self, intent_service, payment_client, pending_hold):
        with pytest.raises(HoldPaymentUnavailableError) as exc_info:
            intent_service.open(pending_hold.token)

        assert exc_info.value.error_code == "no_stripe_account"
        assert payment_client.created == []

    @pytest.mark.parametrize(
        "account_status",
        [PaymentAccountStatus.PENDING, PaymentAccountStatus.RESTRICTED],
    )
    def test_firm_account_not_active(
        self, intent_service, payment_client, payable_hold, account_status
    ):
        firm = payable_hold.firm
        firm.payment_account_status = account_status
        firm.save(update_fields=["payment_account_status"])

        with pytest.raises(HoldPaymentUnavailableError) as exc_info:
            intent_service.open(payable_hold.token)

        assert exc_info.value.error_code == "account_not_active"
        assert exc_info.value.details["payment_account_status"] == account_status
        assert payment_client.created == []

    def test_paid_while_creating(self, payment_client, payable_hold):
        class PaidMidwayManager(HoldingRequestManager):
            def attach_payment_intent(self, token, payment_intent_id):
                HoldingRequest.objects.filter(token=token).update(
                    status=HoldingStatus.PAID
                )
                return super().attach_payment_intent(token, payment_intent_id)

        service = HoldPaymentIntentService(
            payment_client=payment_client, manager=PaidMidwayManager()
        )

        with pytest.raises(HoldPaymentUnavailableError) as exc_info:
            service.open(payable_hold.token)

        assert exc_info.value.error_code == "invalid_or_paid"
        payable_hold.refresh_from_db()
        assert payable_hold.payment_intent_id == ""
