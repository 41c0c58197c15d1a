"""
PaymentIntents for holding deposit pay links.

The pay page opens (or reopens) a Stripe PaymentIntent for the hold's
minimum due. The intent carries the hold token in its metadata under
"holdingId"; that is the only link PaymentEventReconciler has from a
Stripe event back to the hold.

Intents are destination charges: funds settle on the platform and are
transferred to the firm's connected account, so the firm account must
be active before a tenant can pay.

Usage:
    service = HoldPaymentIntentService(payment_client=StripeAdapter.from_settings())
    intent = service.open(token)
    intent.client_secret  # passed to Stripe.js
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings

from core.services import BaseService
from firms.models import PaymentAccountStatus
from holding.exceptions import (
    HoldNotFoundError,
    HoldNotPayableError,
    HoldPaymentInProgressError,
    HoldPaymentUnavailableError,
)
from holding.services.manager import HoldingRequestManager
from holding.services.reconciler import HOLDING_METADATA_KEY
from holding.types import HoldPaymentIntent
from payments.adapters import CreatePaymentIntentParams
from payments.exceptions import StripeError, StripeInvalidRequestError

if TYPE_CHECKING:
    from holding.models import HoldingRequest
    from payments.adapters import PaymentIntentResult, StripeAdapter


# Intents the tenant can still confirm
CONFIRMABLE_INTENT_STATUSES = frozenset(
    {"requires_payment_method", "requires_confirmation", "requires_action"}
)

# Money is moving or has moved; a second intent could charge twice
IN_FLIGHT_INTENT_STATUSES = frozenset({"processing", "succeeded"})

CANCELABLE_INTENT_STATUSES = CONFIRMABLE_INTENT_STATUSES | {
    "requires_capture",
    "requires_reauthorization",
}


def _invalid_or_paid(token: str) -> HoldPaymentUnavailableError:
    return HoldPaymentUnavailableError(
        "Holding request is invalid or already paid",
        details={"token": token},
    )


class HoldPaymentIntentService(BaseService):
    """
    Opens the PaymentIntent a tenant pays a hold through.

    Args:
        payment_client: Object with create/retrieve/cancel_payment_intent,
            normally a payments.adapters.StripeAdapter
        manager: Hold persistence (default HoldingRequestManager)
    """

    def __init__(
        self,
        payment_client: StripeAdapter,
        manager: HoldingRequestManager | None = None,
    ):
        self.payment_client = payment_client
        self.manager = manager or HoldingRequestManager()

    def open(self, token: str) -> HoldPaymentIntent:
        """
        Return a confirmable PaymentIntent for a pending hold.

        An open intent for the same amount and payment methods is reused.
        Otherwise the stale intent is canceled (best effort) and a new
        one is created with an idempotency key derived from the hold, the
        amount and the intent it replaces, so retried requests do not
        open duplicates.

        Raises:
            HoldPaymentUnavailableError: Hold not pending (invalid_or_paid),
                firm has no connected account (no_stripe_account) or the
                account cannot take charges (account_not_active)
            HoldPaymentInProgressError: The current intent is processing or
                has succeeded
            StripeError: Stripe rejected or could not serve the request
        """
        logger = self.get_logger()
        hold = self.manager.get_payable(token)
        if hold is None:
            raise _invalid_or_paid(token)

        firm = hold.firm
        if not firm.stripe_account_id:
            raise HoldPaymentUnavailableError(
                "Firm has no payment account",
                error_code="no_stripe_account",
                details={"firm_id": str(firm.id)},
            )
        if firm.payment_account_status != PaymentAccountStatus.ACTIVE:
            raise HoldPaymentUnavailableError(
                "Firm payment account is not active",
                error_code="account_not_active",
                details={
                    "firm_id": str(firm.id),
                    "payment_account_status": firm.payment_account_status,
                },
            )

        amount = hold.minimum_due
        method_types = list(settings.HOLDING_PAYMENT_METHOD_TYPES)

        existing = self._current_intent(hold)
        if existing is not None:
            if existing.status in IN_FLIGHT_INTENT_STATUSES:
                raise HoldPaymentInProgressError(
                    "A payment for this hold is already in progress",
                    details={"token": token, "payment_intent_id": existing.id},
                )
            if (
                existing.status in CONFIRMABLE_INTENT_STATUSES
                and existing.amount_cents == amount
                and sorted(existing.payment_method_types) == sorted(method_types)
            ):
                logger.info(
                    "Reusing payment intent for holding request",
                    extra={"token": token, "payment_intent_id": existing.id},
                )
                return self._result(hold, existing, reused=True)
            if existing.status in CANCELABLE_INTENT_STATUSES:
                self._cancel_quietly(hold, existing)

        intent = self.payment_client.create_payment_intent(
            CreatePaymentIntentParams(
                amount_cents=amount,
                currency=settings.HOLDING_CURRENCY,
                idempotency_key=self._idempotency_key(
                    hold, amount, method_types, existing
                ),
                metadata={
                    HOLDING_METADATA_KEY: hold.token,
                    "firmId": str(hold.firm_id),
                    "token": hold.token,
                },
                payment_method_types=method_types,
                payment_method_options=self._method_options(method_types),
                transfer_data={"destination": firm.stripe_account_id},
                description=f"Holding deposit {hold.token}",
            ),
            trace_id=token,
        )

        try:
            self.manager.attach_payment_intent(token, intent.id)
        except (HoldNotFoundError, HoldNotPayableError) as e:
            # Paid or canceled while Stripe was being called
            raise _invalid_or_paid(token) from e

        return self._result(hold, intent, reused=False)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _current_intent(self, hold: HoldingRequest) -> PaymentIntentResult | None:
        if not hold.payment_intent_id:
            return None
        try:
            return self.payment_client.retrieve_payment_intent(
                hold.payment_intent_id, trace_id=hold.token
            )
        except StripeInvalidRequestError:
            self.get_logger().warning(
                "Stored payment intent not found at Stripe",
                extra={"token": hold.token, "payment_intent_id": hold.payment_intent_id},
            )
            return None

    def _cancel_quietly(self, hold: HoldingRequest, intent: PaymentIntentResult) -> None:
        try:
            self.payment_client.cancel_payment_intent(intent.id, trace_id=hold.token)
        except StripeError:
            self.get_logger().warning(
                "Failed to cancel replaced payment intent",
                extra={"token": hold.token, "payment_intent_id": intent.id},
                exc_info=True,
            )

    @staticmethod
    def _idempotency_key(
        hold: HoldingRequest,
        amount: int,
        method_types: list[str],
        replaces: PaymentIntentResult | None,
    ) -> str:
        key = f"hold:{hold.token}:{amount}:{'-'.join(sorted(method_types))}"
        if replaces is not None:
            key = f"{key}:replaces:{replaces.id}"
        return key

    @staticmethod
    def _method_options(method_types: list[str]) -> dict | None:
        if "us_bank_account" in method_types:
            return {"us_bank_account": {"verification_method": "automatic"}}
        return None

    @staticmethod
    def _result(
        hold: HoldingRequest,
        intent: PaymentIntentResult,
        reused: bool,
    ) -> HoldPaymentIntent:
        return HoldPaymentIntent(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount_cents,
            currency=intent.currency,
            return_url=settings.HOLDING_PAY_RETURN_URL_TEMPLATE.format(token=hold.token),
            reused=reused,
        )
