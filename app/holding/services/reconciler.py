"""
Payment event reconciliation.

PaymentEventReconciler applies processor events to holds and
applications. Stripe delivers events at least once, possibly out of
order and possibly duplicated, so every step is a guarded single-row
write that is safe to repeat:

    1. mark the hold paid (pending -> paid, no-op if already paid)
    2. advance the application (approved_pending_payment ->
       approved_pending_lease, no-op if already there)

The hold is always written first. A crash between the steps leaves a
paid hold with an unadvanced application, and the redelivered event
completes step 2. If the application moved elsewhere in the meantime the
redelivery records the paid-but-unapplied anomaly instead.

Usage:
    reconciler = PaymentEventReconciler(payment_client=StripeAdapter.from_settings())
    event = reconciler.event_from_stripe(webhook_event.payload)
    if event is not None:
        outcome = reconciler.reconcile(event)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db.models import Q

from applications.models import Application, ApplicationTimelineEntry
from applications.services import AdvanceOutcome, ApplicationStateMachine
from applications.states import ApplicationStatus, TimelineEvent
from core.services import BaseService
from holding.exceptions import HoldNotFoundError, HoldNotPayableError
from holding.services.manager import HoldingRequestManager
from holding.types import PaymentEvent, PaymentEventKind, ReconcileOutcome

if TYPE_CHECKING:
    from typing import Any

    from holding.models import HoldingRequest
    from payments.adapters import StripeAdapter


SYSTEM_ACTOR = "system"

# Recorded as meta["via"] on the status change a payment causes
PAYMENT_CAUSE = "payment.holding_paid"

# Stripe event type -> normalised kind
STRIPE_EVENT_KINDS = {
    "payment_intent.succeeded": PaymentEventKind.CONFIRMED,
    "charge.succeeded": PaymentEventKind.CONFIRMED,
    "payment_intent.processing": PaymentEventKind.PROCESSING,
    "payment_intent.payment_failed": PaymentEventKind.FAILED,
    "charge.failed": PaymentEventKind.FAILED,
}

HOLDING_METADATA_KEY = "holdingId"


class PaymentEventReconciler(BaseService):
    """
    Applies payment events to HoldingRequest and Application.

    Args:
        payment_client: Object with retrieve_payment_intent(), normally a
            payments.adapters.StripeAdapter
        manager: Hold persistence (default HoldingRequestManager)
        state_machine: Application status writer
            (default ApplicationStateMachine)
    """

    def __init__(
        self,
        payment_client: StripeAdapter,
        manager: HoldingRequestManager | None = None,
        state_machine: ApplicationStateMachine | None = None,
    ):
        self.payment_client = payment_client
        self.manager = manager or HoldingRequestManager()
        self.state_machine = state_machine or ApplicationStateMachine()

    # =========================================================================
    # Event parsing
    # =========================================================================

    def event_from_stripe(self, payload: dict[str, Any]) -> PaymentEvent | None:
        """
        Build a PaymentEvent from a Stripe event payload.

        payment_intent objects are read directly; for charge objects the
        PaymentIntent is fetched through the payment client, since only
        the intent carries the holding metadata.

        Returns:
            PaymentEvent, or None if the event is not about a PaymentIntent

        Raises:
            StripeError: If fetching the PaymentIntent fails
        """
        kind = STRIPE_EVENT_KINDS.get(payload.get("type"))
        obj = (payload.get("data") or {}).get("object") or {}
        stripe_event_id = payload.get("id")
        if kind is None:
            return None

        object_type = obj.get("object")
        if object_type == "payment_intent":
            intent_id = obj.get("id")
            metadata = obj.get("metadata") or {}
            amount_received = obj.get("amount_received")
            failure = (obj.get("last_payment_error") or {}).get("message")
        elif object_type == "charge":
            intent_id = obj.get("payment_intent")
            if not intent_id:
                return None
            intent = self.payment_client.retrieve_payment_intent(
                intent_id, trace_id=stripe_event_id
            )
            metadata = intent.metadata
            amount_received = intent.amount_received
            failure = obj.get("failure_message")
        else:
            return None

        return PaymentEvent(
            kind=kind,
            holding_id=metadata.get(HOLDING_METADATA_KEY) or None,
            amount_confirmed=amount_received,
            payment_intent_id=intent_id,
            stripe_event_id=stripe_event_id,
            failure_message=failure,
        )

    def reconcile(self, event: PaymentEvent) -> ReconcileOutcome:
        """Route an event to the handler for its kind."""
        if event.kind is PaymentEventKind.CONFIRMED:
            return self.on_payment_confirmed(event)
        if event.kind is PaymentEventKind.FAILED:
            return self.on_payment_failed(event)
        return self.on_payment_processing(event)

    # =========================================================================
    # Handlers
    # =========================================================================

    def on_payment_confirmed(self, event: PaymentEvent) -> ReconcileOutcome:
        """
        Apply a payment confirmation.

        Returns:
            IGNORED: no holding id on the event
            UNKNOWN_HOLD: no hold with that token
            STALE_HOLD: the hold was canceled before the payment landed
            ALREADY_APPLIED: redelivery of an applied confirmation
            ANOMALY: hold paid but the application was no longer waiting
                on payment, recorded once per hold even when the first
                delivery crashed before reaching the application
            APPLIED: hold paid and application advanced
        """
        logger = self.get_logger()
        log_context = self._log_context(event)

        if not event.holding_id:
            logger.debug("Payment event without holding id", extra=log_context)
            return ReconcileOutcome.IGNORED

        try:
            result = self.manager.mark_paid(
                event.holding_id,
                event.amount_confirmed,
                payment_intent_id=event.payment_intent_id,
            )
        except HoldNotFoundError:
            logger.warning("Payment for unknown holding request", extra=log_context)
            return ReconcileOutcome.UNKNOWN_HOLD
        except HoldNotPayableError as e:
            self.state_machine.record(
                e.details["application_id"],
                SYSTEM_ACTOR,
                TimelineEvent.HOLDING_PAID_STALE,
                meta=self._timeline_meta(event, hold_status=e.details["status"]),
            )
            logger.warning(
                "Payment for holding request that is no longer pending",
                extra={**log_context, "hold_status": e.details["status"]},
            )
            return ReconcileOutcome.STALE_HOLD

        hold = result.hold
        outcome = self._advance_application(hold, event)

        if result.already_applied:
            if outcome is AdvanceOutcome.APPLIED:
                logger.info(
                    "Completed application advance for paid hold",
                    extra=log_context,
                )
                return ReconcileOutcome.APPLIED
            if (
                outcome is AdvanceOutcome.INCOMPATIBLE
                and not self._payment_accounted_for(hold)
            ):
                return self._record_unapplied(hold, event)
            return ReconcileOutcome.ALREADY_APPLIED

        if outcome is AdvanceOutcome.INCOMPATIBLE:
            return self._record_unapplied(hold, event)

        return ReconcileOutcome.APPLIED

    def on_payment_failed(self, event: PaymentEvent) -> ReconcileOutcome:
        """Record a failed payment on the application timeline."""
        return self._record_notice(event, TimelineEvent.HOLDING_FAILED)

    def on_payment_processing(self, event: PaymentEvent) -> ReconcileOutcome:
        """Record that a (bank) payment is in flight."""
        return self._record_notice(event, TimelineEvent.HOLDING_PROCESSING)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _advance_application(
        self,
        hold: HoldingRequest,
        event: PaymentEvent,
    ) -> AdvanceOutcome:
        return self.state_machine.advance(
            hold.application_id,
            expected_current_any=[ApplicationStatus.APPROVED_PENDING_PAYMENT],
            new_status=ApplicationStatus.APPROVED_PENDING_LEASE,
            actor=SYSTEM_ACTOR,
            cause=PAYMENT_CAUSE,
            meta=self._timeline_meta(event, minimum_due=hold.minimum_due),
        )

    def _record_unapplied(
        self,
        hold: HoldingRequest,
        event: PaymentEvent,
    ) -> ReconcileOutcome:
        application_status = (
            Application.objects.filter(id=hold.application_id)
            .values_list("status", flat=True)
            .first()
        )
        self.state_machine.record(
            hold.application_id,
            SYSTEM_ACTOR,
            TimelineEvent.HOLDING_PAID_UNAPPLIED,
            meta=self._timeline_meta(event, application_status=application_status),
        )
        self.get_logger().warning(
            "Holding deposit paid but application is not awaiting payment",
            extra={
                **self._log_context(event),
                "application_status": application_status,
            },
        )
        return ReconcileOutcome.ANOMALY

    @staticmethod
    def _payment_accounted_for(hold: HoldingRequest) -> bool:
        """
        Whether the timeline already explains this paid hold.

        True once the payment advanced the application or was recorded
        as unapplied; a paid hold with neither was interrupted before
        the application could be updated.
        """
        return ApplicationTimelineEntry.objects.filter(
            Q(event=TimelineEvent.STATUS_CHANGE, meta__via=PAYMENT_CAUSE)
            | Q(event=TimelineEvent.HOLDING_PAID_UNAPPLIED),
            application_id=hold.application_id,
            meta__token=hold.token,
        ).exists()

    def _record_notice(self, event: PaymentEvent, timeline_event: str) -> ReconcileOutcome:
        if not event.holding_id:
            return ReconcileOutcome.IGNORED

        hold = self.manager.get(event.holding_id)
        if hold is None:
            self.get_logger().warning(
                "Payment notice for unknown holding request",
                extra=self._log_context(event),
            )
            return ReconcileOutcome.UNKNOWN_HOLD

        self.state_machine.record(
            hold.application_id,
            SYSTEM_ACTOR,
            timeline_event,
            meta=self._timeline_meta(event, failure_message=event.failure_message),
        )
        return ReconcileOutcome.RECORDED

    @staticmethod
    def _timeline_meta(event: PaymentEvent, **extra) -> dict[str, Any]:
        meta = {
            "token": event.holding_id,
            "payment_intent_id": event.payment_intent_id,
            "amount_confirmed": event.amount_confirmed,
        }
        meta.update({key: value for key, value in extra.items() if value is not None})
        return meta

    @staticmethod
    def _log_context(event: PaymentEvent) -> dict[str, Any]:
        return {
            "holding_id": event.holding_id,
            "payment_intent_id": event.payment_intent_id,
            "stripe_event_id": event.stripe_event_id,
            "event_kind": event.kind.value,
        }
