"""
Holding request persistence.

HoldingRequestManager owns every write to HoldingRequest. Each operation
touches exactly one row under a row lock, and the "one active hold per
(application, firm)" rule is arbitrated by the partial unique constraint
on HoldingRequest, so concurrent callers always converge on one row.

Usage:
    manager = HoldingRequestManager()
    hold = manager.upsert(app_id, firm_id, household_id, terms)
    manager.attach_payment_intent(hold.token, "pi_xxx")
    result = manager.mark_paid(hold.token, confirmed_amount=100000)
    if result.already_applied:
        ...  # redelivered confirmation, nothing else to do
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction

from core.services import BaseService
from holding.exceptions import (
    HoldAlreadyPaidError,
    HoldNotFoundError,
    HoldNotPayableError,
)
from holding.models import HoldingRequest
from holding.states import ACTIVE_HOLDING_STATUSES, HoldingStatus
from holding.types import MarkPaidResult

if TYPE_CHECKING:
    from uuid import UUID

    from holding.types import HoldingTerms


# One retry covers losing a single insert race; the row then exists
UPSERT_ATTEMPTS = 2

TERM_FIELDS = [
    "monthly_rent",
    "amount_first",
    "amount_last",
    "amount_security",
    "amount_key",
    "total",
    "minimum_due",
    "household_id",
    "updated_at",
]


class HoldingRequestManager(BaseService):
    """Race-safe reads and writes of HoldingRequest rows."""

    def get_active(self, app_id: UUID, firm_id: UUID) -> HoldingRequest | None:
        """Return the pending or paid hold for the pair, if any."""
        return HoldingRequest.objects.filter(
            application_id=app_id,
            firm_id=firm_id,
            status__in=ACTIVE_HOLDING_STATUSES,
        ).first()

    def get(self, token: str) -> HoldingRequest | None:
        """Return the hold with this token regardless of status."""
        return HoldingRequest.objects.filter(token=token).first()

    def get_payable(self, token: str) -> HoldingRequest | None:
        """Return the hold for a pay link, only while it is still pending."""
        return HoldingRequest.objects.select_related("firm").filter(
            token=token,
            status=HoldingStatus.PENDING,
        ).first()

    def upsert(
        self,
        app_id: UUID,
        firm_id: UUID,
        household_id: UUID,
        terms: HoldingTerms,
    ) -> HoldingRequest:
        """
        Insert a pending hold, or overwrite the terms of the pending one.

        A pending hold keeps its token so pay links already sent stay
        valid. A paid hold is final.

        Args:
            app_id: Application UUID
            firm_id: Firm UUID
            household_id: Paying household UUID
            terms: Rent, components and minimum due to store

        Returns:
            The pending HoldingRequest

        Raises:
            HoldAlreadyPaidError: If the pair already has a paid hold
        """
        logger = self.get_logger()

        for attempt in range(1, UPSERT_ATTEMPTS + 1):
            with self.atomic():
                hold = (
                    HoldingRequest.objects.select_for_update()
                    .filter(
                        application_id=app_id,
                        firm_id=firm_id,
                        status__in=ACTIVE_HOLDING_STATUSES,
                    )
                    .first()
                )

                if hold is not None:
                    if hold.status == HoldingStatus.PAID:
                        raise HoldAlreadyPaidError(
                            "Holding deposit already paid",
                            details={"token": hold.token},
                        )
                    self._apply_terms(hold, household_id, terms)
                    hold.save(update_fields=TERM_FIELDS)
                    logger.info(
                        "Holding request updated",
                        extra={
                            "token": hold.token,
                            "application_id": str(app_id),
                            "total": hold.total,
                            "minimum_due": hold.minimum_due,
                        },
                    )
                    return hold

                hold = HoldingRequest(application_id=app_id, firm_id=firm_id)
                self._apply_terms(hold, household_id, terms)
                try:
                    with transaction.atomic():
                        hold.save(force_insert=True)
                except IntegrityError:
                    if attempt == UPSERT_ATTEMPTS:
                        raise
                    logger.info(
                        "Concurrent holding request insert, retrying as update",
                        extra={"application_id": str(app_id), "firm_id": str(firm_id)},
                    )
                    continue

                logger.info(
                    "Holding request created",
                    extra={
                        "token": hold.token,
                        "application_id": str(app_id),
                        "total": hold.total,
                        "minimum_due": hold.minimum_due,
                    },
                )
                return hold

    def cancel_pending(self, app_id: UUID, firm_id: UUID) -> bool:
        """
        Cancel the pending hold for the pair.

        Returns:
            True if a hold was canceled, False if there was nothing pending
        """
        with self.atomic():
            hold = (
                HoldingRequest.objects.select_for_update()
                .filter(
                    application_id=app_id,
                    firm_id=firm_id,
                    status=HoldingStatus.PENDING,
                )
                .first()
            )
            if hold is None:
                return False

            hold.cancel()
            hold.save(update_fields=["status", "canceled_at", "updated_at"])

        self.get_logger().info(
            "Holding request canceled",
            extra={"token": hold.token, "application_id": str(app_id)},
        )
        return True

    def attach_payment_intent(
        self,
        token: str,
        payment_intent_id: str,
    ) -> HoldingRequest:
        """
        Remember the PaymentIntent opened for a pending hold.

        Raises:
            HoldNotFoundError: If no hold has this token
            HoldNotPayableError: If the hold is no longer pending
        """
        with self.atomic():
            hold = HoldingRequest.objects.select_for_update().filter(token=token).first()
            if hold is None:
                raise HoldNotFoundError(
                    f"Holding request {token} not found",
                    details={"token": token},
                )
            if hold.status != HoldingStatus.PENDING:
                raise HoldNotPayableError(
                    "Holding request is not payable",
                    details={
                        "token": token,
                        "status": hold.status,
                        "application_id": str(hold.application_id),
                    },
                )

            hold.payment_intent_id = payment_intent_id
            hold.save(update_fields=["payment_intent_id", "updated_at"])

        self.get_logger().info(
            "Payment intent attached to holding request",
            extra={"token": token, "payment_intent_id": payment_intent_id},
        )
        return hold

    def mark_paid(
        self,
        token: str,
        confirmed_amount: int | None,
        payment_intent_id: str | None = None,
    ) -> MarkPaidResult:
        """
        Move a hold from pending to paid.

        Repeating the call for a paid hold is a no-op reported through
        already_applied, so redelivered confirmations are harmless.

        Raises:
            HoldNotFoundError: If no hold has this token
            HoldNotPayableError: If the hold was canceled
        """
        with self.atomic():
            hold = HoldingRequest.objects.select_for_update().filter(token=token).first()
            if hold is None:
                raise HoldNotFoundError(
                    f"Holding request {token} not found",
                    details={"token": token},
                )

            if hold.status == HoldingStatus.PAID:
                return MarkPaidResult(hold=hold, already_applied=True)

            if hold.status != HoldingStatus.PENDING:
                raise HoldNotPayableError(
                    "Holding request is not payable",
                    details={
                        "token": token,
                        "status": hold.status,
                        "application_id": str(hold.application_id),
                    },
                )

            hold.mark_paid(
                amount_confirmed=confirmed_amount,
                payment_intent_id=payment_intent_id,
            )
            hold.save(
                update_fields=[
                    "status",
                    "paid_at",
                    "amount_confirmed",
                    "payment_intent_id",
                    "updated_at",
                ]
            )

        self.get_logger().info(
            "Holding request paid",
            extra={
                "token": token,
                "application_id": str(hold.application_id),
                "amount_confirmed": confirmed_amount,
            },
        )
        return MarkPaidResult(hold=hold, already_applied=False)

    @staticmethod
    def _apply_terms(
        hold: HoldingRequest,
        household_id: UUID,
        terms: HoldingTerms,
    ) -> None:
        hold.household_id = household_id
        hold.monthly_rent = terms.monthly_rent
        hold.amount_first = terms.amounts.first
        hold.amount_last = terms.amounts.last
        hold.amount_security = terms.amounts.security
        hold.amount_key = terms.amounts.key
        hold.total = terms.total
        hold.minimum_due = terms.minimum_due
