"""
HoldingRequest model.

A HoldingRequest is the holding deposit a household must pay before an
approved application can move on to lease preparation. At most one
pending-or-paid request exists per (application, firm); the database
enforces this with a partial unique constraint so concurrent setup calls
converge on a single row.

Usage:
    from holding.models import HoldingRequest
    from holding.states import HoldingStatus

    hold = HoldingRequest.objects.get(token=token)
    hold.mark_paid(amount_confirmed=100000)  # pending -> paid
    hold.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.helpers import generate_url_token
from core.model_mixins import MetadataMixin
from core.models import BaseModel
from holding.states import ACTIVE_HOLDING_STATUSES, HoldingStatus
from holding.types import HoldingAmounts


def new_hold_token() -> str:
    """Mint an opaque, URL-safe hold token."""
    return generate_url_token(nbytes=16, prefix="hold_")


class HoldingRequest(MetadataMixin, BaseModel):
    """
    A holding deposit for one application at one firm.

    The token is both the primary key and the public pay-link
    identifier, so it is unguessable.

    State Flow:
        PENDING -> PAID
        PENDING -> CANCELED

    Fields:
        token: Opaque identifier (hold_xxx), primary key
        application: Application gated by this deposit
        firm: Firm collecting the deposit
        household_id: Paying household
        monthly_rent: Rent the caps were computed against
        amount_first/last/security/key: Deposit components
        total: Sum of the components
        minimum_due: Amount that unblocks the application (0 < x <= total)
        amount_confirmed: Amount the processor reported as received
        status: pending, paid or canceled (managed by FSM)

    Note:
        Once paid, only paid_at/updated_at/metadata ever change.
        All amounts are integer minor currency units.
    """

    token = models.CharField(
        primary_key=True,
        max_length=64,
        default=new_hold_token,
        editable=False,
        help_text="Opaque hold token used in the pay link",
    )

    application = models.ForeignKey(
        "applications.Application",
        on_delete=models.PROTECT,
        related_name="holding_requests",
    )

    firm = models.ForeignKey(
        "firms.Firm",
        on_delete=models.PROTECT,
        related_name="holding_requests",
    )

    household_id = models.UUIDField(
        db_index=True,
        help_text="Household expected to pay the deposit",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    monthly_rent = models.PositiveIntegerField(
        help_text="Monthly rent the caps were validated against",
    )

    amount_first = models.PositiveIntegerField(default=0)
    amount_last = models.PositiveIntegerField(default=0)
    amount_security = models.PositiveIntegerField(default=0)
    amount_key = models.PositiveIntegerField(default=0)

    total = models.PositiveIntegerField(
        help_text="Sum of the four deposit components",
    )

    minimum_due = models.PositiveIntegerField(
        help_text="Amount that must be paid to unblock the application",
    )

    amount_confirmed = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Amount confirmed by the payment processor",
    )

    # ==========================================================================
    # Status
    # ==========================================================================

    status = FSMField(
        default=HoldingStatus.PENDING,
        choices=HoldingStatus.choices,
        db_index=True,
        help_text="Current status of the hold (managed by FSM)",
    )

    payment_intent_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe PaymentIntent that paid this hold",
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Holding Request"
        verbose_name_plural = "Holding Requests"
        indexes = [
            models.Index(
                fields=["application", "firm", "status"],
                name="holding_app_firm_status_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["application", "firm"],
                condition=models.Q(status__in=ACTIVE_HOLDING_STATUSES),
                name="holding_request_one_active_per_application",
            ),
            models.CheckConstraint(
                condition=models.Q(minimum_due__gt=0),
                name="holding_request_minimum_due_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(minimum_due__lte=models.F("total")),
                name="holding_request_minimum_due_within_total",
            ),
        ]

    def __str__(self) -> str:
        return f"HoldingRequest({self.token}, {self.status}, {self.total})"

    @property
    def amounts(self) -> HoldingAmounts:
        return HoldingAmounts(
            first=self.amount_first,
            last=self.amount_last,
            security=self.amount_security,
            key=self.amount_key,
        )

    @property
    def pay_url(self) -> str:
        """Client-facing payment link for this hold."""
        return settings.HOLDING_PAY_URL_TEMPLATE.format(token=self.token)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=HoldingStatus.PENDING,
        target=HoldingStatus.PAID,
    )
    def mark_paid(
        self,
        amount_confirmed: int | None = None,
        payment_intent_id: str | None = None,
    ):
        """
        Record the processor's payment confirmation.

        Transition: PENDING -> PAID
        """
        self.paid_at = timezone.now()
        self.amount_confirmed = amount_confirmed
        if payment_intent_id:
            self.payment_intent_id = payment_intent_id

    @transition(
        field=status,
        source=HoldingStatus.PENDING,
        target=HoldingStatus.CANCELED,
    )
    def cancel(self):
        """
        Withdraw the hold.

        Transition: PENDING -> CANCELED

        Frees the (application, firm) slot for a new hold.
        """
        self.canceled_at = timezone.now()
