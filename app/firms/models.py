"""
Firm and FirmMembership models.

A Firm owns application forms (and therefore applications) and collects
holding deposits through a Stripe connected account. FirmMembership grants
users a role inside a firm; only active memberships with a holding role may
configure holding deposits.

Usage:
    from firms.models import Firm, FirmMembership, FirmRole

    firm = Firm.objects.create(name="Beacon Street Realty")
    FirmMembership.objects.create(firm=firm, user=user, role=FirmRole.MANAGER)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel


class FirmRole(models.TextChoices):
    """Roles a user can hold inside a firm."""

    OWNER = "owner", "Owner"
    ADMIN = "admin", "Admin"
    MANAGER = "manager", "Manager"
    AGENT = "agent", "Agent"


class PaymentAccountStatus(models.TextChoices):
    """
    State of the firm's Stripe connected account.

    Updated from account.updated webhooks only. Tenants can pay holds
    only while the account is active.
    """

    NOT_CONNECTED = "not_connected", "Not Connected"
    PENDING = "pending", "Pending"
    ACTIVE = "active", "Active"
    RESTRICTED = "restricted", "Restricted"


class Firm(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    A landlord firm.

    Fields:
        name: Display name
        stripe_account_id: Stripe Connect account (acct_xxx), if connected
        payment_account_status: Last known connected-account status
        metadata: Processor snapshots (requirements due, disabled reason)
    """

    name = models.CharField(
        max_length=200,
        help_text="Firm display name",
    )

    stripe_account_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Connect account ID (acct_xxx)",
    )

    payment_account_status = models.CharField(
        max_length=20,
        choices=PaymentAccountStatus.choices,
        default=PaymentAccountStatus.NOT_CONNECTED,
        help_text="Status of the firm's Stripe connected account",
    )

    class Meta:
        ordering = ["name"]
        verbose_name = "Firm"
        verbose_name_plural = "Firms"

    def __str__(self) -> str:
        return f"Firm({self.name})"


class FirmMembership(UUIDPrimaryKeyMixin, BaseModel):
    """
    A user's membership in a firm.

    Fields:
        firm: The firm
        user: The member
        role: Member role (owner, admin, manager, agent)
        active: Inactive memberships grant nothing
    """

    firm = models.ForeignKey(
        Firm,
        on_delete=models.CASCADE,
        related_name="memberships",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="firm_memberships",
    )

    role = models.CharField(
        max_length=20,
        choices=FirmRole.choices,
        default=FirmRole.AGENT,
    )

    active = models.BooleanField(
        default=True,
        db_index=True,
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Firm Membership"
        verbose_name_plural = "Firm Memberships"
        constraints = [
            models.UniqueConstraint(
                fields=["firm", "user"],
                name="firm_membership_unique_user",
            ),
        ]

    def __str__(self) -> str:
        state = "active" if self.active else "inactive"
        return f"FirmMembership({self.user_id}, {self.role}, {state})"
