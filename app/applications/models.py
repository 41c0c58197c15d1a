"""
Application models.

An Application belongs to a household (out of scope here, referenced by
UUID) and is filed against an ApplicationForm, which names the firm that
reviews it. Status changes go through ApplicationStateMachine, which also
appends ApplicationTimelineEntry rows.

Usage:
    from applications.models import Application
    from applications.states import ApplicationStatus

    app = Application.objects.select_related("form__firm").get(id=app_id)
    app.status == ApplicationStatus.SUBMITTED
"""

from __future__ import annotations

import uuid

from django.db import models
from django.utils import timezone

from applications.states import ApplicationStatus
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ApplicationForm(UUIDPrimaryKeyMixin, BaseModel):
    """
    A firm's application form for a listing.

    Fields:
        firm: Firm that owns the form and reviews its applications
        title: Display title (usually the listing address)
    """

    firm = models.ForeignKey(
        "firms.Firm",
        on_delete=models.PROTECT,
        related_name="application_forms",
    )

    title = models.CharField(
        max_length=200,
        blank=True,
        default="",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Application Form"
        verbose_name_plural = "Application Forms"

    def __str__(self) -> str:
        return f"ApplicationForm({self.title or self.id})"


class Application(UUIDPrimaryKeyMixin, BaseModel):
    """
    A household's rental application.

    Fields:
        household_id: Applying household (owned by another service)
        form: The application form this was filed against
        status: Lifecycle status (see applications.states)

    Note:
        Never assign status directly; use ApplicationStateMachine.advance
        so the change is guarded and recorded on the timeline.
    """

    household_id = models.UUIDField(
        default=uuid.uuid4,
        db_index=True,
        help_text="Household that submitted the application",
    )

    form = models.ForeignKey(
        ApplicationForm,
        on_delete=models.PROTECT,
        related_name="applications",
    )

    status = models.CharField(
        max_length=40,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.DRAFT,
        db_index=True,
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Application"
        verbose_name_plural = "Applications"

    def __str__(self) -> str:
        return f"Application({self.id}, {self.status})"

    @property
    def firm_id(self):
        """Firm that reviews this application."""
        return self.form.firm_id


class ApplicationTimelineEntry(models.Model):
    """
    One append-only entry on an application's timeline.

    The auto-increment id doubles as the sequence number, so entries with
    the same timestamp keep their insertion order.

    Fields:
        application: The application this entry belongs to
        at: When the event happened
        by: Actor identifier (user id, or "system:<source>")
        event: Event name, e.g. "status.change"
        meta: Event details, e.g. {"from": ..., "to": ..., "via": ...}
    """

    application = models.ForeignKey(
        Application,
        on_delete=models.CASCADE,
        related_name="timeline",
    )

    at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
    )

    by = models.CharField(
        max_length=64,
        help_text="Actor identifier",
    )

    event = models.CharField(
        max_length=64,
        db_index=True,
    )

    meta = models.JSONField(
        default=dict,
        blank=True,
    )

    class Meta:
        ordering = ["at", "id"]
        verbose_name = "Timeline Entry"
        verbose_name_plural = "Timeline Entries"

    def __str__(self) -> str:
        return f"TimelineEntry({self.event} by {self.by})"
