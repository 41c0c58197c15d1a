"""
Application status definitions.

Status Flow:
    draft -> submitted -> approved_ready_to_lease       (no holding deposit)
                       -> approved_pending_payment      (holding deposit due)
    approved_pending_payment <-> approved_ready_to_lease (hold reconfigured)
    approved_pending_payment -> approved_pending_lease  (deposit confirmed)
    approved_pending_lease -> countersigned -> occupied

    submitted -> rejected | withdrawn
"""

from django.db import models


class ApplicationStatus(models.TextChoices):
    """
    Lifecycle status of a rental application.

    The holding workflow only moves applications between the approved_*
    states; the other values are owned by the wider leasing flow.
    """

    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Submitted"
    APPROVED_PENDING_PAYMENT = "approved_pending_payment", "Approved - Pending Payment"
    APPROVED_READY_TO_LEASE = "approved_ready_to_lease", "Approved - Ready to Lease"
    APPROVED_PENDING_LEASE = "approved_pending_lease", "Approved - Pending Lease"
    REJECTED = "rejected", "Rejected"
    WITHDRAWN = "withdrawn", "Withdrawn"
    COUNTERSIGNED = "countersigned", "Countersigned"
    OCCUPIED = "occupied", "Occupied"


class TimelineEvent:
    """Event names written to the application timeline."""

    STATUS_CHANGE = "status.change"
    HOLDING_PAID_UNAPPLIED = "payment.holding_paid_unapplied"
    HOLDING_PAID_STALE = "payment.holding_paid_stale"
    HOLDING_PROCESSING = "payment.holding_processing"
    HOLDING_FAILED = "payment.holding_failed"
