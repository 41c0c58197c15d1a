"""
Holding request status definitions.

Status Flow:
    pending -> paid       (processor confirmed the deposit)
    pending -> canceled   (hold removed or superseded)

paid and canceled are terminal.
"""

from django.db import models


class HoldingStatus(models.TextChoices):
    """Status of a holding deposit request."""

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    CANCELED = "canceled", "Canceled"


# Statuses that count towards the one-hold-per-(application, firm) rule
ACTIVE_HOLDING_STATUSES = [HoldingStatus.PENDING, HoldingStatus.PAID]
