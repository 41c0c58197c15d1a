"""Holding request admin configuration."""

from django.contrib import admin

from holding.models import HoldingRequest


@admin.register(HoldingRequest)
class HoldingRequestAdmin(admin.ModelAdmin):
    """
    Admin configuration for HoldingRequest.

    Status and payment fields are written only by the holding services
    and the payment webhook, so they are read-only here.
    """

    list_display = [
        "token",
        "application",
        "firm",
        "status",
        "total",
        "minimum_due",
        "amount_confirmed",
        "paid_at",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["token", "application__id", "firm__name", "payment_intent_id"]
    raw_id_fields = ["application", "firm"]
    readonly_fields = [
        "token",
        "status",
        "amount_confirmed",
        "payment_intent_id",
        "paid_at",
        "canceled_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"

    fieldsets = (
        (
            None,
            {
                "fields": ("token", "application", "firm", "household_id", "status"),
            },
        ),
        (
            "Amounts",
            {
                "fields": (
                    "monthly_rent",
                    "amount_first",
                    "amount_last",
                    "amount_security",
                    "amount_key",
                    "total",
                    "minimum_due",
                ),
            },
        ),
        (
            "Payment",
            {
                "fields": (
                    "amount_confirmed",
                    "payment_intent_id",
                    "paid_at",
                    "canceled_at",
                ),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )
