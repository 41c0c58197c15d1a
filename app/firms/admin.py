"""Firm admin configuration."""

from django.contrib import admin

from firms.models import Firm, FirmMembership


class FirmMembershipInline(admin.TabularInline):
    model = FirmMembership
    extra = 0
    fields = ["user", "role", "active", "created_at"]
    readonly_fields = ["created_at"]
    raw_id_fields = ["user"]


@admin.register(Firm)
class FirmAdmin(admin.ModelAdmin):
    """
    Admin configuration for Firm.

    Payment-account status is driven by Stripe account.updated webhooks
    and is read-only here.
    """

    list_display = [
        "id",
        "name",
        "stripe_account_id",
        "payment_account_status",
        "created_at",
    ]
    list_filter = ["payment_account_status"]
    search_fields = ["id", "name", "stripe_account_id"]
    readonly_fields = [
        "id",
        "payment_account_status",
        "metadata",
        "created_at",
        "updated_at",
    ]
    inlines = [FirmMembershipInline]


@admin.register(FirmMembership)
class FirmMembershipAdmin(admin.ModelAdmin):
    list_display = ["id", "firm", "user", "role", "active", "created_at"]
    list_filter = ["role", "active"]
    search_fields = ["firm__name", "user__username", "user__email"]
    raw_id_fields = ["firm", "user"]
    readonly_fields = ["id", "created_at", "updated_at"]
