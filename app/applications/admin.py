"""Application admin configuration."""

from django.contrib import admin

from applications.models import Application, ApplicationForm, ApplicationTimelineEntry


class ApplicationTimelineEntryInline(admin.TabularInline):
    """Timeline entries are append-only; the inline is view-only."""

    model = ApplicationTimelineEntry
    extra = 0
    fields = ["at", "by", "event", "meta"]
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ApplicationForm)
class ApplicationFormAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "firm", "created_at"]
    search_fields = ["id", "title", "firm__name"]
    raw_id_fields = ["firm"]


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    """
    Admin configuration for Application.

    Status is read-only: changes must go through ApplicationStateMachine
    so they land on the timeline.
    """

    list_display = ["id", "household_id", "form", "status", "updated_at"]
    list_filter = ["status", "created_at"]
    search_fields = ["id", "household_id"]
    readonly_fields = ["id", "status", "created_at", "updated_at"]
    raw_id_fields = ["form"]
    inlines = [ApplicationTimelineEntryInline]
