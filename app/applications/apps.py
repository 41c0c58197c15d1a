"""Applications app configuration."""

from django.apps import AppConfig


class ApplicationsConfig(AppConfig):
    """Configuration for the applications application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "applications"
    verbose_name = "Applications"
