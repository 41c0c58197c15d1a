"""Firms app configuration."""

from django.apps import AppConfig


class FirmsConfig(AppConfig):
    """Configuration for the firms application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "firms"
    verbose_name = "Firms"
