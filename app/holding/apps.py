"""Holding app configuration."""

from django.apps import AppConfig


class HoldingConfig(AppConfig):
    """Configuration for the holding application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "holding"
    verbose_name = "Holding Deposits"
