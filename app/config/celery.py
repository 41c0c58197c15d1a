"""
Celery configuration for the Django application.

Celery runs the asynchronous side of the holding workflow:
- Processing stored Stripe webhook events (payments.tasks)
- Periodically re-queueing failed webhook events (celery beat)

Redis is the message broker and result backend. Tasks are auto-discovered
from all installed Django apps.

Usage:
    from payments.tasks import process_webhook_event

    process_webhook_event.delay(str(webhook_event.id))

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
