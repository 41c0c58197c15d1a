# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, the WSGI application and the Celery app.
#
# The Celery app is imported here so that shared_task decorators bind to it
# and tasks in every installed app are discovered when Django starts.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
