# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, the WSGI entry point and the Celery application for the
# warehouse marketplace backend.
#
# The Celery app is imported here so shared_task binds to it at startup and
# the reconciliation tasks in payments are registered with the worker.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
