"""
Celery configuration for the Django application.

Celery runs the payment background work:
- Delayed reconciliation jobs (release unpaid bookings and rent cycles)
- Periodic sweeps (daily rent-cycle countdown, stalled-job recovery)

Periodic schedules are stored in the database by django-celery-beat and
created by the payments data migrations.

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    # Schedule reconciliation through the payments scheduler, not the task:
    from payments.scheduler import get_scheduler

    get_scheduler().schedule("order_reconciliation", payload, delay=300)

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Create Celery application instance
# The name should match the Django project name
app = Celery("config")

# Load configuration from Django settings
# All Celery settings should be prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all registered Django apps
app.autodiscover_tasks()
