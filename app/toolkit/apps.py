"""Django app configuration for toolkit."""

from django.apps import AppConfig


class ToolkitConfig(AppConfig):
    """Registers toolkit so its Celery tasks are autodiscovered."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "toolkit"
    verbose_name = "Toolkit"
