"""
Django app configuration for warehouses.
"""

from django.apps import AppConfig


class WarehousesConfig(AppConfig):
    """Configuration for the warehouses application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "warehouses"
    verbose_name = "Warehouses"
