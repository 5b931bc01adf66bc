"""
Payments app configuration.

This app provides the booking payment lifecycle:
- Order creation with optimistic warehouse reservation
- Razorpay checkout and signature verification
- Delayed reconciliation of unpaid bookings and rent payments
- Manual partner payout recording
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        from payments.scheduler import build_scheduler

        self.scheduler = build_scheduler()
