"""
Rent-cycle worker: daily countdown to the next rent payment.

Every active rental (COMPLETED order with at least one UNPAID month) carries
payment_day, the number of days until its next payment is due. Verification
resets it to the warehouse's payment_due_days each time a month is paid;
this sweep counts it down by one per day and reminds the customer once it
reaches RENT_REMINDER_THRESHOLD_DAYS.

Tasks:
- run_rent_cycle_sweep: Daily celery-beat task (created by migration 0002)

Usage:
    from payments.workers import run_rent_cycle_sweep

    run_rent_cycle_sweep.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings
from django.db.models import F
from django.utils import timezone

from notifications.services import BookingNotificationService
from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock
from payments.models import Order
from payments.state_machines import MonthlyPaymentStatus, OrderStatus
from warehouses.models import ListingType

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

SWEEP_LOCK_KEY = "rent_cycle_sweep"

# Lock TTL for the whole sweep (seconds)
SWEEP_LOCK_TTL = 600

# Orders loaded per batch when sending reminders
BATCH_SIZE = 200


def active_rentals():
    """Rent orders that are paid up so far but still have months to pay."""
    return Order.objects.filter(
        listing_type=ListingType.RENT,
        status=OrderStatus.COMPLETED,
        monthly_payments__status=MonthlyPaymentStatus.UNPAID,
    ).distinct()


def advance_rent_cycle() -> dict:
    """
    Count payment_day down by one and send due reminders.

    Returns:
        Dict with orders_checked, decremented, reminders_sent counts
    """
    threshold = getattr(settings, "RENT_REMINDER_THRESHOLD_DAYS", 4)

    order_ids = list(active_rentals().values_list("id", flat=True))

    # Floor at zero: rows already at 0 are left alone
    decremented = Order.objects.filter(id__in=order_ids, payment_day__gt=0).update(
        payment_day=F("payment_day") - 1,
        updated_at=timezone.now(),
    )

    due = (
        Order.objects.filter(id__in=order_ids, payment_day__lte=threshold)
        .select_related("customer", "warehouse")
        .order_by("payment_day")
    )

    reminders_sent = 0
    for order in due.iterator(chunk_size=BATCH_SIZE):
        if BookingNotificationService.send_payment_reminder(order):
            reminders_sent += 1

    return {
        "orders_checked": len(order_ids),
        "decremented": decremented,
        "reminders_sent": reminders_sent,
    }


# =============================================================================
# Periodic Task: Daily Sweep
# =============================================================================


@shared_task(bind=True)
def run_rent_cycle_sweep(self) -> dict:
    """
    Advance every active rental by one day.

    Single-flight: if beat fires the task on two nodes, the second run
    returns immediately with status "skipped".

    Returns:
        Dict with:
        - status: "completed" or "skipped"
        - orders_checked: Active rentals found
        - decremented: Orders whose payment_day went down
        - reminders_sent: Reminder e-mails actually sent
    """
    logger.info("Starting rent cycle sweep")

    try:
        with DistributedLock(SWEEP_LOCK_KEY, ttl=SWEEP_LOCK_TTL, blocking=False):
            counts = advance_rent_cycle()
    except LockAcquisitionError:
        logger.info("Rent cycle sweep already running, skipping")
        return {"status": "skipped"}

    logger.info(
        f"Rent cycle sweep complete: {counts['reminders_sent']} reminders sent",
        extra=counts,
    )
    return {"status": "completed", **counts}


__all__ = [
    "active_rentals",
    "advance_rent_cycle",
    "run_rent_cycle_sweep",
]
