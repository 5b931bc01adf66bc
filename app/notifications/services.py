"""
Customer notifications for the booking lifecycle.

Services:
    BookingNotificationService: Booking confirmation and rent reminders

Delivery is best-effort: a notification that cannot be queued is logged
and reported as False, never raised, so it cannot roll back or retry the
payment work that triggered it.

Each notification is de-duplicated through the cache. The first caller to
add the key sends; anyone else within NOTIFICATION_DEDUP_TTL_SECONDS is a
no-op. Verification and reconciliation can both settle the same booking,
so both may ask for the confirmation.

Usage:
    from notifications.services import BookingNotificationService

    BookingNotificationService.send_booking_confirmation(order)
    BookingNotificationService.send_payment_reminder(order)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.cache import cache

from core.services import BaseService
from toolkit.services import EmailService

if TYPE_CHECKING:
    from payments.models import Order

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION_TEMPLATE = "notifications/email/booking_confirmation"
PAYMENT_REMINDER_TEMPLATE = "notifications/email/payment_reminder"


class BookingNotificationService(BaseService):
    """
    Emails the customer about their order.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def send_booking_confirmation(cls, order: Order) -> bool:
        """
        Tell the customer their booking is paid.

        Returns:
            True if the email was queued by this call
        """
        return cls._notify(
            order,
            kind="booking_confirmation",
            dedup_key=f"notifications:booking_confirmation:{order.id}",
            subject=f"Booking confirmed: {order.warehouse.name}",
            template_name=BOOKING_CONFIRMATION_TEMPLATE,
            context=cls._order_context(order),
        )

    @classmethod
    def send_payment_reminder(cls, order: Order) -> bool:
        """
        Remind the customer that the next rent month is due soon.

        One reminder per order per countdown day.

        Returns:
            True if the email was queued by this call
        """
        entry = order.first_unpaid_entry()
        if entry is None:
            return False

        days_left = order.payment_day or 0
        context = cls._order_context(order)
        context.update(
            {
                "days_left": days_left,
                "month_label": entry.label,
                "amount_due": str(entry.amount),
            }
        )
        return cls._notify(
            order,
            kind="payment_reminder",
            dedup_key=f"notifications:payment_reminder:{order.id}:{entry.sequence}:{days_left}",
            subject=f"Rent due in {days_left} day(s): {order.warehouse.name}",
            template_name=PAYMENT_REMINDER_TEMPLATE,
            context=context,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _order_context(cls, order: Order) -> dict:
        customer = order.customer
        return {
            "customer_name": customer.get_full_name() or customer.email,
            "order_code": order.order_code,
            "warehouse_name": order.warehouse.name,
            "listing_type": order.listing_type,
            "total_amount": str(order.total_amount),
            "duration_months": order.duration_months,
        }

    @classmethod
    def _notify(
        cls,
        order: Order,
        kind: str,
        dedup_key: str,
        subject: str,
        template_name: str,
        context: dict,
    ) -> bool:
        log_extra = {"order_id": str(order.id), "notification": kind}

        email = order.customer.email
        if not email:
            logger.info("Notification skipped: customer has no email", extra=log_extra)
            return False

        added = False
        try:
            added = cache.add(dedup_key, 1, settings.NOTIFICATION_DEDUP_TTL_SECONDS)
            if not added:
                logger.debug("Notification already sent", extra=log_extra)
                return False

            EmailService.send_async(
                to=email,
                subject=subject,
                template_name=template_name,
                context=context,
            )
        except Exception:
            logger.exception("Notification could not be queued", extra=log_extra)
            if added:
                # Let the next trigger try again
                cache.delete(dedup_key)
            return False

        logger.info("Notification queued", extra=log_extra)
        return True


__all__ = ["BookingNotificationService"]
