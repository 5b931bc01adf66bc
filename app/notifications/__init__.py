"""
Notifications app: customer emails about bookings and rent.

This app provides:
- BookingNotificationService for booking confirmations and rent reminders
- Email templates under templates/notifications/email/

Usage:
    from notifications.services import BookingNotificationService

    BookingNotificationService.send_booking_confirmation(order)
"""
