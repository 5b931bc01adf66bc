"""
Payments app for warehouse bookings.

This app handles:
- Orders, monthly rent entries and gateway transactions
- Razorpay order creation and checkout signature verification
- Delayed reconciliation that releases unpaid reservations
- Daily rent-cycle countdown and payment reminders
- Manual partner payouts and earnings summaries

Related apps:
    - warehouses: The listings being booked
    - authentication: Customers, partners and bank details
    - notifications: Booking confirmations and rent reminders

Usage:
    from payments.services import OrderCreationService, PaymentVerificationService

    result = OrderCreationService.create_order(customer, warehouse_id, duration_months=3)
    PaymentVerificationService.verify_payment(order_id, payment_id, signature)
"""
