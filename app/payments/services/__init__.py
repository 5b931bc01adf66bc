"""
Payment services for the booking lifecycle.

This module provides:
- OrderCreationService: Books a warehouse and opens the first payment
- RentPaymentService: Opens the payment of the next rent month
- PaymentVerificationService: Verifies checkout callbacks and settles
- PartnerPayoutService: Records partner payouts, earnings summaries

Usage:
    from payments.services import OrderCreationService

    result = OrderCreationService.create_order(
        customer=user,
        warehouse_id=warehouse.id,
        duration_months=3,
    )
    checkout = result.checkout

    from payments.services import PaymentVerificationService

    PaymentVerificationService.verify_payment(
        gateway_order_id="order_xxx",
        gateway_payment_id="pay_xxx",
        gateway_signature="...",
    )
"""

from payments.services.checkout import CheckoutResult
from payments.services.order_service import (
    OrderCreationResult,
    OrderCreationService,
)
from payments.services.payout_service import (
    EarningsSummary,
    PartnerPayoutService,
)
from payments.services.rent_payment_service import RentPaymentService
from payments.services.verification_service import PaymentVerificationService

__all__ = [
    "CheckoutResult",
    "EarningsSummary",
    "OrderCreationResult",
    "OrderCreationService",
    "PartnerPayoutService",
    "PaymentVerificationService",
    "RentPaymentService",
]
