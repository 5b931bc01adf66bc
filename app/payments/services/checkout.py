"""
Shared steps for opening a gateway payment.

Booking creation and rent-payment initiation both:
1. Create a Razorpay order for the amount being charged
2. Record a PENDING Transaction keyed by the gateway order id

Both run inside the caller's transaction.atomic() block; a gateway error
propagates and rolls the whole unit of work back.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from django.conf import settings

from payments.adapters import CreateGatewayOrderParams, GatewayOrderResult, RazorpayAdapter
from payments.models import Transaction
from payments.models.transaction import to_paise

if TYPE_CHECKING:
    from payments.models import MonthlyPayment, Order


@dataclass
class CheckoutResult:
    """
    A freshly opened payment attempt.

    Attributes:
        order: Order being paid for
        transaction: PENDING Transaction for this attempt
        gateway_order: Razorpay order the client checkout opens
        monthly_payment: Entry being paid (rentals only)
    """

    order: Order
    transaction: Transaction
    gateway_order: GatewayOrderResult
    monthly_payment: MonthlyPayment | None = None

    @property
    def checkout(self) -> dict[str, Any]:
        """What the client needs to open the Razorpay checkout."""
        return {
            "key_id": self.gateway_order.key_id,
            "gateway_order_id": self.gateway_order.id,
            "amount_paise": self.gateway_order.amount_paise,
            "currency": self.gateway_order.currency,
            "receipt": self.gateway_order.receipt,
        }


def build_receipt(order: Order, entry: MonthlyPayment | None = None) -> str:
    """rcpt_<order_code>, suffixed with the month for later rent payments."""
    receipt = f"rcpt_{order.order_code}"
    if entry is not None and entry.sequence > 1:
        receipt = f"{receipt}_{entry.sequence}"
    return receipt


def open_gateway_payment(
    order: Order,
    amount: Decimal,
    kind: str,
    entry: MonthlyPayment | None = None,
    trace_id: str | None = None,
) -> tuple[Transaction, GatewayOrderResult]:
    """
    Create the Razorpay order and its PENDING Transaction.

    Raises:
        GatewayError: Razorpay call failed (nothing is written)
    """
    currency = getattr(settings, "PAYMENT_CURRENCY", "INR")
    receipt = build_receipt(order, entry)

    gateway_order = RazorpayAdapter.create_order(
        CreateGatewayOrderParams(
            amount_paise=to_paise(amount),
            currency=currency,
            receipt=receipt,
            notes={
                "order_id": str(order.id),
                "order_code": order.order_code,
                "kind": kind,
            },
        ),
        trace_id=trace_id,
    )

    txn = Transaction.objects.create(
        order=order,
        warehouse_id=order.warehouse_id,
        customer_id=order.customer_id,
        monthly_payment=entry,
        kind=kind,
        amount=amount,
        currency=currency,
        gateway_order_id=gateway_order.id,
        receipt=receipt,
    )
    return txn, gateway_order
