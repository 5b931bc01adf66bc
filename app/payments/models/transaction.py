"""
Transaction model: one gateway payment attempt.

A Transaction pays for either the booking (first charge of a rental, or the
whole sale) or one later month of a rental. Its gateway_order_id is the
Razorpay order the checkout was opened for, and the key the verification
callback looks it up by.

Usage:
    from payments.models import Transaction

    txn = Transaction.objects.select_for_update().get(gateway_order_id=order_id)
    txn.complete(payment_id="pay_xxx", signature="...")
    txn.save()
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import TransactionKind, TransactionStatus


class Transaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    One payment attempt for one order (booking) or one monthly entry (rent).

    State Flow:
        PENDING -> COMPLETED (signature verified)
        PENDING -> FAILED (signature mismatch or reconciled as unpaid)
        FAILED -> COMPLETED (late payment verified)

    Fields:
        order / warehouse / customer: What is being paid for and by whom
        monthly_payment: Entry this attempt pays (rentals only)
        kind: booking or rent
        amount / currency: Charged amount
        status: Current FSM state
        gateway_order_id: Razorpay order id (order_xxx), unique
        gateway_payment_id / gateway_signature: Set once, on completion
        receipt: Receipt string sent to the gateway

    Note:
        Gateway payment fields are written only by complete().
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "payments.Order",
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Order this payment belongs to",
    )

    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Warehouse being paid for",
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Customer making the payment",
    )

    monthly_payment = models.ForeignKey(
        "payments.MonthlyPayment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
        help_text="Monthly entry this attempt pays (rentals only)",
    )

    # ==========================================================================
    # Amount & State
    # ==========================================================================

    kind = models.CharField(
        max_length=10,
        choices=TransactionKind.choices,
        default=TransactionKind.BOOKING,
        help_text="booking (first charge / sale) or rent (later month)",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Charged amount in rupees",
    )

    currency = models.CharField(
        max_length=3,
        default="INR",
        help_text="ISO 4217 currency code",
    )

    status = FSMField(
        default=TransactionStatus.PENDING,
        choices=TransactionStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the payment attempt (managed by FSM)",
    )

    # ==========================================================================
    # Gateway Integration
    # ==========================================================================

    gateway_order_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Razorpay order ID (order_xxx)",
    )

    gateway_payment_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Razorpay payment ID (pay_xxx), set on completion",
    )

    gateway_signature = models.CharField(
        max_length=128,
        blank=True,
        help_text="Checkout signature, set on completion",
    )

    receipt = models.CharField(
        max_length=64,
        help_text="Receipt string sent to the gateway",
    )

    # ==========================================================================
    # State Timestamps & Error Info
    # ==========================================================================

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was verified",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the attempt was marked failed",
    )

    failure_reason = models.TextField(
        blank=True,
        help_text="Why the attempt failed",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Transaction"
        verbose_name_plural = "Transactions"
        indexes = [
            models.Index(fields=["order", "status"], name="transaction_order_status_idx"),
            models.Index(fields=["customer", "created_at"], name="transaction_customer_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="transaction_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Transaction({self.gateway_order_id}, {self.kind}, {self.status})"

    @property
    def amount_paise(self) -> int:
        """Amount in the smallest currency unit, as the gateway expects."""
        return to_paise(self.amount)

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=[TransactionStatus.PENDING, TransactionStatus.FAILED],
        target=TransactionStatus.COMPLETED,
    )
    def complete(self, payment_id: str, signature: str):
        """
        Record the verified gateway payment.

        Transition: PENDING/FAILED -> COMPLETED
        """
        self.gateway_payment_id = payment_id
        self.gateway_signature = signature
        self.completed_at = timezone.now()
        self.failure_reason = ""

    @transition(
        field=status,
        source=[TransactionStatus.PENDING, TransactionStatus.FAILED],
        target=TransactionStatus.FAILED,
    )
    def fail(self, reason: str = ""):
        """
        Mark the attempt failed.

        Transition: PENDING/FAILED -> FAILED
        """
        self.failed_at = timezone.now()
        self.failure_reason = reason


def to_paise(amount: Decimal) -> int:
    """Convert a rupee amount to integer paise."""
    return int((amount * 100).to_integral_value())
