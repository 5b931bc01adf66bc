"""
Order and MonthlyPayment models for the booking lifecycle.

An Order is one customer's booking of one warehouse, either a sale (paid
once) or a rental (paid month by month). Rentals own one MonthlyPayment row
per month; entries are addressed by id and sequence, never by position.

Usage:
    from payments.models import Order, MonthlyPayment
    from payments.state_machines import MonthlyPaymentStatus

    order = Order.objects.select_for_update().get(id=order_id)
    entry = order.first_unpaid_entry()
    entry.start_processing()
    entry.save(update_fields=["status", "updated_at"])

    # After verification
    order.complete()
    order.save()
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin
from warehouses.models import ListingType

from payments.state_machines import (
    MonthlyPaymentStatus,
    OrderStatus,
    SettlementStatus,
)

MONTH_ORDINALS = (
    "First",
    "Second",
    "Third",
    "Fourth",
    "Fifth",
    "Sixth",
    "Seventh",
    "Eighth",
    "Ninth",
    "Tenth",
    "Eleventh",
    "Twelfth",
)

CENT = Decimal("0.01")


def month_label(sequence: int) -> str:
    """Human label for the n-th month of a rental ("First Month", ...)."""
    if 1 <= sequence <= len(MONTH_ORDINALS):
        return f"{MONTH_ORDINALS[sequence - 1]} Month"
    return f"Month {sequence}"


def split_into_installments(total: Decimal, months: int) -> list[Decimal]:
    """
    Split a rental total into ``months`` installments.

    Each installment is total / months rounded half-up to paise; the last
    one absorbs the rounding remainder so the installments sum to total.

    Example:
        >>> split_into_installments(Decimal("1000.00"), 3)
        [Decimal('333.33'), Decimal('333.33'), Decimal('333.34')]
    """
    if months <= 0:
        raise ValueError("months must be positive")
    share = (total / months).quantize(CENT, rounding=ROUND_HALF_UP)
    installments = [share] * (months - 1)
    installments.append((total - share * (months - 1)).quantize(CENT))
    return installments


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A customer's booking of a warehouse.

    State Flow:
        PENDING -> COMPLETED (payment verified)
        PENDING -> FAILED (reconciled as unpaid)
        FAILED -> COMPLETED (late payment verified)
        COMPLETED -> COMPLETED (further rent cycles verified)

    Fields:
        order_code: Human-readable unique code (ORD-...)
        customer / partner / warehouse: Parties and listing
        listing_type: rent or sale, copied from the warehouse at booking
        status: Current FSM state
        duration_months: Rental length (null for sales)
        *_amount: Amounts computed at booking
        payment_day: Days until the next rent payment is due (rentals)
        sale_payment_status / sale_payout_status: Settlement flags (sales)
        current_transaction: Latest payment attempt

    Note:
        Orders are never deleted. Every relation uses PROTECT.
    """

    # ==========================================================================
    # Identification & Parties
    # ==========================================================================

    order_code = models.CharField(
        max_length=64,
        unique=True,
        help_text="Human-readable order code (ORD-<timestamp>-<warehouse>-<random>)",
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="Customer who booked the warehouse",
    )

    partner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="partner_orders",
        help_text="Warehouse owner at the time of booking",
    )

    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="Booked warehouse",
    )

    # ==========================================================================
    # Listing & State
    # ==========================================================================

    listing_type = models.CharField(
        max_length=10,
        choices=ListingType.choices,
        help_text="rent or sale, copied from the warehouse at booking",
    )

    status = FSMField(
        default=OrderStatus.PENDING,
        choices=OrderStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the order (managed by FSM)",
    )

    duration_months = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text="Rental length in months (null for sales)",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    monthly_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Monthly rent at booking",
    )

    one_time_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Flat charge included in a rental total",
    )

    sub_total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Price before discount",
    )

    discount_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Discount applied",
    )

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount the customer pays in total",
    )

    # ==========================================================================
    # Rent Cycle & Sale Settlement
    # ==========================================================================

    payment_day = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Days until the next rent payment is due (rentals only)",
    )

    sale_payment_status = models.CharField(
        max_length=10,
        choices=SettlementStatus.choices,
        null=True,
        blank=True,
        help_text="Whether the customer paid for the sale (sales only)",
    )

    sale_payout_status = models.CharField(
        max_length=10,
        choices=SettlementStatus.choices,
        null=True,
        blank=True,
        help_text="Whether the partner was paid out for the sale (sales only)",
    )

    current_transaction = models.ForeignKey(
        "payments.Transaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
        help_text="Latest payment attempt for this order",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the first payment was verified",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the order was last reconciled as unpaid",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["customer", "status"], name="order_customer_status_idx"),
            models.Index(fields=["partner", "status"], name="order_partner_status_idx"),
            models.Index(fields=["warehouse", "status"], name="order_warehouse_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gt=0),
                name="order_total_amount_positive",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(listing_type=ListingType.SALE, duration_months__isnull=True)
                    | models.Q(listing_type=ListingType.RENT, duration_months__gt=0)
                ),
                name="order_duration_matches_listing_type",
            ),
        ]

    def __str__(self) -> str:
        return f"Order({self.order_code}, {self.listing_type}, {self.status})"

    @property
    def is_rental(self) -> bool:
        return self.listing_type == ListingType.RENT

    @property
    def is_sale(self) -> bool:
        return self.listing_type == ListingType.SALE

    def first_unpaid_entry(self) -> MonthlyPayment | None:
        """Lowest-sequence Unpaid entry, or None when fully paid."""
        return (
            self.monthly_payments.filter(status=MonthlyPaymentStatus.UNPAID)
            .order_by("sequence")
            .first()
        )

    def processing_entry(self) -> MonthlyPayment | None:
        """The entry with a payment in flight, if any."""
        return self.monthly_payments.filter(
            status=MonthlyPaymentStatus.PROCESSING
        ).first()

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=[OrderStatus.PENDING, OrderStatus.FAILED, OrderStatus.COMPLETED],
        target=OrderStatus.COMPLETED,
    )
    def complete(self):
        """
        Mark the order paid.

        Transition: PENDING/FAILED/COMPLETED -> COMPLETED

        FAILED is allowed so a payment verified after reconciliation
        released the order still wins. COMPLETED is allowed for rent cycles.
        """
        if self.completed_at is None:
            self.completed_at = timezone.now()

    @transition(
        field=status,
        source=[OrderStatus.PENDING, OrderStatus.FAILED],
        target=OrderStatus.FAILED,
    )
    def fail(self):
        """
        Mark the order unpaid after reconciliation.

        Transition: PENDING/FAILED -> FAILED
        """
        self.failed_at = timezone.now()


class MonthlyPayment(UUIDPrimaryKeyMixin, BaseModel):
    """
    One month's rent of a rental order.

    State Flow:
        UNPAID -> PROCESSING (payment attempt opened)
        PROCESSING -> PAID (verified)
        PROCESSING -> UNPAID (attempt reconciled as unpaid)
        UNPAID -> PAID (late verification after revert)

    A partial unique index allows at most one PROCESSING entry per order.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name="monthly_payments",
        help_text="Rental this entry belongs to",
    )

    sequence = models.PositiveSmallIntegerField(
        help_text="Month number within the rental, starting at 1",
    )

    label = models.CharField(
        max_length=50,
        help_text="Display label (e.g. 'First Month')",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount due for this month",
    )

    status = FSMField(
        default=MonthlyPaymentStatus.UNPAID,
        choices=MonthlyPaymentStatus.choices,
        db_index=True,
        protected=True,
        help_text="Customer payment state (managed by FSM)",
    )

    partner_payout_status = models.CharField(
        max_length=10,
        choices=SettlementStatus.choices,
        default=SettlementStatus.UNPAID,
        help_text="Whether this month was paid out to the partner",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the customer's payment was verified",
    )

    class Meta:
        ordering = ["order", "sequence"]
        verbose_name = "Monthly Payment"
        verbose_name_plural = "Monthly Payments"
        constraints = [
            models.UniqueConstraint(
                fields=["order", "sequence"],
                name="monthly_payment_unique_sequence",
            ),
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status=MonthlyPaymentStatus.PROCESSING),
                name="monthly_payment_one_processing_per_order",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="monthly_payment_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"MonthlyPayment({self.order_id}, #{self.sequence}, {self.status})"

    @property
    def is_paid(self) -> bool:
        return self.status == MonthlyPaymentStatus.PAID

    @transition(
        field=status,
        source=MonthlyPaymentStatus.UNPAID,
        target=MonthlyPaymentStatus.PROCESSING,
    )
    def start_processing(self):
        """Transition: UNPAID -> PROCESSING"""

    @transition(
        field=status,
        source=[MonthlyPaymentStatus.PROCESSING, MonthlyPaymentStatus.UNPAID],
        target=MonthlyPaymentStatus.PAID,
    )
    def mark_paid(self):
        """Transition: PROCESSING/UNPAID -> PAID"""
        self.paid_at = timezone.now()

    @transition(
        field=status,
        source=MonthlyPaymentStatus.PROCESSING,
        target=MonthlyPaymentStatus.UNPAID,
    )
    def revert_to_unpaid(self):
        """Transition: PROCESSING -> UNPAID"""

    def mark_partner_paid(self) -> None:
        """
        Record that the partner received this month's share.

        Note: Does not save - caller must save after calling.
        """
        self.partner_payout_status = SettlementStatus.PAID
