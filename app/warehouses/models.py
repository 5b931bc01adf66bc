"""
Warehouse listing model.

A Warehouse is listed by a partner either for rent (billed monthly) or for
sale (one payment). Its status is the availability flag the booking flow
reserves and the reconciliation worker releases.

State Flow:
    PENDING -> AVAILABLE (listing approved)
    AVAILABLE -> RENTED / SOLD (booking created)
    RENTED / SOLD -> AVAILABLE (unpaid booking released)

Usage:
    from warehouses.models import Warehouse, WarehouseStatus

    warehouse = Warehouse.objects.select_for_update().get(id=warehouse_id)
    if warehouse.is_available:
        warehouse.reserve()
        warehouse.save(update_fields=["status", "updated_at"])
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class ListingType(models.TextChoices):
    """Whether a warehouse is offered for rent or for sale."""

    RENT = "rent", "Rent"
    SALE = "sale", "Sale"


class WarehouseStatus(models.TextChoices):
    """
    Availability of a warehouse.

    Only AVAILABLE warehouses can be booked.
    """

    PENDING = "pending", "Pending"
    AVAILABLE = "available", "Available"
    RENTED = "rented", "Rented"
    SOLD = "sold", "Sold"


class Warehouse(UUIDPrimaryKeyMixin, BaseModel):
    """
    A partner's warehouse listing.

    Pricing:
        rent: total = monthly_price * months + one_time_price
        sale: total = total_price (discount already applied)

    Fields:
        partner: Listing owner, receives payouts
        listing_type: rent or sale
        status: Availability (managed by FSM)
        one_time_price: Flat charge added once to a rental
        monthly_price: Rent per month
        sub_total_price: Price before discount
        discount_amount: Discount already subtracted from total_price
        total_price: Sale price
        payment_due_days: Days between rent payments
    """

    # ==========================================================================
    # Ownership & Description
    # ==========================================================================

    partner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="warehouses",
        help_text="Partner who lists this warehouse",
    )

    name = models.CharField(
        max_length=200,
        help_text="Listing title",
    )

    address = models.TextField(
        blank=True,
        help_text="Street address",
    )

    city = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text="City the warehouse is located in",
    )

    # ==========================================================================
    # Listing & State
    # ==========================================================================

    listing_type = models.CharField(
        max_length=10,
        choices=ListingType.choices,
        help_text="Whether the warehouse is rented monthly or sold outright",
    )

    status = FSMField(
        default=WarehouseStatus.PENDING,
        choices=WarehouseStatus.choices,
        db_index=True,
        protected=True,
        help_text="Availability of the warehouse (managed by FSM)",
    )

    # ==========================================================================
    # Pricing
    # ==========================================================================

    one_time_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Flat charge added once to a rental (deposit, setup)",
    )

    monthly_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Rent per month",
    )

    sub_total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Price before discount",
    )

    discount_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Discount already subtracted from total_price",
    )

    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Sale price after discount",
    )

    payment_due_days = models.PositiveIntegerField(
        default=30,
        help_text="Days between rent payments",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Warehouse"
        verbose_name_plural = "Warehouses"
        indexes = [
            models.Index(
                fields=["partner", "status"], name="warehouse_partner_status_idx"
            ),
            models.Index(
                fields=["listing_type", "status"], name="warehouse_listing_status_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(payment_due_days__gt=0),
                name="warehouse_payment_due_days_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Warehouse({self.name}, {self.listing_type}, {self.status})"

    @property
    def is_available(self) -> bool:
        return self.status == WarehouseStatus.AVAILABLE

    @property
    def is_rental(self) -> bool:
        return self.listing_type == ListingType.RENT

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=WarehouseStatus.PENDING,
        target=WarehouseStatus.AVAILABLE,
    )
    def publish(self):
        """
        Approve the listing for booking.

        Transition: PENDING -> AVAILABLE
        """

    @transition(
        field=status,
        source=WarehouseStatus.AVAILABLE,
        target=WarehouseStatus.RENTED,
    )
    def mark_rented(self):
        """
        Reserve for a rental booking.

        Transition: AVAILABLE -> RENTED
        """

    @transition(
        field=status,
        source=WarehouseStatus.AVAILABLE,
        target=WarehouseStatus.SOLD,
    )
    def mark_sold(self):
        """
        Reserve for a sale booking.

        Transition: AVAILABLE -> SOLD
        """

    @transition(
        field=status,
        source=[WarehouseStatus.RENTED, WarehouseStatus.SOLD],
        target=WarehouseStatus.AVAILABLE,
    )
    def release(self):
        """
        Make the warehouse bookable again after an unpaid booking.

        Transition: RENTED/SOLD -> AVAILABLE
        """

    def reserve(self):
        """Apply mark_rented or mark_sold depending on listing_type."""
        if self.is_rental:
            self.mark_rented()
        else:
            self.mark_sold()
