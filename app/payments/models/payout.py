"""
PartnerPayout model for manual settlements to warehouse owners.

The platform collects the customer's money and pays the partner separately
by bank transfer. A PartnerPayout records that transfer once it was made,
keyed by the bank's UTR so the same transfer cannot be recorded twice.

Usage:
    from payments.models import PartnerPayout
    from payments.state_machines import PayoutMethod

    PartnerPayout.objects.create(
        order=order,
        warehouse=order.warehouse,
        partner=order.partner,
        customer=order.customer,
        monthly_payment=entry,
        amount=entry.amount,
        payment_method=PayoutMethod.NEFT,
        utr="SBIN324011234567",
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PayoutMethod, PayoutStatus


class PartnerPayout(UUIDPrimaryKeyMixin, BaseModel):
    """
    A recorded bank transfer from the platform to a partner.

    Rentals are paid out per month (monthly_payment set); sales are paid out
    once for the whole order (monthly_payment null).

    Fields:
        order / warehouse / partner / customer: What the payout settles
        monthly_payment: Month being settled (rentals only)
        recorded_by: Admin who recorded the transfer
        amount: Amount sent
        payment_method: IMPS, UPI, NEFT or other
        utr: Bank Unique Transaction Reference, unique
        status: completed or reversed
        notes: Free-text remarks
        paid_at: When the transfer was made
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "payments.Order",
        on_delete=models.PROTECT,
        related_name="payouts",
        help_text="Order being settled",
    )

    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.PROTECT,
        related_name="payouts",
        help_text="Warehouse the payout relates to",
    )

    partner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payouts_received",
        help_text="Partner receiving the money",
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="+",
        help_text="Customer whose payment is being passed on",
    )

    monthly_payment = models.ForeignKey(
        "payments.MonthlyPayment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payouts",
        help_text="Month being settled (rentals only)",
    )

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
        help_text="Admin who recorded the payout",
    )

    # ==========================================================================
    # Transfer Details
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount transferred to the partner",
    )

    payment_method = models.CharField(
        max_length=10,
        choices=PayoutMethod.choices,
        help_text="Bank rail used for the transfer",
    )

    utr = models.CharField(
        max_length=64,
        unique=True,
        help_text="Bank Unique Transaction Reference",
    )

    status = models.CharField(
        max_length=20,
        choices=PayoutStatus.choices,
        default=PayoutStatus.COMPLETED,
        db_index=True,
        help_text="Whether the transfer stands or was reversed",
    )

    notes = models.TextField(
        blank=True,
        help_text="Free-text remarks",
    )

    paid_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the transfer was made",
    )

    class Meta:
        ordering = ["-paid_at"]
        verbose_name = "Partner Payout"
        verbose_name_plural = "Partner Payouts"
        indexes = [
            models.Index(fields=["partner", "paid_at"], name="payout_partner_paid_at_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="partner_payout_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"PartnerPayout({self.utr}, {self.amount}, {self.status})"
