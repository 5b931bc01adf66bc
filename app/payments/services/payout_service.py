"""
Partner payout recording and earnings summaries.

The platform collects the customer's money through Razorpay and pays the
warehouse partner by a separate bank transfer. An admin records each
transfer here once it was made, against the month (rentals) or the sale it
settles.

Settlement rules:
    rent: the lowest-sequence month the customer paid and the partner was
          not yet paid for; amount = that month's amount
    sale: only once the customer paid; amount = order total

The bank's UTR is unique, so the same transfer cannot be recorded twice.

Usage:
    from payments.services import PartnerPayoutService

    payout = PartnerPayoutService.record_payout(
        order_id=order.id,
        payment_method=PayoutMethod.NEFT,
        utr="SBIN324011234567",
        recorded_by=request.user,
    )

    summary = PartnerPayoutService.earnings_summary(partner)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.services import BaseService
from payments.models import MonthlyPayment, Order, PartnerPayout
from payments.state_machines import (
    MonthlyPaymentStatus,
    PayoutMethod,
    PayoutStatus,
    SettlementStatus,
)

if TYPE_CHECKING:
    from uuid import UUID

    from authentication.models import User


ZERO = Decimal("0.00")


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class EarningsSummary:
    """
    Payout totals for one partner.

    Attributes:
        total: All completed payouts
        this_month: Payouts since the first day of the current month
        this_week: Payouts since Monday of the current week
        payout_count: Number of completed payouts
    """

    total: Decimal
    this_month: Decimal
    this_week: Decimal
    payout_count: int


# =============================================================================
# Partner Payout Service
# =============================================================================


class PartnerPayoutService(BaseService):
    """
    Records manual payouts and reports partner earnings.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def record_payout(
        cls,
        order_id: UUID | str,
        payment_method: str,
        utr: str,
        notes: str = "",
        recorded_by: User | None = None,
    ) -> PartnerPayout:
        """
        Record a bank transfer to the order's partner.

        Args:
            order_id: Order being settled
            payment_method: IMPS, UPI, NEFT or other
            utr: Bank Unique Transaction Reference
            notes: Free text for operators
            recorded_by: Admin recording the payout

        Returns:
            The created PartnerPayout

        Raises:
            NotFoundError: Order does not exist
            ValidationError: Bad method/UTR, or nothing is payable yet
            ConflictError: UTR already recorded
        """
        logger = cls.get_logger()

        utr = (utr or "").strip()
        if not utr:
            raise ValidationError("utr is required", details={"utr": utr})
        if payment_method not in PayoutMethod.values:
            raise ValidationError(
                f"Unknown payment method '{payment_method}'",
                details={"payment_method": payment_method},
            )

        with cls.atomic():
            order = Order.objects.select_for_update().filter(id=order_id).first()
            if order is None:
                raise NotFoundError(
                    "Order not found",
                    details={"order_id": str(order_id)},
                )

            if PartnerPayout.objects.filter(utr=utr).exists():
                raise cls._duplicate_utr(utr)

            if order.is_rental:
                entry = cls._next_payable_entry(order)
                amount = entry.amount
                entry.mark_partner_paid()
                entry.save(update_fields=["partner_payout_status", "updated_at"])
            else:
                cls._check_sale_payable(order)
                entry = None
                amount = order.total_amount
                order.sale_payout_status = SettlementStatus.PAID
                order.save(update_fields=["sale_payout_status", "updated_at"])

            try:
                with transaction.atomic():
                    payout = PartnerPayout.objects.create(
                        order=order,
                        warehouse_id=order.warehouse_id,
                        partner_id=order.partner_id,
                        customer_id=order.customer_id,
                        monthly_payment=entry,
                        recorded_by=recorded_by,
                        amount=amount,
                        payment_method=payment_method,
                        utr=utr,
                        notes=notes,
                    )
            except IntegrityError as e:
                raise cls._duplicate_utr(utr) from e

        logger.info(
            "Partner payout recorded",
            extra={
                "payout_id": str(payout.id),
                "order_id": str(order.id),
                "partner_id": order.partner_id,
                "monthly_payment_id": str(entry.id) if entry else None,
                "amount": str(amount),
                "payment_method": payment_method,
            },
        )
        return payout

    @classmethod
    def earnings_summary(cls, partner: User) -> EarningsSummary:
        """Sum a partner's completed payouts: all time, this month, this week."""
        now = timezone.localtime()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        week_start = (now - timedelta(days=now.weekday())).replace(
            hour=0, minute=0, second=0, microsecond=0
        )

        payouts = PartnerPayout.objects.filter(
            partner=partner,
            status=PayoutStatus.COMPLETED,
        )

        def total(queryset) -> Decimal:
            return queryset.aggregate(total=Coalesce(Sum("amount"), ZERO))["total"]

        return EarningsSummary(
            total=total(payouts),
            this_month=total(payouts.filter(paid_at__gte=month_start)),
            this_week=total(payouts.filter(paid_at__gte=week_start)),
            payout_count=payouts.count(),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _next_payable_entry(cls, order: Order) -> MonthlyPayment:
        entry = (
            MonthlyPayment.objects.select_for_update()
            .filter(
                order=order,
                status=MonthlyPaymentStatus.PAID,
                partner_payout_status=SettlementStatus.UNPAID,
            )
            .order_by("sequence")
            .first()
        )
        if entry is None:
            raise ValidationError(
                "No paid month is waiting for a partner payout",
                error_code="NOTHING_TO_PAY_OUT",
                details={"order_id": str(order.id)},
            )
        return entry

    @classmethod
    def _check_sale_payable(cls, order: Order) -> None:
        if order.sale_payment_status != SettlementStatus.PAID:
            raise ValidationError(
                "The customer has not paid for this sale yet",
                error_code="NOTHING_TO_PAY_OUT",
                details={"order_id": str(order.id)},
            )
        if order.sale_payout_status == SettlementStatus.PAID:
            raise ValidationError(
                "The partner was already paid for this sale",
                error_code="ALREADY_PAID_OUT",
                details={"order_id": str(order.id)},
            )

    @classmethod
    def _duplicate_utr(cls, utr: str) -> ConflictError:
        return ConflictError(
            "A payout with this UTR is already recorded",
            error_code="DUPLICATE_UTR",
            details={"utr": utr},
        )


__all__ = [
    "EarningsSummary",
    "PartnerPayoutService",
]
