"""
Rent payment initiation for the months after the first.

The booking pays the first month. Each later month is paid by the customer
through this service, which opens a new gateway payment for the next UNPAID
entry and schedules a rent_reconciliation for it. The order's status is
left alone: an unpaid month only puts the entry back to UNPAID.

A FAILED booking (released by reconciliation) can still pay its first
month here. Its warehouse is reserved again for the attempt, so no other
customer can book it meanwhile; reconciliation releases it if the attempt
goes unpaid.

Usage:
    from payments.services import RentPaymentService

    result = RentPaymentService.initiate_rent_payment(request.user, order_id)
    return Response(result.checkout, status=201)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService
from payments.exceptions import WarehouseUnavailableError
from payments.models import MonthlyPayment, Order
from payments.scheduler import RENT_RECONCILIATION, get_scheduler
from payments.services.checkout import CheckoutResult, open_gateway_payment
from payments.state_machines import MonthlyPaymentStatus, OrderStatus, TransactionKind
from warehouses.models import Warehouse

if TYPE_CHECKING:
    from uuid import UUID

    from authentication.models import User
    from payments.scheduler import ReconciliationScheduler


class RentPaymentService(BaseService):
    """
    Opens payments for outstanding rent months.

    All methods are class methods - no instance state is maintained.
    """

    PAYABLE_ORDER_STATUSES = (OrderStatus.COMPLETED, OrderStatus.FAILED)

    @classmethod
    def initiate_rent_payment(
        cls,
        customer: User,
        order_id: UUID | str,
        scheduler: ReconciliationScheduler | None = None,
        trace_id: str | None = None,
    ) -> CheckoutResult:
        """
        Start the payment of the next unpaid month.

        Args:
            customer: Order owner
            order_id: Rental order
            scheduler: Reconciliation scheduler (defaults to the app's)
            trace_id: Optional trace ID for log correlation

        Returns:
            CheckoutResult with the entry, transaction and gateway order

        Raises:
            NotFoundError: Order does not exist
            PermissionDeniedError: Order belongs to someone else
            ValidationError: Not a rental, or every month is paid
            ConflictError: Order not payable, or a payment is in flight
            GatewayError: Razorpay order creation failed
        """
        logger = cls.get_logger()
        scheduler = scheduler or get_scheduler()

        with cls.atomic():
            order = Order.objects.select_for_update().filter(id=order_id).first()
            if order is None:
                raise NotFoundError(
                    "Order not found",
                    details={"order_id": str(order_id)},
                )

            cls._check_order(customer, order)

            entries = list(
                MonthlyPayment.objects.select_for_update()
                .filter(order=order)
                .order_by("sequence")
            )

            if any(e.status == MonthlyPaymentStatus.PROCESSING for e in entries):
                raise ConflictError(
                    "A payment for this order is already in progress",
                    error_code="PAYMENT_IN_PROGRESS",
                    details={"order_id": str(order.id)},
                )

            entry = next(
                (e for e in entries if e.status == MonthlyPaymentStatus.UNPAID),
                None,
            )
            if entry is None:
                raise ValidationError(
                    "All months of this rental are already paid",
                    error_code="FULLY_PAID",
                    details={"order_id": str(order.id)},
                )

            if order.status == OrderStatus.FAILED:
                cls._reserve_for_failed_order(order)

            entry.start_processing()
            entry.save(update_fields=["status", "updated_at"])

            txn, gateway_order = open_gateway_payment(
                order,
                entry.amount,
                kind=TransactionKind.RENT,
                entry=entry,
                trace_id=trace_id,
            )

            order.current_transaction = txn
            order.save(update_fields=["current_transaction", "updated_at"])

            job_id = scheduler.schedule(
                RENT_RECONCILIATION,
                {"order_id": str(order.id), "transaction_id": str(txn.id)},
                delay=settings.RECONCILIATION_DELAY_SECONDS,
            )

        logger.info(
            "Rent payment initiated",
            extra={
                "order_id": str(order.id),
                "monthly_payment_id": str(entry.id),
                "sequence": entry.sequence,
                "amount": str(entry.amount),
                "transaction_id": str(txn.id),
                "gateway_order_id": gateway_order.id,
                "reconciliation_job_id": str(job_id),
                "trace_id": trace_id,
            },
        )

        return CheckoutResult(
            order=order,
            transaction=txn,
            gateway_order=gateway_order,
            monthly_payment=entry,
        )

    @classmethod
    def _check_order(cls, customer: User, order: Order) -> None:
        if order.customer_id != customer.pk:
            raise PermissionDeniedError(
                "You can only pay for your own orders",
                details={"order_id": str(order.id)},
            )

        if not order.is_rental:
            raise ValidationError(
                "Only rental orders have monthly payments",
                details={"order_id": str(order.id), "listing_type": order.listing_type},
            )

        if order.status not in cls.PAYABLE_ORDER_STATUSES:
            raise ConflictError(
                f"Order is {order.status} and cannot take a rent payment",
                error_code="ORDER_NOT_PAYABLE",
                details={"order_id": str(order.id), "status": order.status},
            )

    @classmethod
    def _reserve_for_failed_order(cls, order: Order) -> None:
        """Hold the warehouse for a failed booking's payment, unless someone else took it."""
        warehouse = Warehouse.objects.select_for_update().get(id=order.warehouse_id)
        if warehouse.is_available:
            warehouse.reserve()
            warehouse.save(update_fields=["status", "updated_at"])
            return

        held_elsewhere = (
            Order.objects.filter(
                warehouse_id=warehouse.id,
                status__in=[OrderStatus.PENDING, OrderStatus.COMPLETED],
            )
            .exclude(id=order.id)
            .exists()
        )
        if held_elsewhere:
            raise WarehouseUnavailableError(
                "Warehouse has been booked by someone else",
                details={"warehouse_id": str(warehouse.id), "status": warehouse.status},
            )
