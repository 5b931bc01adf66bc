"""
Order creation: the reserve step of the booking saga.

One call creates the order, its monthly entries (rentals), the Razorpay order
and the booking Transaction, reserves the warehouse, and schedules the
reconciliation that releases the warehouse again if nobody pays. Everything
happens in one transaction.atomic() block, so a failure at any step leaves
no trace: no order, no transaction, no job, warehouse still available.

Steps:
    1. Lock warehouse (select_for_update), must be AVAILABLE
    2. Price: rent = monthly * months + one_time, sale = total_price
    3. Generate order code (retried on collision inside a savepoint)
    4. Create Order (PENDING) and, for rentals, one UNPAID entry per month
    5. Create Razorpay order for the first month (rent) or total (sale)
    6. Create Transaction (PENDING); first month -> PROCESSING
    7. Warehouse -> RENTED / SOLD
    8. Schedule order_reconciliation (dispatched after commit)

Usage:
    from payments.services import OrderCreationService

    result = OrderCreationService.create_order(
        customer=request.user,
        warehouse_id=warehouse_id,
        duration_months=3,
    )
    return Response(result.checkout)
"""

from __future__ import annotations

import secrets
import string
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.services import BaseService
from payments.exceptions import WarehouseUnavailableError
from payments.models import MonthlyPayment, Order
from payments.models.order import month_label, split_into_installments
from payments.scheduler import ORDER_RECONCILIATION, get_scheduler
from payments.services.checkout import CheckoutResult, open_gateway_payment
from payments.state_machines import SettlementStatus, TransactionKind
from warehouses.models import ListingType, Warehouse

if TYPE_CHECKING:
    from decimal import Decimal
    from uuid import UUID

    from authentication.models import User
    from payments.scheduler import ReconciliationScheduler


# Returned by create_order; the first entry (rentals) is monthly_payment
OrderCreationResult = CheckoutResult

ORDER_CODE_ALPHABET = string.ascii_uppercase + string.digits
ORDER_CODE_RANDOM_LENGTH = 4
ORDER_CODE_ATTEMPTS = 3


def generate_order_code(warehouse: Warehouse) -> str:
    """
    ORD-<UTC timestamp>-<warehouse fragment>-<random>.

    Example: ORD-20260315093012-3FA2C1-K9QX
    """
    timestamp = timezone.now().strftime("%Y%m%d%H%M%S")
    fragment = warehouse.id.hex[:6].upper()
    suffix = "".join(
        secrets.choice(ORDER_CODE_ALPHABET) for _ in range(ORDER_CODE_RANDOM_LENGTH)
    )
    return f"ORD-{timestamp}-{fragment}-{suffix}"


class OrderCreationService(BaseService):
    """
    Creates bookings.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def create_order(
        cls,
        customer: User,
        warehouse_id: UUID | str,
        duration_months: int | None = None,
        scheduler: ReconciliationScheduler | None = None,
        trace_id: str | None = None,
    ) -> OrderCreationResult:
        """
        Book a warehouse for a customer.

        Args:
            customer: User booking the warehouse
            warehouse_id: Warehouse to book
            duration_months: Rental length (required for rent, forbidden for sale)
            scheduler: Reconciliation scheduler (defaults to the app's)
            trace_id: Optional trace ID for log correlation

        Returns:
            OrderCreationResult with the order, transaction and gateway order

        Raises:
            ValidationError: Bad duration, own listing, or zero price
            NotFoundError: Warehouse does not exist
            WarehouseUnavailableError: Warehouse is not AVAILABLE
            GatewayError: Razorpay order creation failed
        """
        logger = cls.get_logger()
        scheduler = scheduler or get_scheduler()

        with cls.atomic():
            warehouse = (
                Warehouse.objects.select_for_update().filter(id=warehouse_id).first()
            )
            if warehouse is None:
                raise NotFoundError(
                    "Warehouse not found",
                    details={"warehouse_id": str(warehouse_id)},
                )

            cls._validate_request(customer, warehouse, duration_months)

            if not warehouse.is_available:
                raise WarehouseUnavailableError(
                    f"Warehouse is {warehouse.status} and cannot be booked",
                    details={
                        "warehouse_id": str(warehouse.id),
                        "status": warehouse.status,
                    },
                )

            order = cls._create_order_row(customer, warehouse, duration_months)

            entry = None
            if warehouse.is_rental:
                entries = cls._create_monthly_entries(order)
                entry = entries[0]
                entry.start_processing()
                entry.save(update_fields=["status", "updated_at"])
                charge = entry.amount
            else:
                charge = order.total_amount

            txn, gateway_order = open_gateway_payment(
                order,
                charge,
                kind=TransactionKind.BOOKING,
                entry=entry,
                trace_id=trace_id,
            )

            order.current_transaction = txn
            order.save(update_fields=["current_transaction", "updated_at"])

            warehouse.reserve()
            warehouse.save(update_fields=["status", "updated_at"])

            job_id = scheduler.schedule(
                ORDER_RECONCILIATION,
                {
                    "order_id": str(order.id),
                    "warehouse_id": str(warehouse.id),
                    "transaction_id": str(txn.id),
                },
                delay=settings.RECONCILIATION_DELAY_SECONDS,
            )

        logger.info(
            "Order created",
            extra={
                "order_id": str(order.id),
                "order_code": order.order_code,
                "warehouse_id": str(warehouse.id),
                "listing_type": order.listing_type,
                "total_amount": str(order.total_amount),
                "transaction_id": str(txn.id),
                "gateway_order_id": gateway_order.id,
                "reconciliation_job_id": str(job_id),
                "trace_id": trace_id,
            },
        )

        return OrderCreationResult(
            order=order,
            transaction=txn,
            gateway_order=gateway_order,
            monthly_payment=entry,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _validate_request(
        cls,
        customer: User,
        warehouse: Warehouse,
        duration_months: int | None,
    ) -> None:
        if warehouse.partner_id == customer.pk:
            raise ValidationError(
                "You cannot book your own warehouse",
                details={"warehouse_id": str(warehouse.id)},
            )

        if warehouse.listing_type == ListingType.RENT:
            if duration_months is None or duration_months <= 0:
                raise ValidationError(
                    "duration_months must be a positive number for rentals",
                    details={"duration_months": duration_months},
                )
        elif duration_months is not None:
            raise ValidationError(
                "duration_months is not allowed for sales",
                details={"duration_months": duration_months},
            )

    @classmethod
    def _price(cls, warehouse: Warehouse, duration_months: int | None) -> Decimal:
        if warehouse.is_rental:
            return warehouse.monthly_price * duration_months + warehouse.one_time_price
        return warehouse.total_price

    @classmethod
    def _create_order_row(
        cls,
        customer: User,
        warehouse: Warehouse,
        duration_months: int | None,
    ) -> Order:
        total = cls._price(warehouse, duration_months)
        if total <= 0:
            raise ValidationError(
                "Warehouse has no price set",
                details={"warehouse_id": str(warehouse.id)},
            )

        # Every month must be chargeable at the gateway (at least one paisa)
        if (
            warehouse.is_rental
            and min(split_into_installments(total, duration_months)) <= 0
        ):
            raise ValidationError(
                "Rental total is too small to split into monthly payments",
                error_code="INSTALLMENT_TOO_SMALL",
                details={
                    "warehouse_id": str(warehouse.id),
                    "total": str(total),
                    "duration_months": duration_months,
                },
            )

        fields = {
            "customer": customer,
            "partner_id": warehouse.partner_id,
            "warehouse": warehouse,
            "listing_type": warehouse.listing_type,
            "total_amount": total,
        }
        if warehouse.is_rental:
            fields.update(
                duration_months=duration_months,
                monthly_amount=warehouse.monthly_price,
                one_time_amount=warehouse.one_time_price,
                sub_total_amount=total,
                payment_day=warehouse.payment_due_days,
            )
        else:
            fields.update(
                sub_total_amount=warehouse.sub_total_price,
                discount_amount=warehouse.discount_amount,
                sale_payment_status=SettlementStatus.UNPAID,
                sale_payout_status=SettlementStatus.UNPAID,
            )

        for attempt in range(1, ORDER_CODE_ATTEMPTS + 1):
            code = generate_order_code(warehouse)
            try:
                with transaction.atomic():
                    return Order.objects.create(order_code=code, **fields)
            except IntegrityError:
                if not Order.objects.filter(order_code=code).exists():
                    raise
                cls.get_logger().warning(
                    "Order code collision, regenerating",
                    extra={"order_code": code, "attempt": attempt},
                )

        raise ConflictError(
            "Could not generate a unique order code, please retry",
            error_code="ORDER_CODE_EXHAUSTED",
        )

    @classmethod
    def _create_monthly_entries(cls, order: Order) -> list[MonthlyPayment]:
        installments = split_into_installments(
            order.total_amount, order.duration_months
        )
        return MonthlyPayment.objects.bulk_create(
            [
                MonthlyPayment(
                    order=order,
                    sequence=sequence,
                    label=month_label(sequence),
                    amount=amount,
                )
                for sequence, amount in enumerate(installments, start=1)
            ]
        )


__all__ = [
    "OrderCreationResult",
    "OrderCreationService",
    "generate_order_code",
]
