"""
Checkout signature verification: the confirm step of the booking saga.

After the customer pays, the Razorpay checkout hands the client
(order_id, payment_id, signature). The client posts them here. A valid
signature proves the payment and settles the ledger; an invalid one fails
the attempt and is rejected.

Verification may run before or after the reconciliation job for the same
transaction:

    verify first   -> Transaction COMPLETED, reconciliation is a no-op
    reconcile first -> Order FAILED, warehouse released; a late verify
                      re-completes the order and re-reserves the warehouse
                      if nobody else took it

Lock order (shared with reconciliation): Transaction -> Order ->
MonthlyPayment -> Warehouse.

Usage:
    from payments.services import PaymentVerificationService

    txn = PaymentVerificationService.verify_payment(
        gateway_order_id="order_xxx",
        gateway_payment_id="pay_xxx",
        gateway_signature="...",
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import transaction
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from core.exceptions import ConflictError, NotFoundError
from core.services import BaseService
from notifications.services import BookingNotificationService
from payments.adapters import RazorpayAdapter
from payments.exceptions import InvalidStateTransitionError, SignatureMismatchError
from payments.models import MonthlyPayment, Order, Transaction
from payments.state_machines import (
    MonthlyPaymentStatus,
    OrderStatus,
    SettlementStatus,
    TransactionKind,
    TransactionStatus,
)
from warehouses.models import Warehouse

if TYPE_CHECKING:
    from authentication.models import User


class PaymentVerificationService(BaseService):
    """
    Verifies checkout callbacks and settles the paid transaction.

    All methods are class methods - no instance state is maintained.
    """

    MISMATCH_REASON = "Checkout signature did not verify"

    @classmethod
    def verify_payment(
        cls,
        gateway_order_id: str,
        gateway_payment_id: str,
        gateway_signature: str,
        customer: User | None = None,
    ) -> Transaction:
        """
        Verify a checkout callback and settle the payment.

        Args:
            gateway_order_id: Razorpay order id (order_xxx)
            gateway_payment_id: Razorpay payment id (pay_xxx)
            gateway_signature: Signature returned by the checkout
            customer: If given, the transaction must belong to this user

        Returns:
            The COMPLETED Transaction

        Raises:
            SignatureMismatchError: Signature invalid (transaction marked failed)
            NotFoundError: No such transaction or order
            ConflictError: Transaction already completed by another payment
            InvalidStateTransitionError: Transaction can no longer complete
        """
        logger = cls.get_logger()
        log_extra = {
            "gateway_order_id": gateway_order_id,
            "gateway_payment_id": gateway_payment_id,
        }

        if not RazorpayAdapter.verify_payment_signature(
            gateway_order_id, gateway_payment_id, gateway_signature
        ):
            failed = cls._fail_on_mismatch(gateway_order_id, customer)
            logger.warning(
                "Payment signature mismatch",
                extra={**log_extra, "transactions_failed": failed},
            )
            raise SignatureMismatchError(
                "Payment signature verification failed",
                details={"gateway_order_id": gateway_order_id},
            )

        with cls.atomic():
            txn = (
                Transaction.objects.select_for_update()
                .filter(gateway_order_id=gateway_order_id)
                .first()
            )
            if txn is None or (customer is not None and txn.customer_id != customer.pk):
                raise NotFoundError(
                    "Transaction not found",
                    details={"gateway_order_id": gateway_order_id},
                )

            order = Order.objects.select_for_update().filter(id=txn.order_id).first()
            if order is None:
                raise NotFoundError(
                    "Order not found",
                    details={"order_id": str(txn.order_id)},
                )

            if txn.status == TransactionStatus.COMPLETED:
                if txn.gateway_payment_id == gateway_payment_id:
                    logger.info("Payment already verified", extra=log_extra)
                    return txn
                raise ConflictError(
                    "Transaction was already completed by a different payment",
                    error_code="TRANSACTION_ALREADY_COMPLETED",
                    details={"gateway_order_id": gateway_order_id},
                )

            try:
                txn.complete(payment_id=gateway_payment_id, signature=gateway_signature)
            except TransitionNotAllowed as e:
                raise InvalidStateTransitionError(
                    f"Cannot complete transaction in status '{txn.status}'",
                    details={
                        "current_state": txn.status,
                        "transition": "complete",
                    },
                ) from e
            txn.save()

            if order.is_rental:
                cls._settle_rent_entry(txn, order)
            else:
                order.sale_payment_status = SettlementStatus.PAID

            reserved = cls._ensure_reserved(order)

            order.complete()
            order.save()

            if txn.kind == TransactionKind.BOOKING:
                transaction.on_commit(
                    lambda: BookingNotificationService.send_booking_confirmation(order)
                )

        logger.info(
            "Payment verified",
            extra={
                **log_extra,
                "transaction_id": str(txn.id),
                "order_id": str(order.id),
                "kind": txn.kind,
                "warehouse_re_reserved": reserved,
            },
        )
        return txn

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _fail_on_mismatch(cls, gateway_order_id: str, customer: User | None) -> int:
        """Fail the attempt unless it is already completed. Returns rows updated."""
        now = timezone.now()
        attempts = Transaction.objects.filter(
            gateway_order_id=gateway_order_id,
            status__in=[TransactionStatus.PENDING, TransactionStatus.FAILED],
        )
        if customer is not None:
            attempts = attempts.filter(customer=customer)

        with cls.atomic():
            return attempts.update(
                status=TransactionStatus.FAILED,
                failed_at=now,
                failure_reason=cls.MISMATCH_REASON,
                updated_at=now,
            )

    @classmethod
    def _settle_rent_entry(cls, txn: Transaction, order: Order) -> None:
        """Mark the paid month and restart the countdown to the next one."""
        if txn.monthly_payment_id is not None:
            entry = (
                MonthlyPayment.objects.select_for_update()
                .filter(id=txn.monthly_payment_id)
                .first()
            )
            if entry is not None and entry.status != MonthlyPaymentStatus.PAID:
                entry.mark_paid()
                entry.save(update_fields=["status", "paid_at", "updated_at"])

        order.payment_day = order.warehouse.payment_due_days

    @classmethod
    def _ensure_reserved(cls, order: Order) -> bool:
        """
        Re-reserve a warehouse released by reconciliation before payment arrived.

        The payment is recorded either way. When another live order took the
        warehouse in the meantime, both orders end up holding it and the
        overlap is logged for the platform to resolve with the customers.

        Returns:
            True if the warehouse was reserved again
        """
        warehouse = Warehouse.objects.select_for_update().get(id=order.warehouse_id)
        if not warehouse.is_available:
            return False

        held_elsewhere = (
            Order.objects.filter(
                warehouse_id=warehouse.id,
                status__in=[OrderStatus.PENDING, OrderStatus.COMPLETED],
            )
            .exclude(id=order.id)
            .exists()
        )
        if held_elsewhere:
            cls.get_logger().warning(
                "Late payment for a warehouse booked by another order",
                extra={"order_id": str(order.id), "warehouse_id": str(warehouse.id)},
            )
            return False

        warehouse.reserve()
        warehouse.save(update_fields=["status", "updated_at"])
        return True
