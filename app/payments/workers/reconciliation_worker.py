"""
Reconciliation worker: the compensating step of the booking saga.

A booking reserves the warehouse optimistically when the order is created.
Some minutes later the scheduler runs this worker for the booking's
transaction. If the payment never completed, the worker undoes the
reservation; if it did, there is nothing to undo.

    reserve (OrderCreationService)
        -> confirm (PaymentVerificationService)
        -> or compensate (ReconciliationWorker)

Every decision is keyed on Transaction.status read under row locks, so the
worker is idempotent and safe to race with signature verification:

    Transaction PENDING/FAILED -> Order FAILED, entry back to UNPAID,
                                  warehouse AVAILABLE, Transaction FAILED
    Transaction COMPLETED      -> nothing to change, confirmation e-mail
    anything else              -> logged no-op

Lock order (shared with verification): Transaction -> Order ->
MonthlyPayment -> Warehouse.

Usage:
    from payments.workers import ReconciliationWorker

    result = ReconciliationWorker.reconcile_order(order_id, warehouse_id, transaction_id)
    if not result:
        # RECONCILIATION_TARGET_MISSING: job is discarded, not retried
        ...
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.db import DatabaseError

from core.exceptions import TransientStoreError
from core.services import BaseService, ServiceResult
from notifications.services import BookingNotificationService
from payments.models import MonthlyPayment, Order, Transaction
from payments.state_machines import (
    MonthlyPaymentStatus,
    OrderStatus,
    TransactionStatus,
)
from warehouses.models import Warehouse

if TYPE_CHECKING:
    from uuid import UUID


# =============================================================================
# Outcome Types
# =============================================================================


class ReconciliationAction:
    """What a reconciliation run did."""

    RELEASED = "released"
    REVERTED = "reverted"
    ALREADY_SETTLED = "already_settled"
    NO_OP = "no_op"


@dataclass
class ReconciliationOutcome:
    """
    Result data of one reconciliation run.

    Stored on the ReconciliationJob row when the job succeeds.
    """

    action: str
    order_id: str
    transaction_id: str
    transaction_status: str
    warehouse_released: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# Reconciliation Worker
# =============================================================================


class ReconciliationWorker(BaseService):
    """
    Settles a payment attempt once its reconciliation delay has passed.

    Both entry points return ServiceResult. A failure result means the rows
    the job points at are gone or inconsistent: retrying cannot help, so the
    scheduler discards the job. Store errors are raised as
    TransientStoreError so the scheduler retries.
    """

    TARGET_MISSING = "RECONCILIATION_TARGET_MISSING"
    TARGET_MISMATCH = "RECONCILIATION_TARGET_MISMATCH"

    UNPAID_REASON = "Payment not completed within the reconciliation window"

    # =========================================================================
    # Booking Reconciliation
    # =========================================================================

    @classmethod
    def reconcile_order(
        cls,
        order_id: UUID | str,
        warehouse_id: UUID | str,
        transaction_id: UUID | str,
    ) -> ServiceResult[ReconciliationOutcome]:
        """
        Reconcile the booking payment of an order.

        Args:
            order_id: Order created by the booking
            warehouse_id: Warehouse the booking reserved
            transaction_id: Booking transaction to check

        Returns:
            ServiceResult with ReconciliationOutcome, or a failure with
            RECONCILIATION_TARGET_MISSING / RECONCILIATION_TARGET_MISMATCH

        Raises:
            TransientStoreError: Database error, safe to retry
        """
        logger = cls.get_logger()
        log_extra = {
            "order_id": str(order_id),
            "warehouse_id": str(warehouse_id),
            "transaction_id": str(transaction_id),
        }
        logger.info("Reconciling booking payment", extra=log_extra)

        try:
            with cls.atomic():
                result = cls._reconcile_order_locked(
                    order_id, warehouse_id, transaction_id
                )
        except DatabaseError as e:
            logger.warning(
                "Store error during booking reconciliation",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
            raise TransientStoreError(
                "Database error during reconciliation",
                details=log_extra,
            ) from e

        if not result:
            logger.warning(
                result.error,
                extra={**log_extra, "error_code": result.error_code},
            )
            return result

        outcome = result.data
        logger.info(
            f"Booking reconciliation finished: {outcome.action}",
            extra={**log_extra, **outcome.to_dict()},
        )

        if outcome.action == ReconciliationAction.ALREADY_SETTLED:
            cls._send_booking_confirmation(order_id)

        return result

    @classmethod
    def _reconcile_order_locked(
        cls,
        order_id: UUID | str,
        warehouse_id: UUID | str,
        transaction_id: UUID | str,
    ) -> ServiceResult[ReconciliationOutcome]:
        logger = cls.get_logger()

        txn = Transaction.objects.select_for_update().filter(id=transaction_id).first()
        order = Order.objects.select_for_update().filter(id=order_id).first()
        if txn is None or order is None:
            return cls._missing(order=order, transaction=txn)

        entry = None
        if txn.monthly_payment_id is not None:
            entry = (
                MonthlyPayment.objects.select_for_update()
                .filter(id=txn.monthly_payment_id)
                .first()
            )

        warehouse = Warehouse.objects.select_for_update().filter(id=warehouse_id).first()
        if warehouse is None:
            return cls._missing(warehouse=warehouse)

        if txn.order_id != order.id or order.warehouse_id != warehouse.id:
            return ServiceResult.failure(
                "Reconciliation job points at rows that do not belong together",
                error_code=cls.TARGET_MISMATCH,
            )

        outcome = ReconciliationOutcome(
            action=ReconciliationAction.NO_OP,
            order_id=str(order.id),
            transaction_id=str(txn.id),
            transaction_status=txn.status,
        )

        if txn.status == TransactionStatus.COMPLETED:
            outcome.action = ReconciliationAction.ALREADY_SETTLED
            return ServiceResult.success(outcome)

        if txn.status not in (TransactionStatus.PENDING, TransactionStatus.FAILED):
            logger.info(
                f"Transaction in status {txn.status}, nothing to reconcile",
                extra={"transaction_id": str(txn.id), "status": txn.status},
            )
            return ServiceResult.success(outcome)

        if order.status == OrderStatus.COMPLETED or cls._superseded(order, txn):
            # A later payment owns the order now: only close this attempt
            cls._fail_unpaid(txn)
            logger.info(
                "Booking attempt superseded by a later payment, order left as is",
                extra={
                    "transaction_id": str(txn.id),
                    "order_id": str(order.id),
                    "order_status": order.status,
                    "current_transaction_id": str(order.current_transaction_id),
                },
            )
            outcome.transaction_status = txn.status
            return ServiceResult.success(outcome)

        # Payment never completed: compensate the reservation
        if order.status == OrderStatus.PENDING:
            order.fail()
            order.save(update_fields=["status", "failed_at", "updated_at"])

        if entry is not None and entry.status == MonthlyPaymentStatus.PROCESSING:
            entry.revert_to_unpaid()
            entry.save(update_fields=["status", "updated_at"])

        outcome.warehouse_released = cls._release_warehouse(warehouse, order)

        cls._fail_unpaid(txn)

        outcome.action = ReconciliationAction.RELEASED
        outcome.transaction_status = txn.status
        return ServiceResult.success(outcome)

    @staticmethod
    def _superseded(order: Order, txn: Transaction) -> bool:
        """True when the order has moved on to a newer payment attempt."""
        return (
            order.current_transaction_id is not None
            and order.current_transaction_id != txn.id
        )

    @classmethod
    def _fail_unpaid(cls, txn: Transaction) -> None:
        if txn.status == TransactionStatus.PENDING:
            txn.fail(reason=cls.UNPAID_REASON)
            txn.save(update_fields=["status", "failed_at", "failure_reason", "updated_at"])

    @classmethod
    def _release_warehouse(cls, warehouse: Warehouse, order: Order) -> bool:
        """Make the warehouse bookable unless another live order holds it."""
        if warehouse.is_available:
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
            cls.get_logger().info(
                "Warehouse held by another live order, not released",
                extra={"warehouse_id": str(warehouse.id), "order_id": str(order.id)},
            )
            return False

        warehouse.release()
        warehouse.save(update_fields=["status", "updated_at"])
        return True

    @classmethod
    def _send_booking_confirmation(cls, order_id: UUID | str) -> None:
        order = (
            Order.objects.select_related("customer", "warehouse")
            .filter(id=order_id)
            .first()
        )
        if order is not None:
            BookingNotificationService.send_booking_confirmation(order)

    # =========================================================================
    # Rent Payment Reconciliation
    # =========================================================================

    @classmethod
    def reconcile_rent_payment(
        cls,
        order_id: UUID | str,
        transaction_id: UUID | str,
    ) -> ServiceResult[ReconciliationOutcome]:
        """
        Reconcile a later month's rent payment.

        An unpaid attempt only puts the entry back to UNPAID and fails the
        transaction. The order keeps its status and the warehouse stays
        rented: the customer can simply pay again.

        Raises:
            TransientStoreError: Database error, safe to retry
        """
        logger = cls.get_logger()
        log_extra = {"order_id": str(order_id), "transaction_id": str(transaction_id)}
        logger.info("Reconciling rent payment", extra=log_extra)

        try:
            with cls.atomic():
                result = cls._reconcile_rent_locked(order_id, transaction_id)
        except DatabaseError as e:
            logger.warning(
                "Store error during rent reconciliation",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
            raise TransientStoreError(
                "Database error during reconciliation",
                details=log_extra,
            ) from e

        if not result:
            logger.warning(
                result.error,
                extra={**log_extra, "error_code": result.error_code},
            )
            return result

        logger.info(
            f"Rent reconciliation finished: {result.data.action}",
            extra={**log_extra, **result.data.to_dict()},
        )
        return result

    @classmethod
    def _reconcile_rent_locked(
        cls,
        order_id: UUID | str,
        transaction_id: UUID | str,
    ) -> ServiceResult[ReconciliationOutcome]:
        txn = Transaction.objects.select_for_update().filter(id=transaction_id).first()
        order = Order.objects.select_for_update().filter(id=order_id).first()
        if txn is None or order is None:
            return cls._missing(order=order, transaction=txn)

        if txn.order_id != order.id:
            return ServiceResult.failure(
                "Reconciliation job points at rows that do not belong together",
                error_code=cls.TARGET_MISMATCH,
            )

        outcome = ReconciliationOutcome(
            action=ReconciliationAction.NO_OP,
            order_id=str(order.id),
            transaction_id=str(txn.id),
            transaction_status=txn.status,
        )

        if txn.status == TransactionStatus.COMPLETED:
            outcome.action = ReconciliationAction.ALREADY_SETTLED
            return ServiceResult.success(outcome)

        if txn.status not in (TransactionStatus.PENDING, TransactionStatus.FAILED):
            return ServiceResult.success(outcome)

        if cls._superseded(order, txn):
            cls._fail_unpaid(txn)
            outcome.transaction_status = txn.status
            return ServiceResult.success(outcome)

        if txn.monthly_payment_id is not None:
            entry = (
                MonthlyPayment.objects.select_for_update()
                .filter(id=txn.monthly_payment_id)
                .first()
            )
            if entry is not None and entry.status == MonthlyPaymentStatus.PROCESSING:
                entry.revert_to_unpaid()
                entry.save(update_fields=["status", "updated_at"])

        # A failed booking paying its rent held the warehouse for this attempt
        if order.status == OrderStatus.FAILED:
            warehouse = Warehouse.objects.select_for_update().get(id=order.warehouse_id)
            outcome.warehouse_released = cls._release_warehouse(warehouse, order)

        cls._fail_unpaid(txn)

        outcome.action = ReconciliationAction.REVERTED
        outcome.transaction_status = txn.status
        return ServiceResult.success(outcome)

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _missing(cls, **targets) -> ServiceResult[ReconciliationOutcome]:
        missing = sorted(name for name, value in targets.items() if value is None)
        return ServiceResult.failure(
            f"Reconciliation target not found: {', '.join(missing)}",
            error_code=cls.TARGET_MISSING,
        )


__all__ = [
    "ReconciliationAction",
    "ReconciliationOutcome",
    "ReconciliationWorker",
]
