"""
Tests for ReconciliationWorker.

Rows are built with factories in the state a booking or rent payment would
leave them in, then reconciled directly (no scheduler, no Celery).
"""

import pytest
from django.db import DatabaseError

from core.exceptions import TransientStoreError
from payments.models import MonthlyPayment, Order, Transaction
from payments.state_machines import (
    MonthlyPaymentStatus,
    OrderStatus,
    TransactionKind,
    TransactionStatus,
)
from payments.tests.factories import (
    MonthlyPaymentFactory,
    OrderFactory,
    RentalOrderFactory,
    TransactionFactory,
)
from payments.services import (
    OrderCreationService,
    PaymentVerificationService,
    RentPaymentService,
)
from payments.workers import ReconciliationAction, ReconciliationWorker
from warehouses.models import Warehouse, WarehouseStatus

pytestmark = pytest.mark.django_db


@pytest.fixture
def confirmation(mocker):
    return mocker.patch(
        "payments.workers.reconciliation_worker.BookingNotificationService"
        ".send_booking_confirmation"
    )


@pytest.fixture
def pending_booking():
    """A rental booking waiting for payment: first month PROCESSING."""
    order = OrderFactory()
    entry = MonthlyPaymentFactory(
        order=order, sequence=1, status=MonthlyPaymentStatus.PROCESSING
    )
    MonthlyPaymentFactory(order=order, sequence=2)
    txn = TransactionFactory(order=order, monthly_payment=entry)
    return order, entry, txn


def reconcile(order, txn):
    return ReconciliationWorker.reconcile_order(
        order_id=order.id,
        warehouse_id=order.warehouse_id,
        transaction_id=txn.id,
    )


class TestReconcileOrder:
    def test_unpaid_booking_is_released(self, pending_booking, confirmation):
        order, entry, txn = pending_booking

        result = reconcile(order, txn)

        assert result
        assert result.data.action == ReconciliationAction.RELEASED
        assert result.data.warehouse_released is True
        assert result.data.transaction_status == TransactionStatus.FAILED

        assert Order.objects.get(pk=order.pk).status == OrderStatus.FAILED
        assert MonthlyPayment.objects.get(pk=entry.pk).status == MonthlyPaymentStatus.UNPAID
        txn = Transaction.objects.get(pk=txn.pk)
        assert txn.status == TransactionStatus.FAILED
        assert txn.failure_reason == ReconciliationWorker.UNPAID_REASON
        assert Warehouse.objects.get(pk=order.warehouse_id).is_available
        confirmation.assert_not_called()

    def test_paid_booking_is_left_alone(self, pending_booking, confirmation):
        order, entry, txn = pending_booking
        txn.complete(payment_id="pay_1", signature="sig")
        txn.save()

        result = reconcile(order, txn)

        assert result.data.action == ReconciliationAction.ALREADY_SETTLED
        assert Order.objects.get(pk=order.pk).status == OrderStatus.PENDING
        assert Warehouse.objects.get(pk=order.warehouse_id).status == WarehouseStatus.RENTED
        confirmation.assert_called_once()

    def test_second_run_changes_nothing(self, pending_booking, confirmation):
        order, _, txn = pending_booking
        reconcile(order, txn)

        result = reconcile(order, txn)

        assert result.data.action == ReconciliationAction.RELEASED
        assert result.data.warehouse_released is False
        assert Order.objects.get(pk=order.pk).status == OrderStatus.FAILED

    def test_failed_by_signature_mismatch_is_released(self, pending_booking):
        order, _, txn = pending_booking
        Transaction.objects.filter(pk=txn.pk).update(
            status=TransactionStatus.FAILED,
            failure_reason="Checkout signature did not verify",
        )

        result = reconcile(order, txn)

        assert result.data.action == ReconciliationAction.RELEASED
        txn = Transaction.objects.get(pk=txn.pk)
        assert txn.failure_reason == "Checkout signature did not verify"

    def test_cancelled_transaction_is_no_op(self, pending_booking):
        order, _, txn = pending_booking
        Transaction.objects.filter(pk=txn.pk).update(status=TransactionStatus.CANCELLED)

        result = reconcile(order, txn)

        assert result.data.action == ReconciliationAction.NO_OP
        assert Order.objects.get(pk=order.pk).status == OrderStatus.PENDING

    def test_warehouse_held_by_another_order(self, pending_booking):
        order, _, txn = pending_booking
        OrderFactory(warehouse=order.warehouse, status=OrderStatus.COMPLETED)

        result = reconcile(order, txn)

        assert result.data.action == ReconciliationAction.RELEASED
        assert result.data.warehouse_released is False
        assert Warehouse.objects.get(pk=order.warehouse_id).status == WarehouseStatus.RENTED

    def test_missing_rows(self, pending_booking):
        order, _, txn = pending_booking

        result = ReconciliationWorker.reconcile_order(
            order_id=order.id,
            warehouse_id=order.warehouse_id,
            transaction_id="00000000-0000-0000-0000-000000000000",
        )

        assert not result
        assert result.error_code == ReconciliationWorker.TARGET_MISSING
        assert "transaction" in result.error

    def test_rows_that_do_not_belong_together(self, pending_booking):
        order, _, txn = pending_booking
        other = OrderFactory()

        result = ReconciliationWorker.reconcile_order(
            order_id=order.id,
            warehouse_id=other.warehouse_id,
            transaction_id=txn.id,
        )

        assert result.error_code == ReconciliationWorker.TARGET_MISMATCH
        assert Order.objects.get(pk=order.pk).status == OrderStatus.PENDING

    def test_store_error_is_transient(self, pending_booking, mocker):
        order, _, txn = pending_booking
        mocker.patch.object(
            ReconciliationWorker,
            "_reconcile_order_locked",
            side_effect=DatabaseError("connection lost"),
        )

        with pytest.raises(TransientStoreError):
            reconcile(order, txn)


class TestReconcileRentPayment:
    @pytest.fixture
    def rent_attempt(self):
        order = RentalOrderFactory(status=OrderStatus.COMPLETED, paid_months=1)
        entry = MonthlyPayment.objects.get(order=order, sequence=2)
        entry.start_processing()
        entry.save()
        txn = TransactionFactory(
            order=order, monthly_payment=entry, kind=TransactionKind.RENT
        )
        return order, entry, txn

    def test_unpaid_month_is_reverted(self, rent_attempt):
        order, entry, txn = rent_attempt

        result = ReconciliationWorker.reconcile_rent_payment(
            order_id=order.id, transaction_id=txn.id
        )

        assert result.data.action == ReconciliationAction.REVERTED
        assert MonthlyPayment.objects.get(pk=entry.pk).status == MonthlyPaymentStatus.UNPAID
        assert Transaction.objects.get(pk=txn.pk).status == TransactionStatus.FAILED
        assert Order.objects.get(pk=order.pk).status == OrderStatus.COMPLETED
        assert Warehouse.objects.get(pk=order.warehouse_id).status == WarehouseStatus.RENTED

    def test_paid_month_is_left_alone(self, rent_attempt):
        order, entry, txn = rent_attempt
        txn.complete(payment_id="pay_2", signature="sig")
        txn.save()

        result = ReconciliationWorker.reconcile_rent_payment(
            order_id=order.id, transaction_id=txn.id
        )

        assert result.data.action == ReconciliationAction.ALREADY_SETTLED
        assert MonthlyPayment.objects.get(pk=entry.pk).status == MonthlyPaymentStatus.PROCESSING

    def test_transaction_of_another_order(self, rent_attempt):
        _, _, txn = rent_attempt
        other = OrderFactory()

        result = ReconciliationWorker.reconcile_rent_payment(
            order_id=other.id, transaction_id=txn.id
        )

        assert result.error_code == ReconciliationWorker.TARGET_MISMATCH

    def test_missing_order(self, rent_attempt):
        _, _, txn = rent_attempt

        result = ReconciliationWorker.reconcile_rent_payment(
            order_id="00000000-0000-0000-0000-000000000000", transaction_id=txn.id
        )

        assert result.error_code == ReconciliationWorker.TARGET_MISSING

    def test_failed_booking_rent_attempt_releases_warehouse(self):
        order = RentalOrderFactory(status=OrderStatus.FAILED)
        entry = MonthlyPayment.objects.get(order=order, sequence=1)
        entry.start_processing()
        entry.save()
        txn = TransactionFactory(
            order=order, monthly_payment=entry, kind=TransactionKind.RENT
        )
        Order.objects.filter(pk=order.pk).update(current_transaction=txn)

        result = ReconciliationWorker.reconcile_rent_payment(
            order_id=order.id, transaction_id=txn.id
        )

        assert result.data.action == ReconciliationAction.REVERTED
        assert result.data.warehouse_released is True
        assert Warehouse.objects.get(pk=order.warehouse_id).is_available


class TestBookingRerunAfterRentPayment:
    """
    A booking job delivered again after the failed order was paid through a
    rent payment must leave the newer payment alone.
    """

    @pytest.fixture
    def released_booking(self, customer, rental_warehouse, fake_gateway, scheduler):
        result = OrderCreationService.create_order(
            customer=customer,
            warehouse_id=rental_warehouse.id,
            duration_months=3,
            scheduler=scheduler,
        )
        args = {
            "order_id": result.order.id,
            "warehouse_id": rental_warehouse.id,
            "transaction_id": result.transaction.id,
        }
        ReconciliationWorker.reconcile_order(**args)
        return result.order, args

    def test_rerun_after_order_completed(self, customer, released_booking, scheduler, sign):
        order, args = released_booking
        rent = RentPaymentService.initiate_rent_payment(
            customer=customer, order_id=order.id, scheduler=scheduler
        )
        gateway_order_id = rent.transaction.gateway_order_id
        PaymentVerificationService.verify_payment(
            gateway_order_id,
            "pay_late_1",
            sign(gateway_order_id, "pay_late_1"),
            customer=customer,
        )

        result = ReconciliationWorker.reconcile_order(**args)

        assert result.data.action == ReconciliationAction.NO_OP
        assert result.data.warehouse_released is False
        assert Order.objects.get(pk=order.pk).status == OrderStatus.COMPLETED
        warehouse = Warehouse.objects.get(pk=order.warehouse_id)
        assert warehouse.status == WarehouseStatus.RENTED
        entry = MonthlyPayment.objects.get(order=order, sequence=1)
        assert entry.status == MonthlyPaymentStatus.PAID

    def test_rerun_while_rent_attempt_in_flight(self, customer, released_booking, scheduler):
        order, args = released_booking
        rent = RentPaymentService.initiate_rent_payment(
            customer=customer, order_id=order.id, scheduler=scheduler
        )

        result = ReconciliationWorker.reconcile_order(**args)

        assert result.data.action == ReconciliationAction.NO_OP
        entry = MonthlyPayment.objects.get(pk=rent.monthly_payment.pk)
        assert entry.status == MonthlyPaymentStatus.PROCESSING
        assert Warehouse.objects.get(pk=order.warehouse_id).status == WarehouseStatus.RENTED
        assert Transaction.objects.get(pk=rent.transaction.pk).status == TransactionStatus.PENDING
