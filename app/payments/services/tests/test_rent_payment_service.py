"""
Tests for RentPaymentService.
"""

from decimal import Decimal

import pytest

from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from payments.exceptions import GatewayUnavailableError, WarehouseUnavailableError
from payments.models import MonthlyPayment, Order, ReconciliationJob, Transaction
from payments.scheduler import RENT_RECONCILIATION
from payments.services import OrderCreationService, RentPaymentService
from payments.state_machines import (
    MonthlyPaymentStatus,
    OrderStatus,
    TransactionKind,
)
from payments.tests.factories import OrderFactory, RentalOrderFactory, SaleOrderFactory
from warehouses.models import Warehouse, WarehouseStatus

pytestmark = pytest.mark.django_db


@pytest.fixture
def rental(customer):
    """Completed three-month rental with the first month paid."""
    return RentalOrderFactory(
        customer=customer, status=OrderStatus.COMPLETED, paid_months=1
    )


def pay(customer, order, scheduler):
    return RentPaymentService.initiate_rent_payment(
        customer=customer, order_id=order.id, scheduler=scheduler
    )


class TestInitiateRentPayment:
    def test_opens_payment_for_next_month(self, customer, rental, fake_gateway, scheduler):
        result = pay(customer, rental, scheduler)

        entry = MonthlyPayment.objects.get(pk=result.monthly_payment.pk)
        assert entry.sequence == 2
        assert entry.status == MonthlyPaymentStatus.PROCESSING

        txn = result.transaction
        assert txn.kind == TransactionKind.RENT
        assert txn.amount == Decimal("900.00")
        assert txn.monthly_payment_id == entry.id
        assert txn.receipt == f"rcpt_{rental.order_code}_2"
        assert Order.objects.get(pk=rental.pk).current_transaction_id == txn.id

    def test_schedules_rent_reconciliation(
        self,
        customer,
        rental,
        fake_gateway,
        scheduler,
        dispatched,
        django_capture_on_commit_callbacks,
    ):
        with django_capture_on_commit_callbacks(execute=True):
            result = pay(customer, rental, scheduler)

        job = ReconciliationJob.objects.get()
        assert job.job_type == RENT_RECONCILIATION
        assert job.payload == {
            "order_id": str(rental.id),
            "transaction_id": str(result.transaction.id),
        }
        dispatched.assert_called_once()

    def test_leaves_order_status_alone(self, customer, rental, fake_gateway, scheduler):
        pay(customer, rental, scheduler)

        assert Order.objects.get(pk=rental.pk).status == OrderStatus.COMPLETED

    def test_payment_in_progress(self, customer, rental, fake_gateway, scheduler):
        pay(customer, rental, scheduler)

        with pytest.raises(ConflictError) as exc_info:
            pay(customer, rental, scheduler)

        assert exc_info.value.error_code == "PAYMENT_IN_PROGRESS"

    def test_fully_paid(self, customer, fake_gateway, scheduler):
        order = RentalOrderFactory(
            customer=customer, status=OrderStatus.COMPLETED, paid_months=3
        )

        with pytest.raises(ValidationError) as exc_info:
            pay(customer, order, scheduler)

        assert exc_info.value.error_code == "FULLY_PAID"
        fake_gateway.assert_not_called()

    def test_gateway_failure_keeps_entry_unpaid(
        self, customer, rental, fake_gateway, scheduler
    ):
        fake_gateway.side_effect = GatewayUnavailableError("Razorpay unreachable")

        with pytest.raises(GatewayUnavailableError):
            pay(customer, rental, scheduler)

        entry = MonthlyPayment.objects.get(order=rental, sequence=2)
        assert entry.status == MonthlyPaymentStatus.UNPAID
        assert not Transaction.objects.exists()
        assert not ReconciliationJob.objects.exists()


class TestOrderChecks:
    def test_unknown_order(self, customer, fake_gateway, scheduler):
        with pytest.raises(NotFoundError):
            RentPaymentService.initiate_rent_payment(
                customer=customer,
                order_id="00000000-0000-0000-0000-000000000000",
                scheduler=scheduler,
            )

    def test_someone_elses_order(self, other_customer, rental, fake_gateway, scheduler):
        with pytest.raises(PermissionDeniedError):
            pay(other_customer, rental, scheduler)

    def test_sale_order(self, customer, fake_gateway, scheduler):
        order = SaleOrderFactory(customer=customer, status=OrderStatus.COMPLETED)

        with pytest.raises(ValidationError):
            pay(customer, order, scheduler)

    def test_pending_order(self, customer, fake_gateway, scheduler):
        order = RentalOrderFactory(customer=customer)

        with pytest.raises(ConflictError) as exc_info:
            pay(customer, order, scheduler)

        assert exc_info.value.error_code == "ORDER_NOT_PAYABLE"


class TestFailedBooking:
    @pytest.fixture
    def failed_rental(self, customer):
        return RentalOrderFactory(
            customer=customer,
            status=OrderStatus.FAILED,
            warehouse__status=WarehouseStatus.AVAILABLE,
        )

    def test_payable_while_warehouse_free(
        self, customer, failed_rental, fake_gateway, scheduler
    ):
        result = pay(customer, failed_rental, scheduler)

        assert result.monthly_payment.sequence == 1
        warehouse = Warehouse.objects.get(pk=failed_rental.warehouse_id)
        assert warehouse.status == WarehouseStatus.RENTED

    def test_warehouse_not_bookable_during_attempt(
        self, customer, other_customer, failed_rental, fake_gateway, scheduler
    ):
        pay(customer, failed_rental, scheduler)

        with pytest.raises(WarehouseUnavailableError):
            OrderCreationService.create_order(
                customer=other_customer,
                warehouse_id=failed_rental.warehouse_id,
                duration_months=2,
                scheduler=scheduler,
            )

    def test_gateway_failure_leaves_warehouse_free(
        self, customer, failed_rental, fake_gateway, scheduler
    ):
        fake_gateway.side_effect = GatewayUnavailableError("Razorpay is down")

        with pytest.raises(GatewayUnavailableError):
            pay(customer, failed_rental, scheduler)

        assert Warehouse.objects.get(pk=failed_rental.warehouse_id).is_available

    def test_rejected_once_someone_else_booked(
        self, customer, failed_rental, fake_gateway, scheduler
    ):
        OrderFactory(warehouse=failed_rental.warehouse, status=OrderStatus.PENDING)
        Warehouse.objects.filter(pk=failed_rental.warehouse_id).update(
            status=WarehouseStatus.RENTED
        )

        with pytest.raises(WarehouseUnavailableError):
            pay(customer, failed_rental, scheduler)
