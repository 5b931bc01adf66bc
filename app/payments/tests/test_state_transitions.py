"""
Tests for the django-fsm state machines on Order, Transaction and
MonthlyPayment.

Transitions run in memory; nothing here needs to be saved except where
the factories create the starting row.
"""

import pytest
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from payments.state_machines import (
    MonthlyPaymentStatus,
    OrderStatus,
    TransactionStatus,
)
from payments.tests.factories import (
    MonthlyPaymentFactory,
    OrderFactory,
    TransactionFactory,
)

pytestmark = pytest.mark.django_db


class TestOrderTransitions:
    def test_pending_to_completed(self):
        order = OrderFactory()

        order.complete()

        assert order.status == OrderStatus.COMPLETED
        assert order.completed_at is not None

    def test_pending_to_failed(self):
        order = OrderFactory()

        order.fail()

        assert order.status == OrderStatus.FAILED
        assert order.failed_at is not None

    def test_failed_order_can_still_complete(self):
        order = OrderFactory(status=OrderStatus.FAILED)

        order.complete()

        assert order.status == OrderStatus.COMPLETED

    def test_completed_stays_completed_on_next_cycle(self):
        order = OrderFactory(
            status=OrderStatus.COMPLETED, completed_at=timezone.now()
        )
        first_completion = order.completed_at

        order.complete()

        assert order.status == OrderStatus.COMPLETED
        assert order.completed_at == first_completion

    def test_completed_cannot_fail(self):
        order = OrderFactory(status=OrderStatus.COMPLETED)

        with pytest.raises(TransitionNotAllowed):
            order.fail()

    def test_status_is_protected(self):
        order = OrderFactory()

        with pytest.raises(AttributeError):
            order.status = OrderStatus.COMPLETED


class TestTransactionTransitions:
    def test_complete_records_gateway_payment(self):
        txn = TransactionFactory()

        txn.complete(payment_id="pay_1", signature="sig")

        assert txn.status == TransactionStatus.COMPLETED
        assert txn.gateway_payment_id == "pay_1"
        assert txn.gateway_signature == "sig"
        assert txn.completed_at is not None

    def test_late_completion_from_failed_clears_reason(self):
        txn = TransactionFactory(
            status=TransactionStatus.FAILED, failure_reason="timed out"
        )

        txn.complete(payment_id="pay_1", signature="sig")

        assert txn.status == TransactionStatus.COMPLETED
        assert txn.failure_reason == ""

    def test_fail_records_reason(self):
        txn = TransactionFactory()

        txn.fail(reason="not paid")

        assert txn.status == TransactionStatus.FAILED
        assert txn.failure_reason == "not paid"

    @pytest.mark.parametrize("transition", ["complete", "fail"])
    def test_completed_is_terminal(self, transition):
        txn = TransactionFactory(status=TransactionStatus.COMPLETED)

        with pytest.raises(TransitionNotAllowed):
            if transition == "complete":
                txn.complete(payment_id="pay_2", signature="sig")
            else:
                txn.fail()

    def test_cancelled_cannot_complete(self):
        txn = TransactionFactory(status=TransactionStatus.CANCELLED)

        with pytest.raises(TransitionNotAllowed):
            txn.complete(payment_id="pay_1", signature="sig")


class TestMonthlyPaymentTransitions:
    def test_processing_round_trip(self):
        entry = MonthlyPaymentFactory()

        entry.start_processing()
        assert entry.status == MonthlyPaymentStatus.PROCESSING

        entry.revert_to_unpaid()
        assert entry.status == MonthlyPaymentStatus.UNPAID

    def test_processing_to_paid(self):
        entry = MonthlyPaymentFactory(status=MonthlyPaymentStatus.PROCESSING)

        entry.mark_paid()

        assert entry.is_paid
        assert entry.paid_at is not None

    def test_unpaid_can_be_paid_late(self):
        entry = MonthlyPaymentFactory()

        entry.mark_paid()

        assert entry.is_paid

    def test_paid_cannot_start_processing(self):
        entry = MonthlyPaymentFactory(status=MonthlyPaymentStatus.PAID)

        with pytest.raises(TransitionNotAllowed):
            entry.start_processing()

    def test_unpaid_cannot_revert(self):
        entry = MonthlyPaymentFactory()

        with pytest.raises(TransitionNotAllowed):
            entry.revert_to_unpaid()
