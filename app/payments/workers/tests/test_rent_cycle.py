"""
Tests for the daily rent-cycle sweep.
"""

import pytest

from payments.models import Order
from payments.state_machines import OrderStatus
from payments.tests.factories import RentalOrderFactory, SaleOrderFactory
from payments.workers.rent_cycle import (
    SWEEP_LOCK_KEY,
    active_rentals,
    advance_rent_cycle,
    run_rent_cycle_sweep,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def reminder(mocker):
    return mocker.patch(
        "payments.workers.rent_cycle.BookingNotificationService.send_payment_reminder",
        return_value=True,
    )


def rental(payment_day, paid_months=1, **kwargs):
    kwargs.setdefault("status", OrderStatus.COMPLETED)
    return RentalOrderFactory(
        payment_day=payment_day, paid_months=paid_months, **kwargs
    )


class TestActiveRentals:
    def test_only_completed_rentals_with_unpaid_months(self):
        active = rental(20)
        rental(20, paid_months=3)
        rental(20, paid_months=0, status=OrderStatus.PENDING)
        rental(20, paid_months=0, status=OrderStatus.FAILED)
        SaleOrderFactory(status=OrderStatus.COMPLETED)

        assert list(active_rentals()) == [active]


class TestAdvanceRentCycle:
    def test_counts_down_by_one(self, reminder):
        order = rental(20)

        counts = advance_rent_cycle()

        assert Order.objects.get(pk=order.pk).payment_day == 19
        assert counts == {"orders_checked": 1, "decremented": 1, "reminders_sent": 0}
        reminder.assert_not_called()

    def test_floor_at_zero(self, reminder):
        order = rental(0)

        counts = advance_rent_cycle()

        assert Order.objects.get(pk=order.pk).payment_day == 0
        assert counts["decremented"] == 0

    def test_reminds_at_threshold_and_below(self, reminder):
        due_soon = rental(5)
        overdue = rental(0)
        rental(6)

        counts = advance_rent_cycle()

        reminded = {call.args[0].pk for call in reminder.call_args_list}
        assert reminded == {due_soon.pk, overdue.pk}
        assert counts["reminders_sent"] == 2

    def test_fully_paid_rental_is_not_touched(self, reminder):
        order = rental(3, paid_months=3)

        advance_rent_cycle()

        assert Order.objects.get(pk=order.pk).payment_day == 3
        reminder.assert_not_called()

    def test_deduplicated_reminders_are_not_counted(self, reminder):
        reminder.return_value = False
        rental(2)

        counts = advance_rent_cycle()

        assert counts["reminders_sent"] == 0


class TestRunRentCycleSweep:
    def test_completes_under_lock(self, fake_redis, reminder):
        rental(10)

        result = run_rent_cycle_sweep.apply().get()

        assert result["status"] == "completed"
        assert result["decremented"] == 1
        assert fake_redis.set.call_args[0][0] == f"lock:{SWEEP_LOCK_KEY}"
        fake_redis.eval.assert_called_once()

    def test_skipped_when_already_running(self, fake_redis, reminder):
        fake_redis.set.return_value = False
        order = rental(10)

        result = run_rent_cycle_sweep.apply().get()

        assert result == {"status": "skipped"}
        assert Order.objects.get(pk=order.pk).payment_day == 10
