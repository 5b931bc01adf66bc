"""
End-to-end booking journeys.

Each test drives the API the way the client app does, then runs the
reconciliation job the scheduler would have dispatched. Only the Razorpay
order call, Redis and e-mail queueing are replaced.
"""

import pytest

from payments.models import Order, ReconciliationJob
from payments.scheduler import get_scheduler
from payments.state_machines import (
    MonthlyPaymentStatus,
    OrderStatus,
    ReconciliationJobStatus,
    SettlementStatus,
)
from payments.workers import ReconciliationAction
from payments.workers.rent_cycle import advance_rent_cycle
from warehouses.models import Warehouse, WarehouseStatus

pytestmark = pytest.mark.django_db

ORDERS_URL = "/api/v1/payments/orders/"
VERIFY_URL = "/api/v1/payments/verify/"


@pytest.fixture(autouse=True)
def send_async(mocker):
    return mocker.patch("notifications.services.EmailService.send_async")


@pytest.fixture
def journey(api_client, customer, fake_gateway, fake_redis, sign, dispatched):
    """Helpers bound to an authenticated customer client."""

    class Journey:
        def book(self, warehouse, duration_months=3):
            api_client.force_authenticate(user=customer)
            response = api_client.post(
                ORDERS_URL,
                {"warehouse_id": str(warehouse.id), "duration_months": duration_months},
                format="json",
            )
            assert response.status_code == 201, response.data
            return response.data

        def pay(self, checkout, payment_id):
            api_client.force_authenticate(user=customer)
            gateway_order_id = checkout["gateway_order_id"]
            response = api_client.post(
                VERIFY_URL,
                {
                    "gateway_order_id": gateway_order_id,
                    "gateway_payment_id": payment_id,
                    "gateway_signature": sign(gateway_order_id, payment_id),
                },
                format="json",
            )
            assert response.status_code == 200, response.data
            return response.data

        def pay_rent(self, order_id):
            api_client.force_authenticate(user=customer)
            response = api_client.post(f"{ORDERS_URL}{order_id}/rent-payment/")
            assert response.status_code == 201, response.data
            return response.data

        def run_pending_jobs(self):
            jobs = ReconciliationJob.objects.filter(
                status=ReconciliationJobStatus.PENDING
            ).order_by("created_at")
            return [
                (job, get_scheduler().run(job.id)) for job in jobs
            ]

    return Journey()


class TestRentalJourney:
    def test_book_pay_reconcile_rent_and_payout(
        self, journey, rental_warehouse, api_client, platform_admin, partner
    ):
        booking = journey.book(rental_warehouse)
        order_id = booking["order"]["id"]

        journey.pay(booking["checkout"], "pay_0001")
        [(job, outcome)] = journey.run_pending_jobs()

        job.refresh_from_db()
        assert outcome["status"] == ReconciliationJobStatus.SUCCEEDED
        assert job.result["action"] == ReconciliationAction.ALREADY_SETTLED
        assert Warehouse.objects.get(pk=rental_warehouse.pk).status == WarehouseStatus.RENTED

        # Second month
        Order.objects.filter(pk=order_id).update(payment_day=4)
        advance_rent_cycle()
        rent = journey.pay_rent(order_id)
        assert rent["checkout"]["receipt"].endswith("_2")
        journey.pay(rent["checkout"], "pay_0002")
        journey.run_pending_jobs()

        order = Order.objects.get(pk=order_id)
        assert order.payment_day == 30
        assert [e.status for e in order.monthly_payments.order_by("sequence")] == [
            MonthlyPaymentStatus.PAID,
            MonthlyPaymentStatus.PAID,
            MonthlyPaymentStatus.UNPAID,
        ]

        # Platform pays the partner for both months
        api_client.force_authenticate(user=platform_admin)
        for utr in ("UTR-A-0001", "UTR-A-0002"):
            response = api_client.post(
                f"{ORDERS_URL}{order_id}/payouts/",
                {"payment_method": "neft", "utr": utr},
                format="json",
            )
            assert response.status_code == 201

        api_client.force_authenticate(user=partner)
        earnings = api_client.get("/api/v1/payments/payouts/earnings/").data
        assert earnings["total"] == "1800.00"
        assert earnings["payout_count"] == 2

    def test_abandoned_booking_frees_warehouse_for_next_customer(
        self, journey, rental_warehouse, other_customer, api_client
    ):
        journey.book(rental_warehouse)

        [(job, _)] = journey.run_pending_jobs()

        job.refresh_from_db()
        assert job.result["action"] == ReconciliationAction.RELEASED
        assert Warehouse.objects.get(pk=rental_warehouse.pk).is_available

        api_client.force_authenticate(user=other_customer)
        response = api_client.post(
            ORDERS_URL,
            {"warehouse_id": str(rental_warehouse.id), "duration_months": 1},
            format="json",
        )
        assert response.status_code == 201

    def test_payment_arriving_after_release_reopens_order(
        self, journey, rental_warehouse
    ):
        booking = journey.book(rental_warehouse)
        journey.run_pending_jobs()
        assert Order.objects.get(pk=booking["order"]["id"]).status == OrderStatus.FAILED

        result = journey.pay(booking["checkout"], "pay_late")

        assert result["order_status"] == OrderStatus.COMPLETED
        assert Warehouse.objects.get(pk=rental_warehouse.pk).status == WarehouseStatus.RENTED


class TestSaleJourney:
    def test_book_pay_and_payout(
        self, journey, sale_warehouse, api_client, platform_admin
    ):
        booking = journey.book(sale_warehouse, duration_months=None)
        journey.pay(booking["checkout"], "pay_sale")
        journey.run_pending_jobs()

        order = Order.objects.get(pk=booking["order"]["id"])
        assert order.sale_payment_status == SettlementStatus.PAID

        api_client.force_authenticate(user=platform_admin)
        response = api_client.post(
            f"{ORDERS_URL}{order.id}/payouts/",
            {"payment_method": "imps", "utr": "UTR-S-0001"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["amount"] == "500000.00"
        order = Order.objects.get(pk=order.pk)
        assert order.sale_payout_status == SettlementStatus.PAID
        assert Warehouse.objects.get(pk=sale_warehouse.pk).status == WarehouseStatus.SOLD
