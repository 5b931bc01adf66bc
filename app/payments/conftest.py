"""
Pytest fixtures shared by all payment tests.

Sections:
    - Settings
    - Users & Warehouses
    - Gateway
    - Scheduler

Usage:
    def test_booking(customer, rental_warehouse, fake_gateway, scheduler):
        result = OrderCreationService.create_order(
            customer=customer,
            warehouse_id=rental_warehouse.id,
            duration_months=3,
            scheduler=scheduler,
        )
"""

import itertools
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import (
    PartnerBankDetailFactory,
    PartnerFactory,
    PlatformAdminFactory,
    UserFactory,
)
from payments.adapters import GatewayOrderResult, RazorpayAdapter
from payments.scheduler import build_scheduler
from warehouses.tests.factories import RentalWarehouseFactory, SaleWarehouseFactory


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def payment_settings(settings):
    """Known gateway credentials and reconciliation timings."""
    settings.RAZORPAY_KEY_ID = "rzp_test_key"
    settings.RAZORPAY_KEY_SECRET = "s3cr3t"
    settings.PAYMENT_CURRENCY = "INR"
    settings.RECONCILIATION_DELAY_SECONDS = 300
    settings.RECONCILIATION_MAX_ATTEMPTS = 3
    settings.RECONCILIATION_STALL_MINUTES = 15
    settings.RENT_REMINDER_THRESHOLD_DAYS = 4
    return settings


# =============================================================================
# Users & Warehouses
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer(db):
    return UserFactory()


@pytest.fixture
def other_customer(db):
    return UserFactory()


@pytest.fixture
def partner(db):
    partner = PartnerFactory()
    PartnerBankDetailFactory(partner=partner, account_number="000123456789")
    return partner


@pytest.fixture
def platform_admin(db):
    return PlatformAdminFactory()


@pytest.fixture
def rental_warehouse(partner):
    """Available rental: 900/month, no one-time charge, due every 30 days."""
    return RentalWarehouseFactory(
        partner=partner,
        monthly_price=Decimal("900.00"),
        one_time_price=Decimal("0.00"),
        payment_due_days=30,
    )


@pytest.fixture
def sale_warehouse(partner):
    """Available sale listing: 550000 less 50000 discount."""
    return SaleWarehouseFactory(partner=partner)


# =============================================================================
# Gateway
# =============================================================================


@pytest.fixture
def fake_gateway(mocker):
    """
    Replace RazorpayAdapter.create_order with a local fake.

    Each call returns a new gateway order id (order_test0001, ...). The
    mock is returned so tests can inspect calls or set a side_effect.
    """
    counter = itertools.count(1)

    def _create_order(params, trace_id=None):
        return GatewayOrderResult(
            id=f"order_test{next(counter):04d}",
            amount_paise=params.amount_paise,
            currency=params.currency,
            receipt=params.receipt,
            status="created",
            key_id="rzp_test_key",
            raw_response={},
        )

    return mocker.patch.object(
        RazorpayAdapter, "create_order", side_effect=_create_order
    )


@pytest.fixture
def sign():
    """Checkout signature for (gateway_order_id, gateway_payment_id)."""
    return RazorpayAdapter.compute_signature


# =============================================================================
# Scheduler
# =============================================================================


@pytest.fixture
def scheduler():
    """A scheduler with both reconciliation handlers defined."""
    return build_scheduler()


@pytest.fixture
def dispatched(mocker):
    """Capture Celery dispatches of reconciliation jobs."""
    return mocker.patch("payments.tasks.run_reconciliation_job.apply_async")
