"""
Pytest fixtures for Razorpay adapter tests.

Sections:
    - Settings Fixtures
    - Mock Razorpay Client Fixtures
    - Test Data Fixtures
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def razorpay_settings(settings):
    """Known test credentials for every adapter test."""
    settings.RAZORPAY_KEY_ID = "rzp_test_key"
    settings.RAZORPAY_KEY_SECRET = "s3cr3t"
    settings.RAZORPAY_TIMEOUT_SECONDS = 7
    return settings


# =============================================================================
# Mock Razorpay Client Fixtures
# =============================================================================


@pytest.fixture
def gateway_order_response():
    """Factory for a Razorpay order API response."""

    def _create(
        id: str = "order_test123456",
        amount: int = 150000,
        currency: str = "INR",
        receipt: str = "rcpt_ORD-TEST",
        status: str = "created",
    ) -> dict:
        return {
            "id": id,
            "entity": "order",
            "amount": amount,
            "amount_paid": 0,
            "amount_due": amount,
            "currency": currency,
            "receipt": receipt,
            "status": status,
            "attempts": 0,
            "notes": {},
        }

    return _create


@pytest.fixture
def mock_razorpay_client(gateway_order_response):
    """Patch razorpay.Client as the adapter sees it."""
    with patch("payments.adapters.razorpay_adapter.razorpay.Client") as client_cls:
        client = MagicMock()
        client.order.create.return_value = gateway_order_response()
        client_cls.return_value = client
        yield client


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def trace_id():
    """Generate a trace ID for testing."""
    return f"trace-{uuid.uuid4().hex[:16]}"
