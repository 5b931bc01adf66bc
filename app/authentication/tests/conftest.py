"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(customer, api_client):
        api_client.force_authenticate(user=customer)
"""

import pytest
from rest_framework.test import APIClient

from authentication.models import User
from authentication.tests.factories import (
    PartnerFactory,
    PlatformAdminFactory,
    UserFactory,
)


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def customer(db):
    """An active customer."""
    return UserFactory()


@pytest.fixture
def partner(db):
    """An active partner."""
    return PartnerFactory()


@pytest.fixture
def platform_admin(db):
    """A platform admin (role=admin, staff)."""
    return PlatformAdminFactory()


@pytest.fixture
def superuser(db):
    """A Django superuser."""
    return User.objects.create_superuser(
        email="root@example.com",
        password="SuperPass123!",
    )
