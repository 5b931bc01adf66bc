"""
Tests for the Warehouse model and its availability state machine.
"""

import pytest
from django.db import IntegrityError
from django_fsm import TransitionNotAllowed, can_proceed

from warehouses.models import Warehouse, WarehouseStatus
from warehouses.tests.factories import (
    RentalWarehouseFactory,
    SaleWarehouseFactory,
    WarehouseFactory,
)


class TestWarehouseTransitions:
    """Tests for publish/reserve/release transitions."""

    def test_publish_moves_pending_to_available(self, db):
        warehouse = WarehouseFactory(status=WarehouseStatus.PENDING)

        warehouse.publish()
        warehouse.save()

        assert Warehouse.objects.get(pk=warehouse.pk).status == WarehouseStatus.AVAILABLE

    def test_reserve_rental_marks_rented(self, db):
        warehouse = RentalWarehouseFactory()

        warehouse.reserve()

        assert warehouse.status == WarehouseStatus.RENTED

    def test_reserve_sale_marks_sold(self, db):
        warehouse = SaleWarehouseFactory()

        warehouse.reserve()

        assert warehouse.status == WarehouseStatus.SOLD

    @pytest.mark.parametrize(
        "status",
        [WarehouseStatus.PENDING, WarehouseStatus.RENTED, WarehouseStatus.SOLD],
    )
    def test_cannot_reserve_unavailable_warehouse(self, db, status):
        warehouse = RentalWarehouseFactory(status=status)

        assert can_proceed(warehouse.mark_rented) is False
        with pytest.raises(TransitionNotAllowed):
            warehouse.reserve()

    @pytest.mark.parametrize("status", [WarehouseStatus.RENTED, WarehouseStatus.SOLD])
    def test_release_returns_to_available(self, db, status):
        warehouse = WarehouseFactory(status=status)

        warehouse.release()

        assert warehouse.is_available is True

    def test_release_from_available_not_allowed(self, db):
        warehouse = WarehouseFactory()

        with pytest.raises(TransitionNotAllowed):
            warehouse.release()

    def test_status_cannot_be_assigned_directly(self, db):
        warehouse = WarehouseFactory()

        with pytest.raises(AttributeError):
            warehouse.status = WarehouseStatus.SOLD


class TestWarehouseConstraints:
    """Database-level constraints."""

    def test_payment_due_days_must_be_positive(self, db):
        with pytest.raises(IntegrityError):
            WarehouseFactory(payment_due_days=0)
