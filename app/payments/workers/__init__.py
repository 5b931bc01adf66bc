"""
Workers for background payment processing.

- ReconciliationWorker: Settles or compensates a booking/rent payment once
  its reconciliation delay has passed (run by the ReconciliationScheduler)
- run_rent_cycle_sweep: Daily countdown of rent due days and reminders

Usage:
    from payments.workers import ReconciliationWorker, run_rent_cycle_sweep

    ReconciliationWorker.reconcile_order(order_id, warehouse_id, transaction_id)
    run_rent_cycle_sweep.delay()
"""

from payments.workers.reconciliation_worker import (
    ReconciliationAction,
    ReconciliationOutcome,
    ReconciliationWorker,
)
from payments.workers.rent_cycle import run_rent_cycle_sweep

__all__ = [
    "ReconciliationAction",
    "ReconciliationOutcome",
    "ReconciliationWorker",
    "run_rent_cycle_sweep",
]
