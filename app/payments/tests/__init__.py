"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Installment split, labels, constraints
- test_state_transitions.py: Order / Transaction / MonthlyPayment FSMs
- test_locks.py: DistributedLock
- test_scheduler.py: ReconciliationScheduler persistence and execution
- test_tasks.py: Celery task wiring and stalled job recovery
- test_views.py: API endpoint tests
- test_integration.py: Full booking journeys

Service and worker tests live next to their packages.

Usage:
    pytest payments/
    pytest payments/tests/test_scheduler.py
"""
