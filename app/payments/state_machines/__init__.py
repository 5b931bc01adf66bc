"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    FINISHED_JOB_STATUSES,
    MonthlyPaymentStatus,
    OrderStatus,
    PayoutMethod,
    PayoutStatus,
    ReconciliationJobStatus,
    SettlementStatus,
    TransactionKind,
    TransactionStatus,
)

__all__ = [
    "FINISHED_JOB_STATUSES",
    "MonthlyPaymentStatus",
    "OrderStatus",
    "PayoutMethod",
    "PayoutStatus",
    "ReconciliationJobStatus",
    "SettlementStatus",
    "TransactionKind",
    "TransactionStatus",
]
