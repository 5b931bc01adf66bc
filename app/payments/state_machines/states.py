"""
State enums for payment models.

This module defines all state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Order States:
    pending → completed (payment verified)
    pending → failed (reconciled as unpaid)
    failed → completed (late payment verified)
    completed → completed (rent cycle paid)

Transaction States:
    pending → completed (signature verified)
    pending → failed (mismatch or reconciled as unpaid)
    failed → completed (late payment verified)

MonthlyPayment States:
    unpaid → processing (payment attempt opened)
    processing → paid (verified)
    processing → unpaid (attempt reconciled as unpaid)

ReconciliationJob States:
    pending → running → succeeded
    running → failed → running (retry)
    running → dead_lettered (retries exhausted)
    running → discarded (target rows missing)
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """
    States for the Order lifecycle.

    PROCESSING and CANCELLED are kept for listing compatibility; no
    workflow in this service moves an order into them.

    State Flow:
        PENDING → COMPLETED
        PENDING → FAILED → COMPLETED (late payment)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"


class TransactionStatus(models.TextChoices):
    """
    States for one gateway payment attempt.

    Gateway payment id and signature are written only on the move to
    COMPLETED.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"


class MonthlyPaymentStatus(models.TextChoices):
    """
    Customer payment state of one month of a rental.

    At most one entry per order is PROCESSING at any time.
    """

    UNPAID = "unpaid", "Unpaid"
    PROCESSING = "processing", "Processing"
    PAID = "paid", "Paid"


class SettlementStatus(models.TextChoices):
    """Two-state flag for sale payments and partner payouts."""

    UNPAID = "unpaid", "Unpaid"
    PAID = "paid", "Paid"


class TransactionKind(models.TextChoices):
    """What a transaction pays for."""

    BOOKING = "booking", "Booking"
    RENT = "rent", "Rent"


class PayoutMethod(models.TextChoices):
    """Bank rail used for a manual partner payout."""

    IMPS = "imps", "IMPS"
    UPI = "upi", "UPI"
    NEFT = "neft", "NEFT"
    OTHER = "other", "Other"


class PayoutStatus(models.TextChoices):
    """
    States for a recorded partner payout.

    Payouts are recorded after the money was sent, so they start COMPLETED.
    REVERSED marks a payout the bank returned.
    """

    COMPLETED = "completed", "Completed"
    REVERSED = "reversed", "Reversed"


class ReconciliationJobStatus(models.TextChoices):
    """
    Processing status for durable reconciliation jobs.

    State Flow:
        PENDING → RUNNING → SUCCEEDED
        RUNNING → FAILED → RUNNING (retry)
        RUNNING → DEAD_LETTERED (max attempts reached)
        RUNNING → DISCARDED (fatal, not retried)
    """

    PENDING = "pending", "Pending"
    RUNNING = "running", "Running"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"
    DEAD_LETTERED = "dead_lettered", "Dead Lettered"
    DISCARDED = "discarded", "Discarded"


# Jobs in these states are never picked up again
FINISHED_JOB_STATUSES = (
    ReconciliationJobStatus.SUCCEEDED,
    ReconciliationJobStatus.DEAD_LETTERED,
    ReconciliationJobStatus.DISCARDED,
)
