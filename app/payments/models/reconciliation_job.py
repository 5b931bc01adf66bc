"""
ReconciliationJob model: durable record of a delayed reconciliation.

Every job the ReconciliationScheduler schedules is written here inside the
caller's transaction before the Celery message is sent. The row survives
broker loss (stalled jobs are re-dispatched), records each attempt, and is
kept after retries are exhausted so operators can inspect it.

Usage:
    from payments.models import ReconciliationJob
    from payments.state_machines import ReconciliationJobStatus

    job = ReconciliationJob.objects.create(
        job_type="order_reconciliation",
        payload={"order_id": "...", "warehouse_id": "...", "transaction_id": "..."},
        run_at=timezone.now() + timedelta(seconds=300),
    )
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import FINISHED_JOB_STATUSES, ReconciliationJobStatus


class ReconciliationJob(UUIDPrimaryKeyMixin, BaseModel):
    """
    A scheduled reconciliation and its processing history.

    Processing Flow:
        1. Scheduler inserts the row (PENDING) in the caller's transaction
        2. After commit, run_reconciliation_job is sent with a countdown
        3. Worker marks RUNNING (attempts += 1) and calls the handler
        4. Handler success -> SUCCEEDED, fatal failure -> DISCARDED
        5. Exception -> FAILED and Celery retries, or DEAD_LETTERED when
           attempts are exhausted

    Fields:
        job_type: Registered handler name
        payload: JSON arguments for the handler
        run_at: Earliest time the job should run
        status: Processing status
        attempts: Number of times a worker started it
        last_error: Message of the last failure
        result: Handler outcome for succeeded jobs
        started_at / finished_at: Timing of the last attempt
    """

    # ==========================================================================
    # Job Definition
    # ==========================================================================

    job_type = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Registered handler name (e.g. 'order_reconciliation')",
    )

    payload = models.JSONField(
        default=dict,
        help_text="JSON arguments passed to the handler",
    )

    run_at = models.DateTimeField(
        db_index=True,
        help_text="Earliest time the job should run",
    )

    # ==========================================================================
    # Processing Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=ReconciliationJobStatus.choices,
        default=ReconciliationJobStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    attempts = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    last_error = models.TextField(
        null=True,
        blank=True,
        help_text="Error message of the last failed attempt",
    )

    result = models.JSONField(
        null=True,
        blank=True,
        help_text="Handler outcome of the final attempt",
    )

    started_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the last attempt started",
    )

    finished_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the job reached a final status",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Reconciliation Job"
        verbose_name_plural = "Reconciliation Jobs"
        indexes = [
            models.Index(fields=["status", "run_at"], name="recon_job_status_run_at_idx"),
            models.Index(fields=["job_type", "status"], name="recon_job_type_status_idx"),
        ]

    def __str__(self) -> str:
        return f"ReconciliationJob({self.job_type}, {self.status}, attempts={self.attempts})"

    @property
    def is_finished(self) -> bool:
        """Succeeded, dead-lettered and discarded jobs never run again."""
        return self.status in FINISHED_JOB_STATUSES

    # ==========================================================================
    # Helper Methods
    # ==========================================================================

    def mark_running(self) -> None:
        """
        Mark job as being processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = ReconciliationJobStatus.RUNNING
        self.attempts += 1
        self.started_at = timezone.now()

    def mark_succeeded(self, result: dict | None = None) -> None:
        """
        Mark job as successfully processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = ReconciliationJobStatus.SUCCEEDED
        self.result = result
        self.last_error = None
        self.finished_at = timezone.now()

    def mark_failed(self, error_message: str) -> None:
        """
        Mark an attempt as failed; the job may still be retried.

        Note: Does not save - caller must save after calling.
        """
        self.status = ReconciliationJobStatus.FAILED
        self.last_error = error_message

    def mark_dead_lettered(self, error_message: str) -> None:
        """
        Park the job after its last allowed attempt failed.

        Note: Does not save - caller must save after calling.
        """
        self.status = ReconciliationJobStatus.DEAD_LETTERED
        self.last_error = error_message
        self.finished_at = timezone.now()

    def mark_discarded(self, error_message: str) -> None:
        """
        Drop the job after a fatal failure that a retry cannot fix.

        Note: Does not save - caller must save after calling.
        """
        self.status = ReconciliationJobStatus.DISCARDED
        self.last_error = error_message
        self.finished_at = timezone.now()
