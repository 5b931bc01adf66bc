"""
Durable delayed-job scheduler for payment reconciliation.

Booking and rent-payment workflows schedule a reconciliation some minutes
after opening a gateway payment. The job is written as a ReconciliationJob
row inside the caller's transaction, and the Celery message is sent only
once that transaction commits, so a rolled-back booking leaves neither a
row nor a message behind.

Job lifecycle:
    schedule()  -> row PENDING, run_reconciliation_job sent with countdown
    run()       -> single-flight per job id (DistributedLock), handler called
    handler ok  -> SUCCEEDED (outcome stored on the row)
    handler failure result -> DISCARDED (not retried)
    handler raises -> FAILED and re-raised so Celery retries,
                      DEAD_LETTERED on the final attempt

Attempts are counted on the row, not by Celery: a job re-dispatched by
recover_stalled_jobs starts a fresh Celery retry count but still runs at
most RECONCILIATION_MAX_ATTEMPTS times in total.

Usage:
    from payments.scheduler import get_scheduler

    job_id = get_scheduler().schedule(
        "order_reconciliation",
        {"order_id": ..., "warehouse_id": ..., "transaction_id": ...},
        delay=settings.RECONCILIATION_DELAY_SECONDS,
    )

The scheduler instance is built in PaymentsConfig.ready(); tests build their
own and pass it to the services explicitly.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.apps import apps
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock
from payments.models import ReconciliationJob

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any
    from uuid import UUID

    from core.services import ServiceResult

logger = logging.getLogger(__name__)

# Job types
ORDER_RECONCILIATION = "order_reconciliation"
RENT_RECONCILIATION = "rent_reconciliation"

# Longer than any single reconciliation attempt
JOB_LOCK_TTL_SECONDS = 120


class ReconciliationScheduler:
    """
    Registry of job handlers plus persistence and dispatch of jobs.

    Handlers are called with the job payload as keyword arguments and must
    return a ServiceResult. A failed result is treated as fatal; an exception
    as transient.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[..., ServiceResult]] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def define(self, job_type: str, handler: Callable[..., ServiceResult]) -> None:
        """Register the handler for a job type, replacing any previous one."""
        self._handlers[job_type] = handler

    def is_defined(self, job_type: str) -> bool:
        return job_type in self._handlers

    @property
    def job_types(self) -> list[str]:
        return sorted(self._handlers)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def schedule(
        self,
        job_type: str,
        payload: dict[str, Any],
        delay: int | float,
    ) -> UUID:
        """
        Persist a job and dispatch it ``delay`` seconds after commit.

        Must be called inside the caller's transaction.atomic() block for the
        job to share its fate; outside one the dispatch happens immediately.

        Raises:
            ValueError: If no handler is defined for job_type
        """
        if job_type not in self._handlers:
            raise ValueError(f"No handler defined for job type '{job_type}'")

        job = ReconciliationJob.objects.create(
            job_type=job_type,
            payload=payload,
            run_at=timezone.now() + timedelta(seconds=delay),
        )

        logger.info(
            "Reconciliation job scheduled",
            extra={
                "job_id": str(job.id),
                "job_type": job_type,
                "delay_seconds": delay,
            },
        )

        job_id = job.id
        transaction.on_commit(lambda: self.dispatch(job_id, countdown=delay))
        return job_id

    def dispatch(self, job_id: UUID | str, countdown: int | float = 0) -> None:
        """Send the Celery message that will run the job."""
        from payments.tasks import run_reconciliation_job

        run_reconciliation_job.apply_async(args=[str(job_id)], countdown=countdown)

    # =========================================================================
    # Execution
    # =========================================================================

    def run(self, job_id: UUID | str, final_attempt: bool = False) -> dict[str, Any]:
        """
        Execute one job.

        Only one worker runs a given job at a time; a concurrent delivery
        returns without touching the row.

        Args:
            job_id: ReconciliationJob id
            final_attempt: Dead-letter instead of failing if the handler raises

        Returns:
            Dict describing what happened (for the Celery result backend)

        Raises:
            Exception: Whatever the handler raised, after recording it
        """
        try:
            with DistributedLock(
                f"reconciliation_job:{job_id}",
                ttl=JOB_LOCK_TTL_SECONDS,
                blocking=False,
            ):
                return self._run_locked(job_id, final_attempt)
        except LockAcquisitionError:
            logger.info(
                "Reconciliation job already running elsewhere, skipping",
                extra={"job_id": str(job_id)},
            )
            return {"status": "locked", "job_id": str(job_id)}

    def _run_locked(self, job_id: UUID | str, final_attempt: bool) -> dict[str, Any]:
        try:
            job = ReconciliationJob.objects.get(id=job_id)
        except ReconciliationJob.DoesNotExist:
            logger.error("Reconciliation job not found", extra={"job_id": str(job_id)})
            return {"status": "not_found", "job_id": str(job_id)}

        log_extra = {
            "job_id": str(job.id),
            "job_type": job.job_type,
            "attempt": job.attempts + 1,
        }

        if job.is_finished:
            logger.info(
                "Reconciliation job already finished, skipping",
                extra={**log_extra, "status": job.status},
            )
            return {"status": "skipped", "job_id": str(job.id)}

        max_attempts = settings.RECONCILIATION_MAX_ATTEMPTS
        if job.attempts >= max_attempts:
            job.mark_dead_lettered(
                job.last_error or f"Gave up after {job.attempts} attempts"
            )
            job.save()
            logger.error("Reconciliation job out of attempts, dead-lettered", extra=log_extra)
            return {"status": job.status, "job_id": str(job.id)}

        handler = self._handlers.get(job.job_type)
        if handler is None:
            job.mark_discarded(f"No handler defined for job type '{job.job_type}'")
            job.save()
            logger.error("Reconciliation job has no handler, discarded", extra=log_extra)
            return {"status": job.status, "job_id": str(job.id)}

        job.mark_running()
        job.save()

        try:
            result = handler(**job.payload)
        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            if final_attempt or job.attempts >= max_attempts:
                job.mark_dead_lettered(error_msg)
                job.save()
                logger.error(
                    "Reconciliation job dead-lettered after final attempt",
                    extra={**log_extra, "error": error_msg},
                    exc_info=True,
                )
            else:
                job.mark_failed(error_msg)
                job.save()
                logger.warning(
                    "Reconciliation job attempt failed, will retry",
                    extra={**log_extra, "error": error_msg},
                )
            raise

        if result:
            outcome = result.data.to_dict() if result.data is not None else None
            job.mark_succeeded(outcome)
            job.save()
            logger.info(
                "Reconciliation job succeeded",
                extra={**log_extra, "outcome": outcome},
            )
        else:
            job.mark_discarded(f"[{result.error_code}] {result.error}")
            job.save()
            logger.warning(
                "Reconciliation job discarded",
                extra={**log_extra, "error": result.error, "error_code": result.error_code},
            )

        return {"status": job.status, "job_id": str(job.id)}


def build_scheduler() -> ReconciliationScheduler:
    """Create a scheduler with the payment reconciliation handlers defined."""
    from payments.workers import ReconciliationWorker

    scheduler = ReconciliationScheduler()
    scheduler.define(ORDER_RECONCILIATION, ReconciliationWorker.reconcile_order)
    scheduler.define(RENT_RECONCILIATION, ReconciliationWorker.reconcile_rent_payment)
    return scheduler


def get_scheduler() -> ReconciliationScheduler:
    """Return the scheduler built when the payments app was loaded."""
    return apps.get_app_config("payments").scheduler


__all__ = [
    "ORDER_RECONCILIATION",
    "RENT_RECONCILIATION",
    "ReconciliationScheduler",
    "build_scheduler",
    "get_scheduler",
]
