"""
Celery tasks for payment reconciliation.

This module provides async tasks for:
- Running a scheduled reconciliation job (with retry and dead-lettering)
- Periodic recovery of jobs whose Celery message was lost
- The daily rent-cycle sweep (defined in payments.workers.rent_cycle)

Usage:
    # Jobs are normally dispatched by the scheduler after commit
    from payments.scheduler import get_scheduler
    get_scheduler().schedule("order_reconciliation", payload, delay=300)

    # Re-dispatch overdue jobs (typically via celery-beat)
    from payments.tasks import recover_stalled_jobs
    recover_stalled_jobs.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from payments.models import ReconciliationJob
from payments.state_machines import ReconciliationJobStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Celery counts retries, not attempts
MAX_JOB_RETRIES = settings.RECONCILIATION_MAX_ATTEMPTS - 1

# Maximum jobs re-dispatched per recovery run
RECOVERY_BATCH_SIZE = 500


# =============================================================================
# Reconciliation Job Execution
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    max_retries=MAX_JOB_RETRIES,
    retry_backoff=settings.RECONCILIATION_BACKOFF_SECONDS,
    retry_jitter=False,
    acks_late=True,
)
def run_reconciliation_job(self, job_id: str) -> dict:
    """
    Run one ReconciliationJob through the scheduler.

    Retries on any exception with exponential backoff
    (RECONCILIATION_BACKOFF_SECONDS, doubling). The last allowed attempt
    dead-letters the job instead of failing it.

    Args:
        job_id: UUID of the ReconciliationJob

    Returns:
        Dict with the job status

    Raises:
        Exception: Re-raised from the handler to trigger Celery retry
    """
    from payments.scheduler import get_scheduler

    final_attempt = self.request.retries >= self.max_retries

    logger.info(
        "Running reconciliation job",
        extra={
            "job_id": job_id,
            "retry": self.request.retries,
            "final_attempt": final_attempt,
        },
    )

    return get_scheduler().run(job_id, final_attempt=final_attempt)


# =============================================================================
# Stalled Job Recovery
# =============================================================================


@shared_task
def recover_stalled_jobs() -> dict:
    """
    Periodic task to recover reconciliation jobs nobody is working on.

    A job stalls when its Celery message is lost (broker restart) or the
    worker dies mid-run. Both leave the warehouse reserved until the job
    runs, so this task:

    1. Resets RUNNING jobs started more than RECONCILIATION_STALL_MINUTES
       ago to FAILED
    2. Re-dispatches PENDING jobs overdue by that long, and FAILED jobs
       untouched for that long
    3. Dead-letters FAILED jobs that already used all their attempts

    Running it while the original messages are still queued is safe: the
    scheduler skips finished jobs and single-flights each job id.

    Returns:
        Dict with reset_count, redispatched_count and dead_lettered_count
    """
    from payments.scheduler import get_scheduler

    stall_minutes = getattr(settings, "RECONCILIATION_STALL_MINUTES", 15)
    max_attempts = getattr(settings, "RECONCILIATION_MAX_ATTEMPTS", 3)
    threshold = timezone.now() - timedelta(minutes=stall_minutes)

    stats = {"reset_count": 0, "redispatched_count": 0, "dead_lettered_count": 0}

    stuck_running = ReconciliationJob.objects.filter(
        status=ReconciliationJobStatus.RUNNING,
        started_at__lt=threshold,
    )
    for job in stuck_running:
        job.mark_failed("Worker stopped while the job was running")
        job.save()
        stats["reset_count"] += 1
        logger.warning(
            "Reset stuck reconciliation job",
            extra={
                "job_id": str(job.id),
                "job_type": job.job_type,
                "stuck_since": job.started_at.isoformat(),
            },
        )

    stalled = ReconciliationJob.objects.filter(
        Q(status=ReconciliationJobStatus.PENDING, run_at__lt=threshold)
        | Q(status=ReconciliationJobStatus.FAILED, updated_at__lt=threshold)
    ).order_by("run_at")[:RECOVERY_BATCH_SIZE]

    scheduler = get_scheduler()
    for job in stalled:
        if job.attempts >= max_attempts:
            job.mark_dead_lettered(job.last_error or "Retries exhausted")
            job.save()
            stats["dead_lettered_count"] += 1
            logger.error(
                "Reconciliation job dead-lettered during recovery",
                extra={
                    "job_id": str(job.id),
                    "job_type": job.job_type,
                    "attempts": job.attempts,
                },
            )
            continue

        scheduler.dispatch(job.id)
        stats["redispatched_count"] += 1
        logger.info(
            "Re-dispatched stalled reconciliation job",
            extra={
                "job_id": str(job.id),
                "job_type": job.job_type,
                "status": job.status,
                "run_at": job.run_at.isoformat(),
            },
        )

    if any(stats.values()):
        logger.info("Stalled job recovery completed", extra=stats)

    return stats


# Register worker tasks with Celery autodiscovery
from payments.workers.rent_cycle import run_rent_cycle_sweep  # noqa: E402, F401
