"""
Tests for payment Celery tasks.

Tasks are called with apply() (run locally, no broker). Dispatches to the
broker are captured by the dispatched fixture.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from payments.models import ReconciliationJob
from payments.scheduler import ReconciliationScheduler
from payments.state_machines import ReconciliationJobStatus
from payments.tasks import recover_stalled_jobs, run_reconciliation_job
from payments.tests.factories import ReconciliationJobFactory


def _age(job, **delta):
    """Backdate updated_at, which auto_now would otherwise reset on save."""
    ReconciliationJob.objects.filter(pk=job.pk).update(
        updated_at=timezone.now() - timedelta(**delta)
    )


class TestRunReconciliationJobOptions:
    def test_retry_policy(self):
        assert run_reconciliation_job.max_retries == 2
        assert run_reconciliation_job.retry_backoff == 5
        assert run_reconciliation_job.retry_jitter is False
        assert run_reconciliation_job.autoretry_for == (Exception,)
        assert run_reconciliation_job.acks_late is True


class TestRunReconciliationJob:
    @pytest.fixture
    def scheduler_run(self, mocker):
        scheduler = mocker.MagicMock()
        scheduler.run.return_value = {"status": "succeeded", "job_id": "job-1"}
        mocker.patch("payments.scheduler.get_scheduler", return_value=scheduler)
        return scheduler.run

    def test_first_attempt_is_not_final(self, scheduler_run):
        result = run_reconciliation_job.apply(args=["job-1"]).get()

        assert result == {"status": "succeeded", "job_id": "job-1"}
        scheduler_run.assert_called_once_with("job-1", final_attempt=False)

    def test_last_retry_is_final(self, scheduler_run):
        run_reconciliation_job.apply(args=["job-1"], retries=2).get()

        scheduler_run.assert_called_once_with("job-1", final_attempt=True)


@pytest.mark.django_db
class TestRecoverStalledJobs:
    def test_nothing_to_recover(self, dispatched):
        ReconciliationJobFactory()

        stats = recover_stalled_jobs()

        assert stats == {"reset_count": 0, "redispatched_count": 0, "dead_lettered_count": 0}
        dispatched.assert_not_called()

    def test_redispatches_overdue_pending_job(self, dispatched):
        job = ReconciliationJobFactory(run_at=timezone.now() - timedelta(minutes=30))

        stats = recover_stalled_jobs()

        assert stats["redispatched_count"] == 1
        dispatched.assert_called_once_with(args=[str(job.id)], countdown=0)

    def test_redispatches_failed_job_left_idle(self, dispatched):
        job = ReconciliationJobFactory(
            status=ReconciliationJobStatus.FAILED,
            attempts=1,
            run_at=timezone.now() - timedelta(minutes=5),
        )
        _age(job, minutes=20)

        stats = recover_stalled_jobs()

        assert stats["redispatched_count"] == 1
        dispatched.assert_called_once_with(args=[str(job.id)], countdown=0)

    def test_recently_failed_job_is_left_to_celery(self, dispatched):
        ReconciliationJobFactory(
            status=ReconciliationJobStatus.FAILED,
            attempts=1,
            run_at=timezone.now() - timedelta(minutes=30),
        )

        stats = recover_stalled_jobs()

        assert stats["redispatched_count"] == 0

    def test_resets_stuck_running_job(self, dispatched):
        job = ReconciliationJobFactory(
            status=ReconciliationJobStatus.RUNNING,
            attempts=1,
            started_at=timezone.now() - timedelta(minutes=30),
        )

        stats = recover_stalled_jobs()

        job.refresh_from_db()
        assert stats["reset_count"] == 1
        assert job.status == ReconciliationJobStatus.FAILED
        assert job.last_error == "Worker stopped while the job was running"

    def test_dead_letters_exhausted_job(self, dispatched):
        job = ReconciliationJobFactory(
            status=ReconciliationJobStatus.FAILED,
            attempts=3,
            last_error="ConnectionError: db went away",
        )
        _age(job, hours=1)

        stats = recover_stalled_jobs()

        job.refresh_from_db()
        assert stats["dead_lettered_count"] == 1
        assert job.status == ReconciliationJobStatus.DEAD_LETTERED
        assert job.last_error == "ConnectionError: db went away"
        dispatched.assert_not_called()

    def test_finished_jobs_are_ignored(self, dispatched):
        old = timezone.now() - timedelta(hours=2)
        for status in (
            ReconciliationJobStatus.SUCCEEDED,
            ReconciliationJobStatus.DISCARDED,
            ReconciliationJobStatus.DEAD_LETTERED,
        ):
            ReconciliationJobFactory(status=status, run_at=old)

        stats = recover_stalled_jobs()

        assert not any(stats.values())


@pytest.mark.django_db
class TestRecoveredJobAttempts:
    @pytest.fixture
    def broken_scheduler(self, mocker, fake_redis):
        scheduler = ReconciliationScheduler()
        handler = mocker.MagicMock(side_effect=ConnectionError("db went away"))
        scheduler.define("test_job", handler)
        mocker.patch("payments.scheduler.get_scheduler", return_value=scheduler)
        return scheduler

    def test_redispatched_job_stops_at_attempt_cap(self, broken_scheduler):
        job = ReconciliationJobFactory(
            job_type="test_job",
            status=ReconciliationJobStatus.FAILED,
            attempts=2,
        )

        # A fresh message, as sent by recover_stalled_jobs, starts at retry 0
        run_reconciliation_job.apply(args=[str(job.id)])

        job.refresh_from_db()
        assert job.attempts == 3
        assert job.status == ReconciliationJobStatus.DEAD_LETTERED
