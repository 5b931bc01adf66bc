"""
Add celery-beat schedules for the rent cycle and stalled reconciliation jobs.

run_rent_cycle_sweep runs once a day shortly after midnight and counts down
each active rental's days-until-due. recover_stalled_jobs runs every 5
minutes and re-dispatches reconciliation jobs whose Celery message was lost.
"""

from django.db import migrations

RENT_CYCLE_TASK_NAME = "Advance Rent Cycle"
RECOVERY_TASK_NAME = "Recover Stalled Reconciliation Jobs"


def create_periodic_tasks(apps, schema_editor):
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Daily at 00:05 UTC
    daily, _ = CrontabSchedule.objects.get_or_create(
        minute="5",
        hour="0",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )
    PeriodicTask.objects.get_or_create(
        name=RENT_CYCLE_TASK_NAME,
        defaults={
            "task": "payments.workers.rent_cycle.run_rent_cycle_sweep",
            "crontab": daily,
            "enabled": True,
            "description": (
                "Decrements payment_day on active rentals and reminds "
                "customers whose next month is almost due."
            ),
        },
    )

    every_five_minutes, _ = IntervalSchedule.objects.get_or_create(
        every=5,
        period="minutes",
    )
    PeriodicTask.objects.get_or_create(
        name=RECOVERY_TASK_NAME,
        defaults={
            "task": "payments.tasks.recover_stalled_jobs",
            "interval": every_five_minutes,
            "enabled": True,
            "description": (
                "Re-dispatches reconciliation jobs stuck in pending, running "
                "or failed, and dead-letters those out of attempts."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(
        name__in=[RENT_CYCLE_TASK_NAME, RECOVERY_TASK_NAME],
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
