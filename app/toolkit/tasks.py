"""
Celery tasks for toolkit app.

Tasks:
    send_email_task: Deliver a templated email, retrying SMTP failures

Usage:
    from toolkit.services import EmailService

    # Preferred: goes through this task
    EmailService.send_async(to=..., subject=..., template_name=..., context=...)
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from celery import shared_task

from toolkit.services.email import EmailService

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError, TimeoutError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_email_task(
    self,
    to: str | list[str],
    subject: str,
    template_name: str,
    context: dict,
    **kwargs,
) -> bool:
    """
    Send a templated email.

    Transient transport errors are retried with exponential backoff;
    template errors fail immediately.
    """
    logger.info(
        "Sending email",
        extra={
            "to": to,
            "template_name": template_name,
            "attempt": self.request.retries + 1,
        },
    )
    return EmailService.send(
        to=to,
        subject=subject,
        template_name=template_name,
        context=context,
        **kwargs,
    )
