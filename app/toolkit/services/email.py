"""
Email service for centralized email sending.

This module provides the EmailService class for sending emails with:
- Django template rendering for HTML and plain text
- Async sending via Celery

Related files:
    - tasks.py: send_email_task (async delivery with retry)
    - notifications/templates/: Booking and reminder templates

Configuration:
    Email settings are read from Django settings:
    - EMAIL_BACKEND
    - EMAIL_HOST, EMAIL_PORT
    - DEFAULT_FROM_EMAIL

Usage:
    from toolkit.services.email import EmailService

    # Send now
    EmailService.send(
        to="customer@example.com",
        subject="Booking confirmed",
        template_name="notifications/email/booking_confirmation",
        context={"order_code": "ORD-..."},
    )

    # Send from a Celery worker
    EmailService.send_async(
        to="customer@example.com",
        subject="Rent due soon",
        template_name="notifications/email/payment_reminder",
        context={"order_code": "ORD-...", "days_left": 3},
    )
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


class EmailService:
    """
    Centralized email sending with template support.

    Templates are looked up as {template_name}.txt and {template_name}.html.
    At least one of them must exist; a missing .txt is derived from the
    HTML by stripping tags.
    """

    @staticmethod
    def render(template_name: str, context: dict) -> tuple[str, str | None]:
        """
        Render the plain text and HTML bodies.

        Returns:
            (text_content, html_content or None)

        Raises:
            TemplateDoesNotExist: Neither template exists
        """
        try:
            html_content = render_to_string(f"{template_name}.html", context)
        except TemplateDoesNotExist:
            html_content = None

        try:
            text_content = render_to_string(f"{template_name}.txt", context)
        except TemplateDoesNotExist:
            if html_content is None:
                raise
            text_content = strip_tags(html_content)

        return text_content, html_content

    @staticmethod
    def send(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        from_email: str | None = None,
        reply_to: str | None = None,
    ) -> bool:
        """
        Send email using a template.

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            template_name: Name of template (without extension)
            context: Template context variables
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)
            reply_to: Reply-to address

        Returns:
            True if email was sent successfully

        Raises:
            TemplateDoesNotExist: Unknown template
            Exception: Whatever the email backend raises
        """
        if isinstance(to, str):
            to = [to]

        text_content, html_content = EmailService.render(template_name, context)

        email = EmailMultiAlternatives(
            subject=subject,
            body=text_content,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=to,
            reply_to=[reply_to] if reply_to else None,
        )
        if html_content:
            email.attach_alternative(html_content, "text/html")

        sent = email.send(fail_silently=False)
        logger.info(
            "Email sent",
            extra={"to": to, "subject": subject, "template_name": template_name},
        )
        return sent > 0

    @staticmethod
    def send_async(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        **kwargs,
    ) -> None:
        """
        Queue email for async sending via Celery.

        This method returns immediately; email is sent in background.

        Note:
            Context must be JSON-serializable for Celery.
        """
        from toolkit.tasks import send_email_task

        send_email_task.delay(
            to=to,
            subject=subject,
            template_name=template_name,
            context=context,
            **kwargs,
        )
        logger.debug("Email queued", extra={"to": to, "subject": subject})
