"""
Toolkit - shared outbound services.

Key components:
    - services/email.py: EmailService (templated email, sync or via Celery)
    - tasks.py: send_email_task

Usage:
    from toolkit.services import EmailService

Note:
    This app has no models. For base models, exceptions and the service
    layer, see core/.
"""
