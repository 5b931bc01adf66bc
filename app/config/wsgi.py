"""
WSGI entry point for the warehouse marketplace API.

Gunicorn serves the booking, verification and payout endpoints through the
module-level ``application`` callable. Celery workers and beat do not go
through this module; they load settings via config.celery.

Run:
    gunicorn config.wsgi:application --bind 0.0.0.0:8000 --workers 4
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
