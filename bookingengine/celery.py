"""
Celery configuration for the booking engine.

Background work is the best-effort notification bus, whose booking
lifecycle events never block a booking, and the auto-resolution of
recorded booking conflicts.
"""

import logging
import os

from celery import Celery
from celery.signals import task_failure

logger = logging.getLogger(__name__)

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bookingengine.settings.development")

app = Celery("bookingengine")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.conf.task_routes = {
    "apps.bookingapp.tasks.*": {"queue": "booking_events"},
}

app.conf.beat_schedule = {
    "retry-pending-booking-conflicts": {
        "task": "apps.bookingapp.tasks.retry_pending_booking_conflicts",
        "schedule": 900.0,  # Every 15 minutes
    },
}

app.autodiscover_tasks()


@task_failure.connect
def log_task_failure(sender=None, task_id=None, exception=None, **kwargs):
    """Log failed tasks; event delivery failures never reach the booking path."""
    task_name = sender.name if sender else "unknown"
    logger.error(f"Task {task_name} ({task_id}) failed: {exception}")
