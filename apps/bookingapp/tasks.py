# apps/bookingapp/tasks.py
import logging

from celery import shared_task

from apps.bookingapp.events import BOOKING_EVENTS, booking_event_published
from apps.bookingapp.models import BookingConflict, ConflictStatus
from apps.bookingapp.services.conflict_service import ConflictService
from core.exceptions.custom_exceptions import InvalidOperationException, ResourceNotFoundException

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def publish_booking_event(event, payload):
    """Re-emit a booking lifecycle event to in-process subscribers"""
    if event not in BOOKING_EVENTS:
        logger.warning(f"Dropping unknown booking event {event}")
        return f"Unknown event {event}"

    responses = booking_event_published.send_robust(sender=None, event=event, payload=payload)
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(f"Booking event subscriber {receiver} failed for {event}: {response}")

    logger.info(f"Published {event} for appointment {payload.get('appointment_id')}")
    return f"Published {event} to {len(responses)} subscribers"


@shared_task
def record_appointment_conflicts(appointment_id):
    """Record conflicts for a stored appointment and queue their auto-resolution"""
    conflict_ids = ConflictService().detect_and_record_conflicts(appointment_id)
    for conflict_id in conflict_ids:
        auto_resolve_booking_conflict.delay(conflict_id)

    logger.info(f"Recorded {len(conflict_ids)} conflicts for appointment {appointment_id}")
    return conflict_ids


@shared_task(ignore_result=True)
def auto_resolve_booking_conflict(conflict_id):
    """Make one auto-resolution attempt for a pending conflict"""
    try:
        conflict = ConflictService().attempt_auto_resolution(conflict_id)
    except (InvalidOperationException, ResourceNotFoundException) as e:
        logger.info(f"Skipping auto-resolution of conflict {conflict_id}: {e.message}")
        return f"Skipped conflict {conflict_id}"

    return f"Conflict {conflict_id} is {conflict.status}"


@shared_task
def retry_pending_booking_conflicts():
    """Queue another auto-resolution attempt for every pending conflict"""
    conflict_ids = [
        str(conflict_id)
        for conflict_id in BookingConflict.objects.filter(status=ConflictStatus.PENDING).values_list("id", flat=True)
    ]
    for conflict_id in conflict_ids:
        auto_resolve_booking_conflict.delay(conflict_id)

    return f"Queued {len(conflict_ids)} pending conflicts"
