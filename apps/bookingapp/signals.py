# apps/bookingapp/signals.py
from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.bookingapp.events import (
    BOOKING_CANCELLED,
    BOOKING_CREATED,
    BOOKING_UPDATED,
    appointment_payload,
)
from apps.bookingapp.models import Appointment, AppointmentStatus
from apps.bookingapp.services.notification_bus import NotificationBus


@receiver(post_save, sender=Appointment)
def appointment_post_save(sender, instance, created, **kwargs):
    """
    Handle post-save signal for Appointments.
    Publishes created, cancelled and updated events once the write commits.
    """
    bus = NotificationBus()

    if created:
        bus.publish_on_commit(BOOKING_CREATED, appointment_payload(instance))

    elif instance.tracker.has_changed("status") and instance.status == AppointmentStatus.CANCELLED.value:
        payload = appointment_payload(instance)
        payload["reason"] = instance.cancellation_reason
        bus.publish_on_commit(BOOKING_CANCELLED, payload)

    # Reschedule or reassignment
    elif (
        instance.tracker.has_changed("start_time")
        or instance.tracker.has_changed("end_time")
        or instance.tracker.has_changed("staff_id")
        or instance.tracker.has_changed("status")
    ):
        payload = appointment_payload(instance)
        if instance.tracker.has_changed("start_time"):
            previous = instance.tracker.previous("start_time")
            payload["previous_start_time"] = previous.isoformat() if previous else None
        bus.publish_on_commit(BOOKING_UPDATED, payload)
