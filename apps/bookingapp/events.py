# apps/bookingapp/events.py
from django.dispatch import Signal

BOOKING_CREATED = "booking.created"
BOOKING_UPDATED = "booking.updated"
BOOKING_CANCELLED = "booking.cancelled"
BOOKING_CONFLICT_DETECTED = "booking.conflict_detected"
BOOKING_CONFLICT_RESOLVED = "booking.conflict_resolved"
BOOKING_CONFLICT_ESCALATED = "booking.conflict_escalated"

BOOKING_EVENTS = (
    BOOKING_CREATED,
    BOOKING_UPDATED,
    BOOKING_CANCELLED,
    BOOKING_CONFLICT_DETECTED,
    BOOKING_CONFLICT_RESOLVED,
    BOOKING_CONFLICT_ESCALATED,
)

# Sent with event=<name> and payload=<dict> for in-process subscribers
booking_event_published = Signal()


def appointment_payload(appointment):
    """JSON-safe snapshot of an appointment for event consumers"""
    return {
        "appointment_id": str(appointment.id),
        "location_id": str(appointment.location_id),
        "staff_id": str(appointment.staff_id),
        "customer_id": str(appointment.customer_id) if appointment.customer_id else None,
        "start_time": appointment.start_time.isoformat(),
        "end_time": appointment.end_time.isoformat(),
        "status": appointment.status,
    }
