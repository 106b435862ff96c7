# apps/bookingapp/tests/test_events.py
from unittest.mock import MagicMock, patch

from django.db import transaction
from django.db.utils import OperationalError
from django.test import TestCase

from apps.bookingapp.events import (
    BOOKING_CANCELLED,
    BOOKING_CREATED,
    BOOKING_UPDATED,
    booking_event_published,
)
from apps.bookingapp.services.notification_bus import NotificationBus
from apps.bookingapp.tasks import publish_booking_event

from .factories import at, create_appointment, create_location, create_service, create_staff


class AppointmentSignalTest(TestCase):
    """Lifecycle events published from appointment saves"""

    def setUp(self):
        self.location = create_location()
        self.staff = create_staff(self.location, [create_service()])

        patcher = patch("apps.bookingapp.services.notification_bus.NotificationBus.publish")
        self.publish = patcher.start()
        self.addCleanup(patcher.stop)

    def published(self):
        return [call.args[0] for call in self.publish.call_args_list]

    def create(self):
        with self.captureOnCommitCallbacks(execute=True):
            appointment = create_appointment(self.staff, at(10), at(11))
        self.publish.reset_mock()
        return appointment

    def test_created(self):
        with self.captureOnCommitCallbacks(execute=True):
            appointment = create_appointment(self.staff, at(10), at(11))

        self.assertEqual(self.published(), [BOOKING_CREATED])
        payload = self.publish.call_args[0][1]
        self.assertEqual(payload["appointment_id"], str(appointment.id))
        self.assertEqual(payload["start_time"], at(10).isoformat())

    def test_nothing_is_published_before_commit(self):
        with self.captureOnCommitCallbacks() as callbacks:
            create_appointment(self.staff, at(10), at(11))

        self.assertEqual(len(callbacks), 1)
        self.publish.assert_not_called()

    def test_rolled_back_save_publishes_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    create_appointment(self.staff, at(10), at(11))
                    raise OperationalError("database is locked")
            except OperationalError:
                pass

        self.assertEqual(callbacks, [])
        self.publish.assert_not_called()

    def test_cancelled(self):
        appointment = self.create()

        with self.captureOnCommitCallbacks(execute=True):
            appointment.mark_cancelled(reason="sick")

        self.assertEqual(self.published(), [BOOKING_CANCELLED])
        self.assertEqual(self.publish.call_args[0][1]["reason"], "sick")

    def test_rescheduled(self):
        appointment = self.create()

        with self.captureOnCommitCallbacks(execute=True):
            appointment.start_time = at(12)
            appointment.end_time = at(13)
            appointment.save()

        self.assertEqual(self.published(), [BOOKING_UPDATED])
        self.assertEqual(self.publish.call_args[0][1]["previous_start_time"], at(10).isoformat())

    def test_no_show_is_an_update(self):
        appointment = self.create()

        with self.captureOnCommitCallbacks(execute=True):
            appointment.mark_no_show()

        self.assertEqual(self.published(), [BOOKING_UPDATED])

    def test_unrelated_change_publishes_nothing(self):
        appointment = self.create()

        with self.captureOnCommitCallbacks(execute=True):
            appointment.notes = "Prefers window seat"
            appointment.save()

        self.assertEqual(self.published(), [])


class NotificationBusTest(TestCase):
    def test_publish_delivers_to_subscribers(self):
        receiver = MagicMock()
        booking_event_published.connect(receiver, weak=False, dispatch_uid="test-receiver")
        self.addCleanup(booking_event_published.disconnect, dispatch_uid="test-receiver")

        self.assertTrue(NotificationBus().publish(BOOKING_CREATED, {"appointment_id": "a1"}))

        receiver.assert_called_once()
        self.assertEqual(receiver.call_args.kwargs["event"], BOOKING_CREATED)
        self.assertEqual(receiver.call_args.kwargs["payload"], {"appointment_id": "a1"})

    @patch("apps.bookingapp.tasks.publish_booking_event.delay")
    def test_broker_failure_is_swallowed(self, mock_delay):
        mock_delay.side_effect = ConnectionError("broker down")
        self.assertFalse(NotificationBus().publish(BOOKING_CREATED, {"appointment_id": "a1"}))

    def test_failing_subscriber_does_not_break_the_task(self):
        def broken(**kwargs):
            raise RuntimeError("subscriber failure")

        booking_event_published.connect(broken, weak=False, dispatch_uid="broken-receiver")
        self.addCleanup(booking_event_published.disconnect, dispatch_uid="broken-receiver")

        result = publish_booking_event(BOOKING_UPDATED, {"appointment_id": "a1"})
        self.assertTrue(result.startswith("Published"))

    def test_unknown_event_is_dropped(self):
        receiver = MagicMock()
        booking_event_published.connect(receiver, weak=False, dispatch_uid="test-receiver")
        self.addCleanup(booking_event_published.disconnect, dispatch_uid="test-receiver")

        publish_booking_event("booking.exploded", {})
        receiver.assert_not_called()

    @patch("apps.bookingapp.tasks.publish_booking_event.delay")
    def test_publish_on_commit_waits_for_the_transaction(self, mock_delay):
        with self.captureOnCommitCallbacks(execute=True):
            NotificationBus().publish_on_commit(BOOKING_CREATED, {"appointment_id": "a1"})
            mock_delay.assert_not_called()

        mock_delay.assert_called_once_with(BOOKING_CREATED, {"appointment_id": "a1"})
