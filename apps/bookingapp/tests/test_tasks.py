# apps/bookingapp/tests/test_tasks.py
from unittest.mock import patch

from django.test import TestCase

from apps.bookingapp.models import BookingConflict, ConflictStatus
from apps.bookingapp.tasks import (
    auto_resolve_booking_conflict,
    record_appointment_conflicts,
    retry_pending_booking_conflicts,
)

from .factories import at, create_appointment, create_location, create_schedule, create_service, create_staff


class ConflictTaskTest(TestCase):
    """Test cases for the conflict recording and resolution tasks"""

    def setUp(self):
        self.location = create_location()
        self.service = create_service()
        self.staff = create_staff(self.location, [self.service])
        create_schedule(self.staff)
        create_appointment(self.staff, at(10), at(11), [self.service])
        self.clashing = create_appointment(self.staff, at(10), at(11), [self.service])

    @patch("apps.bookingapp.tasks.auto_resolve_booking_conflict.delay")
    def test_record_queues_resolution(self, mock_delay):
        conflict_ids = record_appointment_conflicts(str(self.clashing.id))

        self.assertEqual(len(conflict_ids), 1)
        mock_delay.assert_called_once_with(conflict_ids[0])

    def test_record_and_resolve(self):
        conflict_id = record_appointment_conflicts(str(self.clashing.id))[0]

        conflict = BookingConflict.objects.get(id=conflict_id)
        self.assertEqual(conflict.status, ConflictStatus.AUTO_RESOLVED)
        self.assertEqual(conflict.auto_resolution_attempts, 1)

    def test_resolve_skips_settled_conflicts(self):
        with patch("apps.bookingapp.tasks.auto_resolve_booking_conflict.delay"):
            conflict_id = record_appointment_conflicts(str(self.clashing.id))[0]
        BookingConflict.objects.get(id=conflict_id).mark_resolved()

        self.assertEqual(auto_resolve_booking_conflict(conflict_id), f"Skipped conflict {conflict_id}")
        self.assertEqual(
            auto_resolve_booking_conflict("00000000-0000-0000-0000-000000000000"),
            "Skipped conflict 00000000-0000-0000-0000-000000000000",
        )

    @patch("apps.bookingapp.tasks.auto_resolve_booking_conflict.delay")
    def test_retry_only_queues_pending_conflicts(self, mock_delay):
        conflict_id = record_appointment_conflicts(str(self.clashing.id))[0]
        other = create_appointment(self.staff, at(10, 30), at(11, 30), [self.service])
        settled_id = record_appointment_conflicts(str(other.id))[0]
        BookingConflict.objects.get(id=settled_id).mark_resolved()
        mock_delay.reset_mock()

        self.assertEqual(retry_pending_booking_conflicts(), "Queued 1 pending conflicts")
        mock_delay.assert_called_once_with(conflict_id)
