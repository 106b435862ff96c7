# algorithms/tests/test_conflict_detector.py
from datetime import datetime, timedelta

import pytz
from django.test import SimpleTestCase

from algorithms.availability.booking_rules import MinAdvanceRule
from algorithms.availability.conflict_detector import (
    BookedInterval,
    BookingProposal,
    ConflictDetector,
    ConflictKind,
    OverrideWindow,
    StaffState,
    is_double_booking,
)
from algorithms.availability.rule_evaluator import RuleEvaluator
from algorithms.availability.slot_generator import ScheduleWindow
from algorithms.availability.time_range import TimeRange


def at(hour, minute=0):
    return pytz.utc.localize(datetime(2030, 1, 7, hour, minute))


STAFF = "staff-1"
ACTIVE = StaffState(STAFF, is_active=True, booking_enabled=True)


class DoubleBookingTest(SimpleTestCase):
    """The three-way overlap test between a proposal and an existing booking"""

    def setUp(self):
        self.existing = TimeRange(at(10), at(11))

    def test_identical_interval(self):
        self.assertTrue(is_double_booking(TimeRange(at(10), at(11)), self.existing))

    def test_proposal_nested_inside_existing(self):
        self.assertTrue(is_double_booking(TimeRange(at(10, 15), at(10, 45)), self.existing))

    def test_existing_nested_inside_proposal(self):
        self.assertTrue(is_double_booking(TimeRange(at(9), at(12)), self.existing))

    def test_partial_overlap_on_either_edge(self):
        self.assertTrue(is_double_booking(TimeRange(at(9, 30), at(10, 30)), self.existing))
        self.assertTrue(is_double_booking(TimeRange(at(10, 30), at(11, 30)), self.existing))

    def test_adjacent_intervals_do_not_conflict(self):
        self.assertFalse(is_double_booking(TimeRange(at(9), at(10)), self.existing))
        self.assertFalse(is_double_booking(TimeRange(at(11), at(12)), self.existing))

    def test_matches_half_open_overlap(self):
        for start_minute in range(0, 240, 15):
            for length in (15, 30, 60, 90):
                start = at(8) + timedelta(minutes=start_minute)
                proposal = TimeRange(start, start + timedelta(minutes=length))
                self.assertEqual(is_double_booking(proposal, self.existing), proposal.overlaps(self.existing))


class DetectConflictsTest(SimpleTestCase):
    """Test cases for proposal classification"""

    def setUp(self):
        self.detector = ConflictDetector(RuleEvaluator(at(0)))
        self.proposal = BookingProposal(STAFF, at(10), at(11), "loc-1")

    def detect(self, appointments=(), overrides=(), staff_state=ACTIVE, location_open=True, exclude=None):
        return self.detector.detect_conflicts(
            self.proposal, staff_state, list(appointments), list(overrides), location_open, exclude
        )

    def test_clean_proposal_has_no_conflicts(self):
        self.assertEqual(self.detect(appointments=[BookedInterval(at(11), at(12), STAFF, "a1")]), set())

    def test_double_booking(self):
        conflicts = self.detect(appointments=[BookedInterval(at(10, 30), at(11, 30), STAFF, "a1")])
        self.assertEqual(conflicts, {ConflictKind.DOUBLE_BOOKING})

    def test_excluded_appointment_is_ignored(self):
        appointments = [BookedInterval(at(10), at(11), STAFF, "a1")]
        self.assertEqual(self.detect(appointments=appointments, exclude="a1"), set())
        self.assertEqual(self.detect(appointments=appointments, exclude="a2"), {ConflictKind.DOUBLE_BOOKING})

    def test_inactive_or_disabled_staff_is_unavailable(self):
        self.assertEqual(
            self.detect(staff_state=StaffState(STAFF, is_active=False, booking_enabled=True)),
            {ConflictKind.STAFF_UNAVAILABLE},
        )
        self.assertEqual(
            self.detect(staff_state=StaffState(STAFF, is_active=True, booking_enabled=False)),
            {ConflictKind.STAFF_UNAVAILABLE},
        )

    def test_unknown_staff_is_unavailable(self):
        self.assertEqual(self.detect(staff_state=None), {ConflictKind.STAFF_UNAVAILABLE})

    def test_deny_override_makes_staff_unavailable(self):
        deny = OverrideWindow(at(10, 30), at(12), is_available=False, staff_id=STAFF)
        self.assertEqual(self.detect(overrides=[deny]), {ConflictKind.STAFF_UNAVAILABLE})

    def test_allow_override_does_not_block(self):
        allow = OverrideWindow(at(10), at(12), is_available=True)
        self.assertEqual(self.detect(overrides=[allow]), set())

    def test_closed_location(self):
        self.assertEqual(self.detect(location_open=False), {ConflictKind.BRANCH_CLOSED})

    def test_all_kinds_are_reported_together(self):
        conflicts = self.detect(
            appointments=[BookedInterval(at(10), at(11), STAFF, "a1")],
            staff_state=None,
            location_open=False,
        )
        self.assertEqual(
            conflicts,
            {ConflictKind.DOUBLE_BOOKING, ConflictKind.STAFF_UNAVAILABLE, ConflictKind.BRANCH_CLOSED},
        )

    def test_overlapping_appointments(self):
        appointments = [
            BookedInterval(at(9), at(10), STAFF, "a1"),
            BookedInterval(at(10, 30), at(11), STAFF, "a2"),
            BookedInterval(at(10), at(11), STAFF, "a3"),
        ]
        overlapping = ConflictDetector.overlapping_appointments(self.proposal, appointments, exclude_appointment_id="a3")
        self.assertEqual([a.appointment_id for a in overlapping], ["a2"])


class SlotAvailabilityTest(SimpleTestCase):
    """Test cases for candidate window filtering"""

    def setUp(self):
        self.detector = ConflictDetector(RuleEvaluator(at(0)))
        self.schedule = ScheduleWindow(STAFF, TimeRange(at(9), at(19)))

    def test_free_window(self):
        self.assertTrue(self.detector.is_slot_available(TimeRange(at(9), at(10)), [], [], self.schedule, []))

    def test_overlapping_appointment(self):
        booked = [BookedInterval(at(10), at(11), STAFF)]
        self.assertFalse(self.detector.is_slot_available(TimeRange(at(9, 30), at(10, 30)), booked, [], self.schedule, []))
        self.assertTrue(self.detector.is_slot_available(TimeRange(at(11), at(12)), booked, [], self.schedule, []))

    def test_deny_override_blocks(self):
        deny = OverrideWindow(at(9, 30), at(9, 45), is_available=False)
        self.assertFalse(self.detector.is_slot_available(TimeRange(at(9), at(10)), [], [deny], self.schedule, []))

    def test_failing_rule_blocks(self):
        self.assertFalse(
            self.detector.is_slot_available(TimeRange(at(9), at(10)), [], [], self.schedule, [MinAdvanceRule(10)])
        )

    def test_discrete_slots_require_containment(self):
        schedule = ScheduleWindow(STAFF, TimeRange(at(9), at(19)), discrete_slots=[TimeRange(at(9), at(10, 30))])
        self.assertTrue(self.detector.is_slot_available(TimeRange(at(9), at(10)), [], [], schedule, []))
        self.assertTrue(self.detector.is_slot_available(TimeRange(at(9, 30), at(10, 30)), [], [], schedule, []))
        self.assertFalse(self.detector.is_slot_available(TimeRange(at(9, 45), at(10, 45)), [], [], schedule, []))

    def test_fully_booked_discrete_schedule_blocks_everything(self):
        schedule = ScheduleWindow(STAFF, TimeRange(at(9), at(19)), discrete_slots=[], has_discrete_slots=True)
        self.assertFalse(self.detector.is_slot_available(TimeRange(at(9), at(10)), [], [], schedule, []))
