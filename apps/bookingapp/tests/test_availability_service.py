# apps/bookingapp/tests/test_availability_service.py
from datetime import time, timedelta
from decimal import Decimal

import pytz
from django.test import TestCase

from apps.bookingapp.models import BookingRuleType
from apps.bookingapp.services.availability_service import AvailabilityService
from apps.staffapp.enums import AbsenceStatus, StaffStatus
from apps.staffapp.models import ScheduleTimeSlot, StaffAbsence
from core.exceptions.custom_exceptions import (
    InactiveResourceException,
    InvalidDataException,
    ResourceNotFoundException,
)

from .factories import (
    TEST_DAY,
    at,
    create_appointment,
    create_customer,
    create_location,
    create_rule,
    create_schedule,
    create_service,
    create_staff,
    fixed_clock,
)


class AvailabilityServiceTest(TestCase):
    """Test cases for the AvailabilityService"""

    def setUp(self):
        """Set up test data"""
        self.location = create_location()
        self.service = create_service()
        self.staff = create_staff(self.location, [self.service])
        self.schedule = create_schedule(self.staff)

        # Existing appointment 10:00-11:00
        self.appointment = create_appointment(self.staff, at(10), at(11), [self.service])

        self.availability = AvailabilityService(clock=fixed_clock())

    def get_slots(self, **kwargs):
        params = {
            "location_id": self.location.id,
            "service_ids": [self.service.id],
            "target_date": TEST_DAY,
        }
        params.update(kwargs)
        return self.availability.get_available_slots(**params)

    def test_open_day_with_one_booking(self):
        """09:00 and every 15-minute window from 11:00 through 18:00 are offered"""
        slots = self.get_slots()

        expected = [at(9)] + [at(11) + timedelta(minutes=15 * i) for i in range(29)]
        self.assertEqual([slot.start for slot in slots], expected)
        self.assertEqual(slots[-1].end, at(19))

        starts = {slot.start for slot in slots}
        for start in (at(9, 15), at(9, 30), at(9, 45)):
            self.assertNotIn(start, starts)

    def test_slots_never_overlap_existing_appointments(self):
        create_appointment(self.staff, at(14, 10), at(14, 40))
        for slot in self.get_slots():
            self.assertFalse(slot.start < at(11) and slot.end > at(10))
            self.assertFalse(slot.start < at(14, 40) and slot.end > at(14, 10))

    def test_cancelled_and_no_show_appointments_do_not_block(self):
        self.appointment.mark_cancelled("customer request")
        create_appointment(self.staff, at(15), at(16), status="no_show")

        starts = {slot.start for slot in self.get_slots()}
        self.assertIn(at(10), starts)
        self.assertIn(at(15), starts)

    def test_slot_length_sums_duration_and_buffer_of_every_service(self):
        extra = create_service(name="Beard Trim", duration=20, buffer_time=10, price="40.00")
        self.service.buffer_time = 5
        self.service.save()
        self.staff.staff_services.create(service=extra)

        slots = self.get_slots(service_ids=[self.service.id, extra.id])

        self.assertTrue(slots)
        for slot in slots:
            self.assertEqual(slot.end - slot.start, timedelta(minutes=95))
            self.assertEqual(slot.price, Decimal("140.00"))

    def test_break_is_excluded(self):
        self.schedule.break_start = time(13, 0)
        self.schedule.break_end = time(14, 0)
        self.schedule.save()

        slots = self.get_slots()
        self.assertTrue(slots)
        for slot in slots:
            self.assertFalse(slot.start < at(14) and slot.end > at(13))
        self.assertIn(at(12), [slot.start for slot in slots])
        self.assertIn(at(14), [slot.start for slot in slots])

    def test_starts_align_to_schedule_start(self):
        self.schedule.start_time = time(9, 10)
        self.schedule.save()

        for slot in self.get_slots():
            self.assertEqual((slot.start - at(9, 10)) % timedelta(minutes=15), timedelta(0))

    def test_results_are_deterministic(self):
        second = create_staff(self.location, [self.service], name="Bob")
        create_schedule(second)
        self.assertEqual(self.get_slots(), self.get_slots())

    def test_equal_starts_keep_staff_name_order(self):
        bob = create_staff(self.location, [self.service], name="Bob")
        create_schedule(bob)
        aaron = create_staff(self.location, [self.service], name="Aaron")
        create_schedule(aaron)

        slots = [slot for slot in self.get_slots() if slot.start == at(9)]
        self.assertEqual([slot.staff_id for slot in slots], [str(aaron.id), str(self.staff.id), str(bob.id)])

    def test_vip_customer_sees_prime_time_first(self):
        vip = create_customer(is_vip=True)
        regular = create_customer(is_vip=False)

        vip_slots = self.get_slots(customer_id=vip.id)
        regular_slots = self.get_slots(customer_id=regular.id)

        self.assertEqual(vip_slots[0].start, at(11))
        self.assertLess(
            [slot.start for slot in vip_slots].index(at(11)),
            [slot.start for slot in vip_slots].index(at(9)),
        )
        self.assertEqual(regular_slots[0].start, at(9))
        self.assertEqual(sorted(vip_slots, key=lambda slot: slot.start), regular_slots)

    def test_peak_pricing(self):
        create_rule(
            BookingRuleType.PEAK_PRICING,
            location=self.location,
            start_time=time(17, 0),
            end_time=time(19, 0),
            price_multiplier=Decimal("1.5"),
        )
        slots = {slot.start: slot for slot in self.get_slots()}

        self.assertEqual(slots[at(17)].price, Decimal("150.00"))
        self.assertTrue(slots[at(17)].is_peak)
        self.assertEqual(slots[at(16, 45)].price, Decimal("100.00"))
        self.assertFalse(slots[at(16, 45)].is_peak)

    def test_blackout_date_removes_the_day(self):
        create_rule(BookingRuleType.BLACKOUT_DATE, location=self.location, start_date=TEST_DAY, end_date=TEST_DAY)
        self.assertEqual(self.get_slots(), [])

    def test_rules_for_other_staff_do_not_apply(self):
        other = create_staff(self.location, [self.service], name="Bob")
        create_rule(BookingRuleType.BLACKOUT_DATE, staff=other, start_date=TEST_DAY, end_date=TEST_DAY)
        self.assertTrue(self.get_slots())

    def test_inactive_rule_is_ignored(self):
        create_rule(
            BookingRuleType.BLACKOUT_DATE,
            location=self.location,
            start_date=TEST_DAY,
            end_date=TEST_DAY,
            is_active=False,
        )
        self.assertTrue(self.get_slots())

    def test_min_advance_time(self):
        create_rule(BookingRuleType.MIN_ADVANCE_TIME, min_advance_hours=2)
        availability = AvailabilityService(clock=fixed_clock(at(10)))

        slots = availability.get_available_slots(self.location.id, [self.service.id], TEST_DAY)
        self.assertEqual(slots[0].start, at(12, 15))

    def test_max_advance_time(self):
        create_rule(BookingRuleType.MAX_ADVANCE_TIME, location=self.location, max_advance_days=1)
        self.assertEqual(self.get_slots(), [])

    def test_discrete_slots_limit_availability(self):
        ScheduleTimeSlot.objects.create(schedule=self.schedule, start_time=time(9, 0), end_time=time(10, 0))
        ScheduleTimeSlot.objects.create(schedule=self.schedule, start_time=time(14, 0), end_time=time(15, 30))
        ScheduleTimeSlot.objects.create(
            schedule=self.schedule, start_time=time(16, 0), end_time=time(17, 0), is_available=False
        )

        starts = [slot.start for slot in self.get_slots()]
        self.assertEqual(starts, [at(9), at(14), at(14, 15), at(14, 30)])

    def test_deny_override_blocks_window(self):
        self.location.availability_overrides.create(
            staff=self.staff, start_datetime=at(13), end_datetime=at(14), is_available=False
        )
        for slot in self.get_slots():
            self.assertFalse(slot.start < at(14) and slot.end > at(13))

    def test_approved_absence_removes_staff(self):
        StaffAbsence.objects.create(
            staff=self.staff, start_date=TEST_DAY, end_date=TEST_DAY, status=AbsenceStatus.PENDING
        )
        self.assertTrue(self.get_slots())

        StaffAbsence.objects.create(
            staff=self.staff, start_date=TEST_DAY, end_date=TEST_DAY, status=AbsenceStatus.APPROVED
        )
        self.assertEqual(self.get_slots(), [])

    def test_unbookable_staff_are_skipped(self):
        self.staff.booking_enabled = False
        self.staff.save()
        self.assertEqual(self.get_slots(), [])

        self.staff.booking_enabled = True
        self.staff.status = StaffStatus.INACTIVE
        self.staff.save()
        self.assertEqual(self.get_slots(), [])

    def test_staff_must_offer_every_service(self):
        other_service = create_service(name="Coloring")
        self.assertEqual(self.get_slots(service_ids=[self.service.id, other_service.id]), [])

    def test_no_schedule_means_no_slots(self):
        self.assertEqual(self.get_slots(target_date=TEST_DAY + timedelta(days=1)), [])

    def test_staff_filter(self):
        bob = create_staff(self.location, [self.service], name="Bob")
        create_schedule(bob)

        slots = self.get_slots(staff_id=bob.id)
        self.assertTrue(slots)
        self.assertEqual({slot.staff_id for slot in slots}, {str(bob.id)})

    def test_location_timezone(self):
        riyadh = pytz.timezone("Asia/Riyadh")
        self.location.timezone = "Asia/Riyadh"
        self.location.save()

        slots = self.get_slots()
        self.assertEqual(slots[0].start, at(9, tz=riyadh))
        self.assertEqual(slots[0].start, at(6))

    def test_explicit_timezone_overrides_location(self):
        slots = self.get_slots(timezone_name="Asia/Riyadh")
        self.assertEqual(slots[0].start, at(6))

    def test_unknown_timezone(self):
        with self.assertRaises(InvalidDataException):
            self.get_slots(timezone_name="Mars/Olympus")

    def test_inactive_location(self):
        self.location.is_active = False
        self.location.save()
        with self.assertRaises(InactiveResourceException):
            self.get_slots()

    def test_unknown_location(self):
        with self.assertRaises(ResourceNotFoundException):
            self.get_slots(location_id="00000000-0000-0000-0000-000000000000")

    def test_inactive_service(self):
        self.service.is_active = False
        self.service.save()
        with self.assertRaises(ResourceNotFoundException):
            self.get_slots()

    def test_no_services(self):
        with self.assertRaises(InvalidDataException):
            self.get_slots(service_ids=[])
