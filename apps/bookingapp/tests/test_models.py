# apps/bookingapp/tests/test_models.py
from datetime import time
from decimal import Decimal

import pytz
from django.core.exceptions import ValidationError
from django.test import TestCase

from algorithms.availability.booking_rules import BlackoutRule, MinAdvanceRule, PeakPricingRule
from apps.bookingapp.models import Appointment, AvailabilityOverride, BookingRule, BookingRuleType
from apps.bookingapp.services.booking_store import BookingStore

from .factories import (
    TEST_DAY,
    TEST_SUNDAY,
    at,
    create_appointment,
    create_location,
    create_rule,
    create_service,
    create_staff,
)


class AppointmentModelTest(TestCase):
    """Test cases for the Appointment model"""

    def setUp(self):
        self.location = create_location()
        self.staff = create_staff(self.location, [create_service()])

    def test_end_must_follow_start(self):
        with self.assertRaises(ValidationError):
            create_appointment(self.staff, at(11), at(10))

    def test_staff_must_belong_to_location(self):
        other = create_location(name="Elsewhere")
        with self.assertRaises(ValidationError):
            Appointment.objects.create(location=other, staff=self.staff, start_time=at(10), end_time=at(11))

    def test_status_helpers(self):
        appointment = create_appointment(self.staff, at(10), at(11))
        self.assertTrue(appointment.is_active)
        self.assertEqual(appointment.duration_minutes, 60)

        appointment.mark_confirmed()
        self.assertEqual(appointment.status, "confirmed")
        self.assertTrue(appointment.is_active)

        appointment.mark_no_show()
        self.assertFalse(appointment.is_active)

    def test_mark_cancelled(self):
        appointment = create_appointment(self.staff, at(10), at(11))
        appointment.mark_cancelled(reason="double booked")
        appointment.refresh_from_db()

        self.assertEqual(appointment.status, "cancelled")
        self.assertEqual(appointment.cancellation_reason, "double booked")
        self.assertIsNotNone(appointment.cancelled_at)
        self.assertFalse(appointment.is_active)


class LocationModelTest(TestCase):
    def test_open_days(self):
        location = create_location()
        self.assertTrue(location.is_open_on(TEST_DAY))
        self.assertFalse(location.is_open_on(TEST_SUNDAY))

    def test_missing_hours_means_closed(self):
        location = create_location()
        location.hours.filter(weekday=TEST_DAY.weekday()).delete()
        self.assertFalse(location.is_open_on(TEST_DAY))


class BookingRuleModelTest(TestCase):
    """Rule validation and conversion to rule variants"""

    def setUp(self):
        self.location = create_location()
        self.store = BookingStore()

    def test_required_fields_per_type(self):
        rule = BookingRule(rule_type=BookingRuleType.PEAK_PRICING, start_time=time(17, 0))
        with self.assertRaises(ValidationError) as ctx:
            rule.clean()
        self.assertIn("end_time", ctx.exception.message_dict)
        self.assertIn("price_multiplier", ctx.exception.message_dict)

    def test_blackout_range_must_be_ordered(self):
        rule = BookingRule(rule_type=BookingRuleType.BLACKOUT_DATE, start_date=TEST_SUNDAY, end_date=TEST_DAY)
        with self.assertRaises(ValidationError):
            rule.clean()

    def test_to_rule_spec(self):
        min_rule = create_rule(BookingRuleType.MIN_ADVANCE_TIME, min_advance_hours=4, priority=3)
        blackout = create_rule(BookingRuleType.BLACKOUT_DATE, start_date=TEST_DAY, end_date=TEST_DAY)
        peak = create_rule(
            BookingRuleType.PEAK_PRICING,
            start_time=time(17, 0),
            end_time=time(19, 0),
            price_multiplier=Decimal("1.5"),
        )

        spec = BookingStore.to_rule_spec(min_rule, TEST_DAY, pytz.utc)
        self.assertIsInstance(spec, MinAdvanceRule)
        self.assertEqual(spec.priority, 3)

        spec = BookingStore.to_rule_spec(blackout, TEST_DAY, pytz.utc)
        self.assertIsInstance(spec, BlackoutRule)
        self.assertEqual(spec.starts_at, at(0))

        spec = BookingStore.to_rule_spec(peak, TEST_DAY, pytz.utc)
        self.assertIsInstance(spec, PeakPricingRule)
        self.assertEqual((spec.starts_at, spec.ends_at), (at(17), at(19)))

    def test_incomplete_rule_is_skipped(self):
        rule = create_rule(BookingRuleType.MAX_ADVANCE_TIME)
        self.assertEqual(self.store.get_rules(self.location, [], TEST_DAY, self.location.tzinfo), [])
        self.assertIsNone(BookingStore.to_rule_spec(rule, TEST_DAY, self.location.tzinfo))

    def test_rules_are_ordered_by_priority(self):
        low = create_rule(BookingRuleType.MIN_ADVANCE_TIME, location=self.location, min_advance_hours=1, priority=1)
        high = create_rule(BookingRuleType.MIN_ADVANCE_TIME, min_advance_hours=2, priority=9)

        rules = self.store.get_rules(self.location, [], TEST_DAY, self.location.tzinfo)
        self.assertEqual([rule.rule_id for rule in rules], [str(high.id), str(low.id)])

    def test_rules_of_other_locations_are_excluded(self):
        other = create_location(name="Elsewhere")
        create_rule(BookingRuleType.MIN_ADVANCE_TIME, location=other, min_advance_hours=1)
        self.assertEqual(self.store.get_rules(self.location, [], TEST_DAY, self.location.tzinfo), [])


class AvailabilityOverrideModelTest(TestCase):
    def test_end_must_follow_start(self):
        override = AvailabilityOverride(location=create_location(), start_datetime=at(12), end_datetime=at(11))
        with self.assertRaises(ValidationError):
            override.clean()
