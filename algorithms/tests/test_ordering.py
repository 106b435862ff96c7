# algorithms/tests/test_ordering.py
from datetime import datetime, timedelta

import pytz
from django.test import SimpleTestCase

from algorithms.availability.alternative_selector import AlternativeSelector, nearest_slots, time_of_day_distance
from algorithms.availability.time_range import TimeRange, TimeSlot
from algorithms.availability.vip_prioritizer import VipPrioritizer
from algorithms.optimization.workload_balancer import WorkloadBalancer
from algorithms.availability.conflict_detector import BookedInterval


def at(hour, minute=0, day=7):
    return pytz.utc.localize(datetime(2030, 1, day, hour, minute))


def slot(hour, minute=0, day=7, minutes=60, staff="s1"):
    start = at(hour, minute, day)
    return TimeSlot(staff, start, start + timedelta(minutes=minutes))


class VipPrioritizerTest(SimpleTestCase):
    def setUp(self):
        self.prioritizer = VipPrioritizer(TimeRange(at(10), at(14)))

    def test_prime_band_slots_come_first(self):
        ordered = self.prioritizer.prioritize([slot(9), slot(11)])
        self.assertEqual([s.start for s in ordered], [at(11), at(9)])

    def test_groups_stay_chronological(self):
        ordered = self.prioritizer.prioritize([slot(15), slot(12), slot(9), slot(10), slot(14)])
        self.assertEqual([s.start for s in ordered], [at(10), at(12), at(9), at(14), at(15)])

    def test_band_end_is_exclusive(self):
        self.assertTrue(self.prioritizer.in_prime_band(slot(13, 45)))
        self.assertFalse(self.prioritizer.in_prime_band(slot(14)))

    def test_nothing_is_dropped_or_changed(self):
        slots = [slot(9), slot(11), slot(16)]
        self.assertEqual(sorted(self.prioritizer.prioritize(slots), key=lambda s: s.start), slots)


class AlternativeSelectorTest(SimpleTestCase):
    """Test cases for alternative ranking and selection"""

    def test_time_of_day_distance_ignores_date(self):
        self.assertEqual(time_of_day_distance(at(10, day=7), at(11, 30, day=9)), timedelta(minutes=90))

    def test_rank_by_distance_with_chronological_ties(self):
        selector = AlternativeSelector(at(12), 3)
        ranked = selector.rank([slot(14), slot(10), slot(12, 30), slot(11, 30)])
        self.assertEqual([s.start for s in ranked], [at(11, 30), at(12, 30), at(10), at(14)])

    def test_offer_skips_overlaps_and_caps_count(self):
        selector = AlternativeSelector(at(12), 2)
        selector.offer([slot(12), slot(12, 15), slot(11, 45), slot(13), slot(15)])

        result = selector.result()
        self.assertEqual(len(result), 2)
        self.assertEqual([s.start for s in result], [at(12), at(13)])
        self.assertTrue(selector.is_complete)

    def test_selections_never_overlap(self):
        selector = AlternativeSelector(at(10), 10)
        day_one = [slot(9, m) for m in range(0, 60, 15)] + [slot(10, m) for m in range(0, 60, 15)]
        day_two = [slot(10, m, day=8) for m in range(0, 60, 15)]
        selector.offer(day_one)
        selector.offer(day_two)

        result = selector.result()
        for i, first in enumerate(result):
            for second in result[i + 1:]:
                self.assertFalse(first.overlaps(second))

    def test_zero_count_selects_nothing(self):
        selector = AlternativeSelector(at(10), 0)
        self.assertEqual(selector.offer([slot(10)]), 0)
        self.assertEqual(selector.result(), [])

    def test_rank_uses_local_time_of_day(self):
        riyadh = pytz.timezone("Asia/Riyadh")
        reference = at(10).astimezone(riyadh)  # 13:00 local
        selector = AlternativeSelector(reference, 1)
        selector.offer([slot(7), slot(10, day=8)], tz=riyadh)
        self.assertEqual(selector.result()[0].start, at(10, day=8))

    def test_nearest_slots(self):
        slots = [slot(8), slot(9, 45), slot(10, 30), slot(12, 30)]
        nearby = nearest_slots(slots, at(10), timedelta(minutes=120), limit=2)
        self.assertEqual([s.start for s in nearby], [at(9, 45), at(10, 30)])


class WorkloadBalancerTest(SimpleTestCase):
    def setUp(self):
        self.balancer = WorkloadBalancer()

    def test_scores_are_booked_over_workday(self):
        appointments = [
            BookedInterval(at(9), at(11), "a"),
            BookedInterval(at(12), at(13), "a"),
        ]
        scores = self.balancer.load_scores(["a", "b"], appointments)
        self.assertAlmostEqual(scores["a"], 180 / 480)
        self.assertEqual(scores["b"], 0.0)

    def test_scores_are_capped(self):
        scores = self.balancer.load_scores(["a"], [BookedInterval(at(8), at(20), "a")])
        self.assertEqual(scores["a"], 1.0)

    def test_unknown_staff_appointments_are_ignored(self):
        scores = self.balancer.load_scores(["a"], [BookedInterval(at(8), at(10), "z")])
        self.assertEqual(dict(scores), {"a": 0.0})

    def test_least_loaded_breaks_ties_by_name(self):
        order = WorkloadBalancer.least_loaded({"1": 0.5, "2": 0.25, "3": 0.25}, {"1": "Ann", "2": "Zed", "3": "Bob"})
        self.assertEqual(order, ["3", "2", "1"])

    def test_invalid_workday(self):
        with self.assertRaises(ValueError):
            WorkloadBalancer(workday_minutes=0)
