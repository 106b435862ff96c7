"""
Alternative slot selection.

Ranks one day's candidate slots by how close their time of day is to the
originally requested time and accumulates non-overlapping picks across days.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from .time_range import TimeRange, TimeSlot

logger = logging.getLogger(__name__)


def time_of_day_distance(first: datetime, second: datetime) -> timedelta:
    """Absolute difference between two instants' times of day, dates ignored."""
    first_offset = timedelta(
        hours=first.hour, minutes=first.minute, seconds=first.second, microseconds=first.microsecond
    )
    second_offset = timedelta(
        hours=second.hour, minutes=second.minute, seconds=second.second, microseconds=second.microsecond
    )
    return abs(first_offset - second_offset)


class AlternativeSelector:
    """
    Accumulates alternatives for one proposal.

    Args:
        reference: Originally requested start, as a local wall-clock instant
            (only its time of day is used)
        desired_count: Maximum number of alternatives to keep
    """

    def __init__(self, reference: datetime, desired_count: int):
        self.reference = reference
        self.desired_count = max(desired_count, 0)
        self.selected: List[TimeSlot] = []

    @property
    def is_complete(self) -> bool:
        return len(self.selected) >= self.desired_count

    def rank(self, slots: List[TimeSlot], tz=None) -> List[TimeSlot]:
        """
        Order a day's slots by time-of-day distance to the reference.

        Ties keep chronological order. When ``tz`` is given, slot starts are
        compared in that timezone so the reference's local time of day is
        matched against local slot times.
        """

        def local(instant: datetime) -> datetime:
            return instant.astimezone(tz) if tz is not None else instant

        chronological = sorted(slots, key=lambda slot: slot.start)
        return sorted(
            chronological,
            key=lambda slot: time_of_day_distance(local(slot.start), self.reference),
        )

    def overlaps_selected(self, slot: TimeRange) -> bool:
        return any(slot.overlaps(chosen) for chosen in self.selected)

    def offer(self, slots: List[TimeSlot], tz=None) -> int:
        """
        Consider one day's slots, keeping the closest non-overlapping ones.

        Returns:
            Number of slots added from this batch
        """
        added = 0
        for slot in self.rank(slots, tz):
            if self.is_complete:
                break
            if self.overlaps_selected(slot):
                continue
            self.selected.append(slot)
            added += 1
        return added

    def result(self) -> List[TimeSlot]:
        return list(self.selected)


def nearest_slots(
    slots: List[TimeSlot], target: datetime, window: timedelta, limit: Optional[int] = None
) -> List[TimeSlot]:
    """
    Slots whose start lies within +/- window of target, closest first.
    """
    nearby = [slot for slot in slots if abs(slot.start - target) <= window]
    nearby.sort(key=lambda slot: (abs(slot.start - target), slot.start))
    if limit is not None:
        nearby = nearby[:limit]
    return nearby
