"""
Candidate slot generation.

Produces fixed-length windows stepped across a staff member's working day.
No conflict filtering happens here; break removal is a separate pass applied
after generation.
"""

import logging
from datetime import timedelta
from typing import Iterator, List, Optional

from .time_range import TimeRange

logger = logging.getLogger(__name__)

DEFAULT_STEP_MINUTES = 15


class ScheduleWindow:
    """
    One staff member's schedule for one date, resolved to absolute instants.

    Args:
        staff_id: Staff the schedule belongs to
        working: Working period
        break_period: Optional break inside the working period
        discrete_slots: Unbooked pre-carved slots; when the schedule defines
            any discrete slots at all, ``has_discrete_slots`` is True even if
            every one of them is already taken
    """

    def __init__(
        self,
        staff_id: str,
        working: TimeRange,
        break_period: Optional[TimeRange] = None,
        discrete_slots: Optional[List[TimeRange]] = None,
        has_discrete_slots: Optional[bool] = None,
    ):
        self.staff_id = str(staff_id)
        self.working = working
        self.break_period = break_period
        self.discrete_slots = list(discrete_slots or [])
        if has_discrete_slots is None:
            has_discrete_slots = bool(self.discrete_slots)
        self.has_discrete_slots = has_discrete_slots

    def __repr__(self) -> str:
        return f"<ScheduleWindow staff={self.staff_id} working={self.working!r}>"


class SlotGenerator:
    """Generates candidate windows from a schedule."""

    def __init__(self, step_minutes: int = DEFAULT_STEP_MINUTES):
        if step_minutes <= 0:
            raise ValueError("step_minutes must be positive")
        self.step = timedelta(minutes=step_minutes)

    def iter_candidates(self, schedule: ScheduleWindow, duration_minutes: int) -> Iterator[TimeRange]:
        """
        Yield [start, start + duration) windows in chronological order,
        starting at the working start and stopping once a window would end
        past the working end.
        """
        if duration_minutes <= 0:
            return

        duration = timedelta(minutes=duration_minutes)
        current = schedule.working.start

        while current + duration <= schedule.working.end:
            yield TimeRange(current, current + duration)
            current += self.step

    def generate(self, schedule: ScheduleWindow, duration_minutes: int) -> List[TimeRange]:
        """Generate all candidate windows for a schedule."""
        candidates = list(self.iter_candidates(schedule, duration_minutes))
        logger.debug(
            f"Generated {len(candidates)} candidate windows for staff {schedule.staff_id}"
        )
        return candidates

    @staticmethod
    def remove_break(windows: List[TimeRange], break_period: Optional[TimeRange]) -> List[TimeRange]:
        """Drop every window overlapping the break (half-open test)."""
        if break_period is None:
            return list(windows)
        return [window for window in windows if not window.overlaps(break_period)]
