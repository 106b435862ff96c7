"""
Conflict detection algorithm.

Two entry points share the same interval semantics:

- ``is_slot_available`` filters candidate windows during availability
  computation (all checks ANDed, a single failure disqualifies the window);
- ``detect_conflicts`` classifies one concrete proposal at commit time and
  returns every conflict kind found, as data.

Both operate on pre-loaded snapshots and never touch storage.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional, Set

from .booking_rules import BookingRuleSpec
from .rule_evaluator import RuleEvaluator
from .slot_generator import ScheduleWindow
from .time_range import TimeRange

logger = logging.getLogger(__name__)


class ConflictKind(str, Enum):
    """Categorical reasons a proposed booking cannot be committed"""

    DOUBLE_BOOKING = "DOUBLE_BOOKING"
    STAFF_UNAVAILABLE = "STAFF_UNAVAILABLE"
    BRANCH_CLOSED = "BRANCH_CLOSED"


class OverrideWindow(TimeRange):
    """An allow/deny exception scoped to one staff member or a whole location."""

    def __init__(self, start, end, is_available: bool, staff_id: Optional[str] = None):
        super().__init__(start, end)
        self.is_available = is_available
        self.staff_id = str(staff_id) if staff_id is not None else None

    def blocks(self, window: TimeRange) -> bool:
        return not self.is_available and self.overlaps(window)

    def applies_to_staff(self, staff_id: str) -> bool:
        return self.staff_id is None or self.staff_id == str(staff_id)


class BookedInterval(TimeRange):
    """An existing non-cancelled appointment as seen by the detector."""

    def __init__(self, start, end, staff_id: str, appointment_id: Optional[str] = None):
        super().__init__(start, end)
        self.staff_id = str(staff_id)
        self.appointment_id = str(appointment_id) if appointment_id is not None else None


class StaffState:
    """Bookability flags of one staff member."""

    def __init__(self, staff_id: str, is_active: bool, booking_enabled: bool):
        self.staff_id = str(staff_id)
        self.is_active = is_active
        self.booking_enabled = booking_enabled

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.booking_enabled


def is_double_booking(proposal: TimeRange, existing: TimeRange) -> bool:
    """
    Three-way overlap test between a proposal and an existing booking.

    The existing booking conflicts if it starts inside the proposal, ends
    inside the proposal, or fully contains the proposal. For non-empty
    intervals this is equivalent to the half-open overlap test.
    """
    starts_inside = proposal.start <= existing.start < proposal.end
    ends_inside = proposal.start < existing.end <= proposal.end
    contains_proposal = existing.start <= proposal.start and existing.end >= proposal.end
    return starts_inside or ends_inside or contains_proposal


class ConflictDetector:
    """
    Scheduling conflict checks over in-memory snapshots of appointments,
    overrides, schedules and rules.
    """

    def __init__(self, rule_evaluator: RuleEvaluator):
        self.rule_evaluator = rule_evaluator

    def is_slot_available(
        self,
        window: TimeRange,
        existing_appointments: Iterable[TimeRange],
        overrides: Iterable[OverrideWindow],
        schedule: Optional[ScheduleWindow],
        rules: Iterable[BookingRuleSpec],
    ) -> bool:
        """
        Check whether one candidate window is bookable.

        Args:
            window: Candidate window
            existing_appointments: Non-cancelled appointments of the window's staff
            overrides: Overrides scoped to that staff member or to the location
            schedule: The staff member's schedule for the date
            rules: Rules applicable to that staff member

        Returns:
            False on the first failing check, True otherwise
        """
        for appointment in existing_appointments:
            if window.overlaps(appointment):
                return False

        for override in overrides:
            if override.blocks(window):
                return False

        if not self.rule_evaluator.passes_all(window, rules):
            return False

        if schedule is not None and schedule.has_discrete_slots:
            if not any(slot.contains_range(window) for slot in schedule.discrete_slots):
                return False

        return True

    def detect_conflicts(
        self,
        proposal: TimeRange,
        staff_state: Optional[StaffState],
        existing_appointments: Iterable[BookedInterval],
        overrides: Iterable[OverrideWindow],
        location_open: bool,
        exclude_appointment_id: Optional[str] = None,
    ) -> Set[ConflictKind]:
        """
        Classify every conflict for a concrete proposal.

        Args:
            proposal: Proposed interval
            staff_state: Flags of the proposed staff member (None if unknown)
            existing_appointments: Non-cancelled appointments of that staff member
            overrides: Overrides scoped to that staff member or to the location
            location_open: Whether the location has an open working-hours
                record on the proposal's weekday
            exclude_appointment_id: Appointment being modified, if any

        Returns:
            Set of conflict kinds, empty when the proposal is bookable
        """
        conflicts: Set[ConflictKind] = set()
        excluded = str(exclude_appointment_id) if exclude_appointment_id else None

        for appointment in existing_appointments:
            if excluded and appointment.appointment_id == excluded:
                continue
            if is_double_booking(proposal, appointment):
                conflicts.add(ConflictKind.DOUBLE_BOOKING)
                break

        if staff_state is None or not staff_state.is_bookable:
            conflicts.add(ConflictKind.STAFF_UNAVAILABLE)

        if any(override.blocks(proposal) for override in overrides):
            conflicts.add(ConflictKind.STAFF_UNAVAILABLE)

        if not location_open:
            conflicts.add(ConflictKind.BRANCH_CLOSED)

        if conflicts:
            logger.debug(
                f"Conflicts for {proposal}: {sorted(kind.value for kind in conflicts)}"
            )
        return conflicts

    @staticmethod
    def overlapping_appointments(
        proposal: TimeRange,
        existing_appointments: Iterable[BookedInterval],
        exclude_appointment_id: Optional[str] = None,
    ) -> List[BookedInterval]:
        """Return the existing appointments that double-book the proposal."""
        excluded = str(exclude_appointment_id) if exclude_appointment_id else None
        return [
            appointment
            for appointment in existing_appointments
            if appointment.appointment_id != excluded and is_double_booking(proposal, appointment)
        ]


class BookingProposal(TimeRange):
    """A specific staff/time/location combination a caller wants to book."""

    def __init__(
        self,
        staff_id: str,
        start,
        end,
        location_id: str,
        exclude_appointment_id: Optional[str] = None,
    ):
        super().__init__(start, end)
        self.staff_id = str(staff_id)
        self.location_id = str(location_id)
        self.exclude_appointment_id = (
            str(exclude_appointment_id) if exclude_appointment_id is not None else None
        )

    def __repr__(self) -> str:
        return (
            f"<BookingProposal staff={self.staff_id} location={self.location_id} "
            f"{self.start.isoformat()} -> {self.end.isoformat()}>"
        )
