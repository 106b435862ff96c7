import logging
from collections import OrderedDict
from typing import Dict, Iterable, List

from algorithms.availability.conflict_detector import BookedInterval

logger = logging.getLogger(__name__)

DEFAULT_WORKDAY_MINUTES = 480


class WorkloadBalancer:
    """
    Staff utilization scoring.

    Converts a day's booked minutes per staff member into a normalized load
    score in [0, 1], used by routing logic to pick the least busy staff member
    when a customer has no preference. The score is a signal only and never
    gates availability.
    """

    def __init__(self, workday_minutes: int = DEFAULT_WORKDAY_MINUTES):
        """
        Initialize the workload balancer.

        Args:
            workday_minutes: Length of the assumed working day
        """
        if workday_minutes <= 0:
            raise ValueError("workday_minutes must be positive")
        self.workday_minutes = workday_minutes

    def booked_minutes(self, staff_ids: Iterable[str], appointments: Iterable[BookedInterval]) -> Dict[str, float]:
        """Sum appointment minutes per staff member; staff without bookings get 0."""
        totals: Dict[str, float] = OrderedDict((str(staff_id), 0.0) for staff_id in staff_ids)

        for appointment in appointments:
            if appointment.staff_id not in totals:
                continue
            totals[appointment.staff_id] += appointment.duration.total_seconds() / 60

        return totals

    def load_scores(self, staff_ids: Iterable[str], appointments: Iterable[BookedInterval]) -> Dict[str, float]:
        """
        Calculate load balance scores.

        Args:
            staff_ids: Staff members to score
            appointments: Non-cancelled appointments for the day

        Returns:
            Mapping of staff id to min(booked_minutes / workday_minutes, 1.0)
        """
        totals = self.booked_minutes(staff_ids, appointments)
        scores = OrderedDict(
            (staff_id, min(minutes / self.workday_minutes, 1.0)) for staff_id, minutes in totals.items()
        )
        logger.debug(f"Calculated load scores for {len(scores)} staff members")
        return scores

    @staticmethod
    def least_loaded(scores: Dict[str, float], names: Dict[str, str]) -> List[str]:
        """Order staff ids by ascending score, ties broken by name."""
        return sorted(scores, key=lambda staff_id: (scores[staff_id], names.get(staff_id, ""), staff_id))
