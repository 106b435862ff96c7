# apps/bookingapp/services/load_balance_service.py
import logging
from datetime import date
from typing import Dict, Optional

from algorithms.optimization.workload_balancer import WorkloadBalancer
from apps.bookingapp.conf import engine_config
from apps.bookingapp.services.booking_store import BookingStore
from apps.bookingapp.utils.timezone_utils import local_day_bounds

logger = logging.getLogger(__name__)


class LoadBalanceService:
    """
    Per-staff utilization for a location and date, as a routing signal for
    picking a staff member when the customer has no preference.
    """

    def __init__(self, store: Optional[BookingStore] = None, config: Optional[dict] = None):
        self.config = engine_config(config)
        self.store = store or BookingStore(default_timezone=self.config["DEFAULT_TIMEZONE"])
        self.balancer = WorkloadBalancer(workday_minutes=self.config["WORKDAY_MINUTES"])

    def calculate_staff_load_balance(self, location_id, target_date: date) -> Dict[str, float]:
        """
        Calculate load scores for every staff member of a location.

        Args:
            location_id: Location whose staff to score
            target_date: Local calendar date

        Returns:
            Mapping of staff id to booked minutes / workday minutes, capped at 1.0
        """
        location = self.store.get_location(location_id)
        tz = self.store.resolve_timezone(location)
        day_start, day_end = local_day_bounds(target_date, tz)

        staff_ids = [str(staff.id) for staff in self.store.get_location_staff(location)]
        appointments = self.store.get_appointments(staff_ids, day_start, day_end)
        return self.balancer.load_scores(staff_ids, appointments)
