# apps/bookingapp/services/alternative_service.py
import logging
from datetime import timedelta
from typing import Callable, Dict, Iterable, List, Optional

from algorithms.availability.alternative_selector import AlternativeSelector, nearest_slots
from algorithms.availability.conflict_detector import BookingProposal
from algorithms.availability.time_range import TimeSlot
from algorithms.optimization.workload_balancer import WorkloadBalancer
from apps.bookingapp.conf import engine_config
from apps.bookingapp.services.availability_service import AvailabilityService
from apps.bookingapp.services.booking_store import BookingStore
from apps.bookingapp.services.load_balance_service import LoadBalanceService
from apps.bookingapp.utils.timezone_utils import local_date
from apps.serviceapp.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


class AlternativeService:
    """
    Finds replacement slots and staff for a proposal that cannot be booked
    as requested.
    """

    def __init__(
        self,
        store: Optional[BookingStore] = None,
        catalog: Optional[CatalogService] = None,
        clock: Optional[Callable] = None,
        config: Optional[dict] = None,
    ):
        self.config = engine_config(config)
        self.store = store or BookingStore(default_timezone=self.config["DEFAULT_TIMEZONE"])
        self.availability = AvailabilityService(
            store=self.store, catalog=catalog, clock=clock, config=self.config
        )
        self.load_balance = LoadBalanceService(store=self.store, config=self.config)

    def suggest_alternatives(
        self,
        proposal: BookingProposal,
        service_ids: Iterable,
        desired_count: Optional[int] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[TimeSlot]:
        """
        Search forward from the proposal's date for nearby replacement slots.

        Each day (starting with the proposal's own) is searched for the same
        staff member, slots ranked by time-of-day distance to the proposal,
        and non-overlapping picks are kept until ``desired_count`` is reached
        or the search window ends.

        Args:
            proposal: Original proposal
            service_ids: Services to book
            desired_count: Maximum number of alternatives
            should_cancel: Checked before each day; when it returns True the
                alternatives found so far are returned

        Returns:
            Up to ``desired_count`` non-overlapping slots
        """
        if desired_count is None:
            desired_count = self.config["DEFAULT_ALTERNATIVE_COUNT"]
        service_ids = list(service_ids)

        location = self.store.get_location(proposal.location_id)
        tz = self.store.resolve_timezone(location)
        start_date = local_date(proposal.start, tz)

        selector = AlternativeSelector(proposal.start.astimezone(tz), desired_count)

        for offset in range(self.config["ALTERNATIVE_SEARCH_DAYS"]):
            if selector.is_complete:
                break
            if should_cancel is not None and should_cancel():
                logger.info(f"Alternative search for {proposal!r} cancelled after {offset} days")
                break

            day = start_date + timedelta(days=offset)
            slots = self.availability.get_available_slots(
                location.id, service_ids, day, staff_id=proposal.staff_id
            )
            selector.offer(slots, tz)

        return selector.result()

    def find_nearby_slots(
        self,
        proposal: BookingProposal,
        service_ids: Iterable,
        window_minutes: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[TimeSlot]:
        """
        Same-day slots for the same staff starting within +/- window of the
        proposed start, closest first.
        """
        if window_minutes is None:
            window_minutes = self.config["NEARBY_SLOT_WINDOW_MINUTES"]
        if limit is None:
            limit = self.config["NEARBY_SLOT_LIMIT"]

        location = self.store.get_location(proposal.location_id)
        tz = self.store.resolve_timezone(location)
        slots = self.availability.get_available_slots(
            location.id, service_ids, local_date(proposal.start, tz), staff_id=proposal.staff_id
        )
        return nearest_slots(slots, proposal.start, timedelta(minutes=window_minutes), limit)

    def find_alternative_staff(self, proposal: BookingProposal, service_ids: Iterable) -> List[Dict]:
        """
        Other eligible staff free for exactly the proposed interval.

        Returns:
            List of {"staff_id", "name", "load_score"} ordered by ascending
            load score, ties broken by name
        """
        location = self.store.get_location(proposal.location_id)
        tz = self.store.resolve_timezone(location)
        day = local_date(proposal.start, tz)

        slots = self.availability.get_available_slots(location.id, list(service_ids), day)
        free_staff = {
            slot.staff_id
            for slot in slots
            if slot.start == proposal.start and slot.staff_id != proposal.staff_id
        }
        if not free_staff:
            return []

        all_scores = self.load_balance.calculate_staff_load_balance(location.id, day)
        scores = {staff_id: all_scores.get(staff_id, 0.0) for staff_id in free_staff}
        names = self.store.get_staff_names(free_staff)

        return [
            {"staff_id": staff_id, "name": names.get(staff_id, ""), "load_score": scores[staff_id]}
            for staff_id in WorkloadBalancer.least_loaded(scores, names)
        ]
