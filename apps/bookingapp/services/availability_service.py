# apps/bookingapp/services/availability_service.py
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, List, Optional

from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from algorithms.availability.conflict_detector import ConflictDetector
from algorithms.availability.rule_evaluator import RuleEvaluator
from algorithms.availability.slot_generator import SlotGenerator
from algorithms.availability.time_range import TimeSlot
from algorithms.availability.vip_prioritizer import VipPrioritizer
from apps.bookingapp.conf import engine_config
from apps.bookingapp.services.booking_store import BookingStore
from apps.bookingapp.utils.timezone_utils import local_day_bounds
from apps.serviceapp.services.catalog_service import CatalogService
from core.exceptions.custom_exceptions import InactiveResourceException

logger = logging.getLogger(__name__)

PRICE_QUANTUM = Decimal("0.01")


def price_slot(staff_id, window, base_price: Decimal, rules) -> TimeSlot:
    """
    Attach a price to a window: the base price, multiplied by the first
    peak-pricing rule whose range contains the window start
    """
    peak_rule = RuleEvaluator.peak_rule_for(window, rules)
    price = Decimal(base_price)
    if peak_rule is not None:
        price = price * peak_rule.multiplier

    return TimeSlot(
        staff_id=staff_id,
        start=window.start,
        end=window.end,
        is_available=True,
        price=price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP),
        is_peak=peak_rule is not None,
    )


class AvailabilityService:
    """
    Computes bookable slots for one or more services at a location.

    Read-only: nothing here writes to the store, so any number of callers can
    run it concurrently. Collaborators are passed in explicitly; a fresh
    instance per request or one per process both work.
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
        self.catalog = catalog or CatalogService()
        self.clock = clock or timezone.now
        self.slot_generator = SlotGenerator(step_minutes=self.config["SLOT_STEP_MINUTES"])

    def get_available_slots(
        self,
        location_id,
        service_ids: Iterable,
        target_date: date,
        staff_id=None,
        customer_id=None,
        timezone_name: Optional[str] = None,
    ) -> List[TimeSlot]:
        """
        Calculate available slots for the requested services on a date.

        Args:
            location_id: Location to book at
            service_ids: Services to book back to back; durations and buffers
                are summed
            target_date: Local calendar date
            staff_id: Optional staff restriction
            customer_id: Optional customer; VIP customers get prime-time slots first
            timezone_name: Optional IANA timezone overriding the location's

        Returns:
            Ordered list of TimeSlot; empty when nothing is bookable

        Raises:
            ResourceNotFoundException: Location or a service does not exist
            InactiveResourceException: Location is inactive
            InvalidDataException: No services requested or unknown timezone
        """
        location = self.store.get_location(location_id)
        if not location.is_active:
            logger.warning(f"Availability requested for inactive location {location.id}")
            raise InactiveResourceException(_("Location is not accepting bookings."))

        services = self.catalog.get_services(service_ids)
        total_duration = self.catalog.total_duration(services)
        base_price = self.catalog.base_price(services)
        tz = self.store.resolve_timezone(location, timezone_name)

        eligible_staff = self.store.get_eligible_staff(
            location, [service.id for service in services], target_date, staff_id
        )
        if not eligible_staff:
            logger.info(f"No eligible staff at location {location.id} on {target_date}")
            return []

        staff_ids = [str(staff.id) for staff in eligible_staff]
        day_start, day_end = local_day_bounds(target_date, tz)

        appointments = self.store.get_appointments(staff_ids, day_start, day_end)
        overrides = self.store.get_overrides(location, staff_ids, day_start, day_end)
        schedules = self.store.get_schedules(staff_ids, target_date, tz)
        rules = self.store.get_rules(location, staff_ids, target_date, tz)

        detector = ConflictDetector(RuleEvaluator(self.clock()))
        slots = []

        for sid in staff_ids:
            schedule = schedules.get(sid)
            if schedule is None:
                continue

            staff_appointments = [appointment for appointment in appointments if appointment.staff_id == sid]
            staff_overrides = [override for override in overrides if override.applies_to_staff(sid)]
            staff_rules = [rule for rule in rules if rule.applies_to_staff(sid)]

            candidates = self.slot_generator.generate(schedule, total_duration)
            windows = [
                window
                for window in candidates
                if detector.is_slot_available(
                    window, staff_appointments, staff_overrides, schedule, staff_rules
                )
            ]
            windows = self.slot_generator.remove_break(windows, schedule.break_period)

            for window in windows:
                slots.append(price_slot(sid, window, base_price, staff_rules))

            logger.debug(f"Staff {sid}: {len(windows)} of {len(candidates)} candidate windows available")

        if customer_id and self.store.is_vip_customer(customer_id):
            band = self.store.prime_band(
                target_date,
                tz,
                self.config["VIP_PRIME_START_HOUR"],
                self.config["VIP_PRIME_END_HOUR"],
            )
            return VipPrioritizer(band).prioritize(slots)

        # Stable, so equal starts keep the staff order from the store
        slots.sort(key=lambda slot: slot.start)
        return slots
