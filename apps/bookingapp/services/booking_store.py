# apps/bookingapp/services/booking_store.py
import logging
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from algorithms.availability.booking_rules import (
    BlackoutRule,
    BookingRuleSpec,
    MaxAdvanceRule,
    MinAdvanceRule,
    PeakPricingRule,
)
from algorithms.availability.conflict_detector import BookedInterval, OverrideWindow, StaffState
from algorithms.availability.slot_generator import ScheduleWindow
from algorithms.availability.time_range import TimeRange
from apps.bookingapp.models import (
    INACTIVE_APPOINTMENT_STATUSES,
    Appointment,
    AvailabilityOverride,
    BookingConflict,
    BookingRule,
    BookingRuleType,
)
from apps.bookingapp.utils.timezone_utils import get_timezone, local_date_span, to_utc
from apps.customersapp.models import Customer
from apps.locationapp.models import Location
from apps.staffapp.enums import AbsenceStatus, StaffStatus
from apps.staffapp.models import Schedule, Staff, StaffAbsence, StaffService
from core.exceptions.custom_exceptions import ResourceNotFoundException

logger = logging.getLogger(__name__)


class BookingStore:
    """
    Read side of the persistent store for the booking engine.

    Every query the engine needs goes through this class. Wall-clock values
    (schedule times, breaks, discrete slots, blackout dates, peak windows) are
    converted to absolute UTC instants here, using the location's timezone,
    so the algorithms only ever compare absolute instants.
    """

    def __init__(self, default_timezone: str = "UTC"):
        self.default_timezone = default_timezone

    # Locations

    def get_location(self, location_id) -> Location:
        try:
            return Location.objects.get(id=location_id)
        except (Location.DoesNotExist, ValidationError, ValueError):
            raise ResourceNotFoundException(_("Location not found."))

    def resolve_timezone(self, location: Location, timezone_name: Optional[str] = None):
        """Explicit timezone wins over the location's, which wins over the default"""
        return get_timezone(timezone_name or location.timezone or self.default_timezone)

    def is_location_open(self, location: Location, day: date) -> bool:
        return location.is_open_on(day)

    # Staff

    def get_staff(self, staff_id) -> Staff:
        try:
            return Staff.objects.select_related("location").get(id=staff_id)
        except (Staff.DoesNotExist, ValidationError, ValueError):
            raise ResourceNotFoundException(_("Staff member not found."))

    def get_staff_state(self, staff_id, location: Optional[Location] = None) -> Optional[StaffState]:
        """Bookability flags, or None when the staff member is unknown or works elsewhere"""
        try:
            staff = Staff.objects.filter(id=staff_id).only("id", "location_id", "status", "booking_enabled").first()
        except (ValidationError, ValueError):
            return None
        if staff is None or (location is not None and staff.location_id != location.id):
            return None
        return StaffState(staff.id, staff.status == StaffStatus.ACTIVE, staff.booking_enabled)

    def get_eligible_staff(
        self,
        location: Location,
        service_ids: Iterable,
        day: date,
        staff_id=None,
    ) -> List[Staff]:
        """
        Staff who can take a booking at the location on the given day.

        Eligible staff are active, booking-enabled, able to perform every
        requested service, and not on an approved absence covering the day.
        """
        queryset = Staff.objects.filter(
            location=location,
            status=StaffStatus.ACTIVE,
            booking_enabled=True,
        )

        if staff_id is not None:
            try:
                queryset = queryset.filter(id=staff_id)
            except (ValidationError, ValueError):
                return []

        # Chained filters on the relation require a capability row per service
        for service_id in set(str(service_id) for service_id in service_ids):
            queryset = queryset.filter(
                staff_services__service_id=service_id,
                staff_services__is_available=True,
            )

        absent_staff = StaffAbsence.objects.filter(
            status=AbsenceStatus.APPROVED,
            start_date__lte=day,
            end_date__gte=day,
        ).values("staff_id")

        return list(queryset.exclude(id__in=absent_staff).distinct().order_by("name", "id"))

    def staff_performs_services(self, staff_id, service_ids: Iterable) -> bool:
        required = set(str(service_id) for service_id in service_ids)
        offered = set(
            str(service_id)
            for service_id in StaffService.objects.filter(staff_id=staff_id, is_available=True).values_list(
                "service_id", flat=True
            )
        )
        return required <= offered

    def get_location_staff(self, location: Location) -> List[Staff]:
        return list(
            Staff.objects.filter(location=location, status=StaffStatus.ACTIVE, booking_enabled=True).order_by(
                "name", "id"
            )
        )

    def get_staff_names(self, staff_ids: Iterable) -> Dict[str, str]:
        return {
            str(staff_id): name
            for staff_id, name in Staff.objects.filter(id__in=list(staff_ids)).values_list("id", "name")
        }

    # Appointments

    def get_appointment(self, appointment_id) -> Appointment:
        try:
            return Appointment.objects.select_related("staff", "location").get(id=appointment_id)
        except (Appointment.DoesNotExist, ValidationError, ValueError):
            raise ResourceNotFoundException(_("Appointment not found."))

    def get_conflict(self, conflict_id) -> BookingConflict:
        try:
            return BookingConflict.objects.select_related("appointment").get(id=conflict_id)
        except (BookingConflict.DoesNotExist, ValidationError, ValueError):
            raise ResourceNotFoundException(_("Booking conflict not found."))

    def active_appointments(self, staff_ids: Iterable, start: datetime, end: datetime):
        """Queryset of non-cancelled appointments overlapping [start, end)"""
        return (
            Appointment.objects.filter(
                staff_id__in=list(staff_ids),
                start_time__lt=end,
                end_time__gt=start,
            )
            .exclude(status__in=INACTIVE_APPOINTMENT_STATUSES)
            .order_by("start_time", "id")
        )

    def get_appointments(self, staff_ids: Iterable, start: datetime, end: datetime) -> List[BookedInterval]:
        return [
            BookedInterval(appointment.start_time, appointment.end_time, appointment.staff_id, appointment.id)
            for appointment in self.active_appointments(staff_ids, start, end)
        ]

    # Overrides

    def get_overrides(
        self, location: Location, staff_ids: Iterable, start: datetime, end: datetime
    ) -> List[OverrideWindow]:
        """Overrides overlapping [start, end), scoped to the location or one of the staff"""
        overrides = AvailabilityOverride.objects.filter(
            Q(staff__isnull=True) | Q(staff_id__in=list(staff_ids)),
            location=location,
            start_datetime__lt=end,
            end_datetime__gt=start,
        ).order_by("start_datetime")

        return [
            OverrideWindow(override.start_datetime, override.end_datetime, override.is_available, override.staff_id)
            for override in overrides
        ]

    # Schedules

    def get_schedules(self, staff_ids: Iterable, day: date, tz) -> Dict[str, ScheduleWindow]:
        """
        Schedules for the day keyed by staff id, resolved to absolute instants.

        Discrete slots are only carried over while unbooked, but
        ``has_discrete_slots`` reflects whether the schedule defines any.
        """
        schedules = Schedule.objects.filter(
            staff_id__in=list(staff_ids), date=day, is_available=True
        ).prefetch_related("time_slots")

        windows = {}
        for schedule in schedules:
            if schedule.end_time <= schedule.start_time:
                logger.warning(f"Ignoring schedule {schedule.id} with non-positive working period")
                continue

            break_period = None
            if schedule.has_break:
                break_period = TimeRange(
                    to_utc(day, schedule.break_start, tz), to_utc(day, schedule.break_end, tz)
                )

            time_slots = list(schedule.time_slots.all())
            open_slots = [
                TimeRange(to_utc(day, slot.start_time, tz), to_utc(day, slot.end_time, tz))
                for slot in time_slots
                if not slot.is_booked
            ]

            windows[str(schedule.staff_id)] = ScheduleWindow(
                staff_id=schedule.staff_id,
                working=TimeRange(to_utc(day, schedule.start_time, tz), to_utc(day, schedule.end_time, tz)),
                break_period=break_period,
                discrete_slots=open_slots,
                has_discrete_slots=bool(time_slots),
            )
        return windows

    def get_schedule_record(self, staff_id, day: date) -> Optional[Schedule]:
        return Schedule.objects.filter(staff_id=staff_id, date=day).first()

    # Rules

    def get_rules(self, location: Location, staff_ids: Iterable, day: date, tz) -> List[BookingRuleSpec]:
        """
        Applicable rules in evaluation order (highest priority first).

        A rule applies when it is active, its scope is global, this location,
        or one of the staff, and its date range (when set) brackets the day.
        """
        staff_ids = list(staff_ids)
        rules = (
            BookingRule.objects.filter(is_active=True)
            .filter(
                Q(location__isnull=True, staff__isnull=True)
                | Q(location=location, staff__isnull=True)
                | Q(staff_id__in=staff_ids)
            )
            .filter(Q(start_date__isnull=True) | Q(start_date__lte=day))
            .filter(Q(end_date__isnull=True) | Q(end_date__gte=day))
            .order_by("-priority", "created_at", "id")
        )

        specs = []
        for rule in rules:
            spec = self.to_rule_spec(rule, day, tz)
            if spec is not None:
                specs.append(spec)
        return specs

    @staticmethod
    def to_rule_spec(rule: BookingRule, day: date, tz) -> Optional[BookingRuleSpec]:
        """Build the rule variant for one row, or None if the row is incomplete"""
        common = {"rule_id": rule.id, "staff_id": rule.staff_id, "priority": rule.priority}

        if rule.rule_type == BookingRuleType.MIN_ADVANCE_TIME and rule.min_advance_hours is not None:
            return MinAdvanceRule(rule.min_advance_hours, **common)

        if rule.rule_type == BookingRuleType.MAX_ADVANCE_TIME and rule.max_advance_days is not None:
            return MaxAdvanceRule(rule.max_advance_days, **common)

        if rule.rule_type == BookingRuleType.BLACKOUT_DATE and rule.start_date and rule.end_date:
            starts_at, ends_at = local_date_span(rule.start_date, rule.end_date, tz)
            return BlackoutRule(starts_at, ends_at, **common)

        if (
            rule.rule_type == BookingRuleType.PEAK_PRICING
            and rule.start_time is not None
            and rule.end_time is not None
            and rule.price_multiplier is not None
        ):
            return PeakPricingRule(
                to_utc(day, rule.start_time, tz),
                to_utc(day, rule.end_time, tz),
                rule.price_multiplier,
                **common,
            )

        logger.warning(f"Skipping incomplete booking rule {rule.id} ({rule.rule_type})")
        return None

    # Customers

    def get_customer(self, customer_id) -> Customer:
        try:
            return Customer.objects.get(id=customer_id)
        except (Customer.DoesNotExist, ValidationError, ValueError):
            raise ResourceNotFoundException(_("Customer not found."))

    def is_vip_customer(self, customer_id) -> bool:
        if not customer_id:
            return False
        try:
            return Customer.objects.filter(id=customer_id, is_vip=True).exists()
        except (ValidationError, ValueError):
            return False

    def prime_band(self, day: date, tz, start_hour: int, end_hour: int) -> TimeRange:
        return TimeRange(to_utc(day, time(start_hour), tz), to_utc(day, time(end_hour), tz))
