"""
Booking Service Module

This module owns the write side of the booking engine: committing,
rescheduling and cancelling appointments. Availability reads are optimistic,
so two callers can both see the same slot as free; every write therefore
re-validates under a per-staff lock inside a database transaction before it
touches the appointments table.
"""

import logging
import time
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from django.db import transaction
from django.db.utils import IntegrityError, OperationalError
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from algorithms.availability.conflict_detector import BookingProposal, ConflictKind
from algorithms.availability.time_range import TimeRange
from apps.bookingapp.conf import engine_config
from apps.bookingapp.models import Appointment, AppointmentStatus
from apps.bookingapp.services.availability_service import price_slot
from apps.bookingapp.services.booking_store import BookingStore
from apps.bookingapp.services.conflict_service import ConflictService
from apps.bookingapp.utils.timezone_utils import local_date, to_utc
from apps.serviceapp.services.catalog_service import CatalogService
from apps.staffapp.models import ScheduleTimeSlot, Staff
from core.exceptions.custom_exceptions import (
    CommitRaceException,
    InvalidDataException,
    InvalidOperationException,
)
from utils.distributed_locks import DistributedLock, LockTimeout, staff_bookings_lock_key

# Configure logging
logger = logging.getLogger(__name__)


class BookingCommitState(str, Enum):
    """States of one booking write"""

    PROPOSED = "PROPOSED"
    VALIDATED = "VALIDATED"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"


class CommitResult:
    """
    Outcome of a booking write.

    Args:
        state: Final state, COMMITTED or REJECTED
        appointment: The written appointment when committed
        conflicts: Conflict kinds found when rejected
        attempts: Number of attempts made
        transitions: Every state the write went through, in order
    """

    def __init__(
        self,
        state: BookingCommitState,
        appointment: Optional[Appointment] = None,
        conflicts: Optional[Set[ConflictKind]] = None,
        attempts: int = 0,
        transitions: Optional[List[BookingCommitState]] = None,
    ):
        self.state = state
        self.appointment = appointment
        self.conflicts = set(conflicts or [])
        self.attempts = attempts
        self.transitions = list(transitions or [state])

    @property
    def committed(self) -> bool:
        return self.state == BookingCommitState.COMMITTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "appointment_id": str(self.appointment.id) if self.appointment else None,
            "conflicts": sorted(kind.value for kind in self.conflicts),
            "attempts": self.attempts,
        }


class BookingService:
    """
    Service for writing bookings with concurrency control.

    Each write runs the same protocol: take the per-staff distributed lock,
    open a transaction, lock the staff row, re-run conflict detection, and
    only then write. Lock timeouts and database contention are retried with
    linear backoff; exhausting the attempts raises CommitRaceException.
    """

    def __init__(
        self,
        store: Optional[BookingStore] = None,
        catalog: Optional[CatalogService] = None,
        conflict_service: Optional[ConflictService] = None,
        clock: Optional[Callable] = None,
        config: Optional[dict] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = engine_config(config)
        self.store = store or BookingStore(default_timezone=self.config["DEFAULT_TIMEZONE"])
        self.catalog = catalog or CatalogService()
        self.clock = clock or timezone.now
        self.conflict_service = conflict_service or ConflictService(
            store=self.store, clock=self.clock, config=self.config
        )
        self.sleep = sleep

    def build_proposal(self, staff_id, location_id, start_time, service_ids: Iterable) -> BookingProposal:
        """Proposal whose length is the summed duration and buffer of the services"""
        services = self.catalog.get_services(service_ids)
        duration = timedelta(minutes=self.catalog.total_duration(services))
        return BookingProposal(staff_id, start_time, start_time + duration, location_id)

    def commit_booking(
        self,
        proposal: BookingProposal,
        service_ids: Iterable,
        customer_id=None,
        notes: str = "",
    ) -> CommitResult:
        """
        Commit a new appointment for a proposal.

        Args:
            proposal: Staff, interval and location to book
            service_ids: Services booked; the interval must match their
                summed duration and buffer
            customer_id: Optional customer
            notes: Optional notes

        Returns:
            CommitResult in state COMMITTED or REJECTED

        Raises:
            ResourceNotFoundException: Unknown location, service, staff or customer
            InvalidDataException: Interval does not match the services, or the
                staff member does not perform them
            CommitRaceException: The write kept losing to concurrent writers
        """
        service_ids = [str(service_id) for service_id in service_ids]
        services = self.catalog.get_services(service_ids)
        expected = timedelta(minutes=self.catalog.total_duration(services))
        if proposal.end - proposal.start != expected:
            raise InvalidDataException(
                _("Booking length does not match the requested services."),
                errors={"expected_minutes": int(expected.total_seconds() // 60)},
            )

        location = self.store.get_location(proposal.location_id)
        self.store.get_staff(proposal.staff_id)
        if not self.store.staff_performs_services(proposal.staff_id, service_ids):
            raise InvalidDataException(_("The selected staff member does not offer these services."))

        customer = self.store.get_customer(customer_id) if customer_id else None

        tz = self.store.resolve_timezone(location)
        day = local_date(proposal.start, tz)
        rules = [
            rule
            for rule in self.store.get_rules(location, [proposal.staff_id], day, tz)
            if rule.applies_to_staff(proposal.staff_id)
        ]
        priced = price_slot(proposal.staff_id, proposal, self.catalog.base_price(services), rules)

        def write():
            appointment = Appointment.objects.create(
                location=location,
                staff_id=proposal.staff_id,
                customer=customer,
                start_time=proposal.start,
                end_time=proposal.end,
                status=AppointmentStatus.PENDING.value,
                total_price=priced.price,
                is_peak=priced.is_peak,
                notes=notes or "",
            )
            appointment.services.set([service.id for service in services])
            self._claim_schedule_slots(appointment, tz)
            return appointment

        result = self._run_protocol(proposal, write)
        if result.committed:
            logger.info(
                f"Appointment committed: ID={result.appointment.id}, Staff={proposal.staff_id}, "
                f"Time={proposal.start.isoformat()}, Attempts={result.attempts}"
            )
        return result

    def reschedule_booking(self, appointment_id, new_start) -> CommitResult:
        """
        Move an appointment to a new start, keeping its length and staff.

        The appointment itself never counts as a double booking of its new
        interval.
        """
        appointment = self.store.get_appointment(appointment_id)
        if not appointment.is_active or appointment.status == AppointmentStatus.COMPLETED.value:
            raise InvalidOperationException(_("Only upcoming appointments can be rescheduled."))

        proposal = BookingProposal(
            staff_id=appointment.staff_id,
            start=new_start,
            end=new_start + (appointment.end_time - appointment.start_time),
            location_id=appointment.location_id,
            exclude_appointment_id=appointment.id,
        )
        tz = self.store.resolve_timezone(appointment.location)

        def write():
            locked = Appointment.objects.select_for_update().get(id=appointment.id)
            locked.start_time = proposal.start
            locked.end_time = proposal.end
            locked.save()
            self._release_schedule_slots(locked)
            self._claim_schedule_slots(locked, tz)
            return locked

        result = self._run_protocol(proposal, write)
        if result.committed:
            logger.info(f"Appointment rescheduled: ID={appointment.id}, Time={proposal.start.isoformat()}")
        return result

    def reassign_booking(self, appointment_id, staff_id) -> CommitResult:
        """
        Hand an appointment to another staff member at the same time.

        The write runs under the new staff member's lock; the appointment
        keeps its interval, services and price.

        Raises:
            ResourceNotFoundException: Unknown appointment or staff
            InvalidOperationException: Appointment is not upcoming
            InvalidDataException: The new staff member does not perform the
                appointment's services
        """
        appointment = self.store.get_appointment(appointment_id)
        if not appointment.is_active or appointment.status == AppointmentStatus.COMPLETED.value:
            raise InvalidOperationException(_("Only upcoming appointments can be reassigned."))

        self.store.get_staff(staff_id)
        service_ids = [str(service_id) for service_id in appointment.services.values_list("id", flat=True)]
        if not self.store.staff_performs_services(staff_id, service_ids):
            raise InvalidDataException(_("The selected staff member does not offer these services."))

        proposal = BookingProposal(
            staff_id=staff_id,
            start=appointment.start_time,
            end=appointment.end_time,
            location_id=appointment.location_id,
            exclude_appointment_id=appointment.id,
        )
        tz = self.store.resolve_timezone(appointment.location)

        def write():
            locked = Appointment.objects.select_for_update().get(id=appointment.id)
            locked.staff_id = staff_id
            locked.save()
            self._release_schedule_slots(locked)
            self._claim_schedule_slots(locked, tz)
            return locked

        result = self._run_protocol(proposal, write)
        if result.committed:
            logger.info(f"Appointment reassigned: ID={appointment.id}, Staff={staff_id}")
        return result

    def cancel_booking(self, appointment_id, reason: str = "") -> Appointment:
        """
        Cancel an appointment and free its schedule slots.

        Raises:
            ResourceNotFoundException: Unknown appointment
            InvalidOperationException: Appointment is already cancelled,
                no-show or completed
        """
        appointment = self.store.get_appointment(appointment_id)
        if not appointment.is_active or appointment.status == AppointmentStatus.COMPLETED.value:
            raise InvalidOperationException(
                _("Appointment cannot be cancelled in its current state."),
                errors={"status": appointment.status},
            )

        with transaction.atomic():
            appointment.mark_cancelled(reason=reason)
            self._release_schedule_slots(appointment)

        logger.info(f"Appointment cancelled: ID={appointment.id}, Reason={reason!r}")
        return appointment

    def _run_protocol(self, proposal: BookingProposal, write: Callable[[], Appointment]) -> CommitResult:
        """
        Drive one write through PROPOSED -> VALIDATED -> COMMITTED, or to
        REJECTED as soon as a conflict is found.
        """
        max_attempts = max(1, self.config["COMMIT_MAX_ATTEMPTS"])
        delay = self.config["COMMIT_RETRY_DELAY_SECONDS"]
        transitions = [BookingCommitState.PROPOSED]

        for attempt in range(1, max_attempts + 1):
            lock = DistributedLock(
                staff_bookings_lock_key(proposal.staff_id),
                expires=self.config["STAFF_LOCK_EXPIRES_SECONDS"],
                timeout=self.config["STAFF_LOCK_TIMEOUT_SECONDS"],
            )
            try:
                with lock, transaction.atomic():
                    # Serializes writers that bypass the cache lock
                    Staff.objects.select_for_update().filter(id=proposal.staff_id).first()

                    conflicts = self.conflict_service.detect_conflicts(proposal)
                    if conflicts:
                        transitions.append(BookingCommitState.REJECTED)
                        logger.info(
                            f"Booking rejected for staff {proposal.staff_id} at "
                            f"{proposal.start.isoformat()}: {sorted(kind.value for kind in conflicts)}"
                        )
                        return CommitResult(
                            BookingCommitState.REJECTED,
                            conflicts=conflicts,
                            attempts=attempt,
                            transitions=transitions,
                        )

                    transitions.append(BookingCommitState.VALIDATED)
                    appointment = write()

                transitions.append(BookingCommitState.COMMITTED)
                return CommitResult(
                    BookingCommitState.COMMITTED,
                    appointment=appointment,
                    attempts=attempt,
                    transitions=transitions,
                )

            except LockTimeout as e:
                logger.warning(f"Commit attempt {attempt}/{max_attempts} timed out: {str(e)}")
            except (IntegrityError, OperationalError) as e:
                logger.warning(f"Commit attempt {attempt}/{max_attempts} hit database contention: {str(e)}")

            # Back to PROPOSED for the next attempt
            if transitions[-1] != BookingCommitState.PROPOSED:
                transitions.append(BookingCommitState.PROPOSED)
            if attempt < max_attempts and delay:
                self.sleep(delay * attempt)

        logger.warning(
            f"Giving up committing booking for staff {proposal.staff_id} at "
            f"{proposal.start.isoformat()} after {max_attempts} attempts"
        )
        raise CommitRaceException(errors={"attempts": max_attempts})

    def _claim_schedule_slots(self, appointment: Appointment, tz) -> int:
        """Mark the discrete schedule slots overlapping the appointment as booked"""
        day = local_date(appointment.start_time, tz)
        schedule = self.store.get_schedule_record(appointment.staff_id, day)
        if schedule is None:
            return 0

        booked = TimeRange(appointment.start_time, appointment.end_time)
        slot_ids = [
            slot.id
            for slot in schedule.time_slots.filter(appointment__isnull=True, is_available=True)
            if TimeRange(to_utc(day, slot.start_time, tz), to_utc(day, slot.end_time, tz)).overlaps(booked)
        ]
        return ScheduleTimeSlot.objects.filter(id__in=slot_ids).update(appointment=appointment, is_available=False)

    @staticmethod
    def _release_schedule_slots(appointment: Appointment) -> int:
        return ScheduleTimeSlot.objects.filter(appointment=appointment).update(appointment=None, is_available=True)
