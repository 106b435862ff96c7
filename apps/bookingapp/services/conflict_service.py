# apps/bookingapp/services/conflict_service.py
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from algorithms.availability.conflict_detector import BookingProposal, ConflictDetector, ConflictKind
from algorithms.availability.rule_evaluator import RuleEvaluator
from apps.bookingapp.conf import engine_config
from apps.bookingapp.events import (
    BOOKING_CONFLICT_DETECTED,
    BOOKING_CONFLICT_ESCALATED,
    BOOKING_CONFLICT_RESOLVED,
)
from apps.bookingapp.models import BookingConflict, ConflictStatus
from apps.bookingapp.services.alternative_service import AlternativeService
from apps.bookingapp.services.booking_store import BookingStore
from apps.bookingapp.services.notification_bus import NotificationBus
from apps.bookingapp.utils.timezone_utils import local_date
from core.exceptions.custom_exceptions import APIException, InvalidOperationException

logger = logging.getLogger(__name__)

ESCALATION_NOTE = "Requires manual intervention - auto-resolution failed"


class ResolutionStrategy(str, Enum):
    FIND_ALTERNATIVE_STAFF = "FIND_ALTERNATIVE_STAFF"
    RESCHEDULE_NEARBY = "RESCHEDULE_NEARBY"
    WAITLIST = "WAITLIST"


class ResolutionSuggestion:
    """
    One way out of a recorded conflict.

    Args:
        strategy: How the conflict would be resolved
        confidence: 0..1; only suggestions at or above the configured
            minimum are executed automatically
        description: Human readable summary
        staff_id: Replacement staff member, for FIND_ALTERNATIVE_STAFF
        start_time: New start, for RESCHEDULE_NEARBY
    """

    def __init__(self, strategy, confidence, description, staff_id=None, start_time=None):
        self.strategy = strategy
        self.confidence = confidence
        self.description = description
        self.staff_id = staff_id
        self.start_time = start_time

    def __repr__(self):
        return f"<ResolutionSuggestion {self.strategy.value} confidence={self.confidence}>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "confidence": self.confidence,
            "description": self.description,
            "staff_id": self.staff_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
        }


class ConflictService:
    """
    Conflict classification for concrete booking proposals.

    ``detect_conflicts`` is read-only and idempotent and is the check re-run
    at commit time. ``detect_and_record_conflicts`` persists what it finds,
    and ``attempt_auto_resolution`` works a recorded conflict towards
    AUTO_RESOLVED or ESCALATED.
    """

    def __init__(
        self,
        store: Optional[BookingStore] = None,
        clock: Optional[Callable] = None,
        notification_bus: Optional[NotificationBus] = None,
        config: Optional[dict] = None,
        booking_service=None,
    ):
        self.config = engine_config(config)
        self.store = store or BookingStore(default_timezone=self.config["DEFAULT_TIMEZONE"])
        self.clock = clock or timezone.now
        self.notification_bus = notification_bus or NotificationBus()
        self._booking_service = booking_service

    def detect_conflicts(self, proposal: BookingProposal) -> Set[ConflictKind]:
        """
        Find every conflict kind for a proposal.

        Args:
            proposal: Staff, interval and location; ``exclude_appointment_id``
                names the appointment being modified, if any

        Returns:
            Set of ConflictKind, empty when the proposal can be booked

        Raises:
            ResourceNotFoundException: If the location does not exist
        """
        location = self.store.get_location(proposal.location_id)
        tz = self.store.resolve_timezone(location)
        day = local_date(proposal.start, tz)

        location_open = location.is_active and self.store.is_location_open(location, day)
        staff_state = self.store.get_staff_state(proposal.staff_id, location)
        appointments = self.store.get_appointments([proposal.staff_id], proposal.start, proposal.end)
        overrides = [
            override
            for override in self.store.get_overrides(location, [proposal.staff_id], proposal.start, proposal.end)
            if override.applies_to_staff(proposal.staff_id)
        ]

        detector = ConflictDetector(RuleEvaluator(self.clock()))
        return detector.detect_conflicts(
            proposal,
            staff_state,
            appointments,
            overrides,
            location_open,
            exclude_appointment_id=proposal.exclude_appointment_id,
        )

    def detect_and_record_conflicts(self, appointment_id) -> List[str]:
        """
        Check a stored appointment and record one BookingConflict per kind.

        The appointment itself is excluded from the double-booking check.
        Each record carries suggested alternatives; DOUBLE_BOOKING records
        also point at the overlapping appointment.

        Returns:
            Ids of the created BookingConflict records
        """
        appointment = self.store.get_appointment(appointment_id)
        proposal = BookingProposal(
            staff_id=appointment.staff_id,
            start=appointment.start_time,
            end=appointment.end_time,
            location_id=appointment.location_id,
            exclude_appointment_id=appointment.id,
        )

        kinds = self.detect_conflicts(proposal)
        if not kinds:
            return []

        service_ids = [str(service_id) for service_id in appointment.services.values_list("id", flat=True)]
        alternatives = []
        if service_ids:
            try:
                slots = AlternativeService(store=self.store, clock=self.clock, config=self.config).suggest_alternatives(
                    proposal, service_ids, self.config["CONFLICT_ALTERNATIVE_COUNT"]
                )
                alternatives = [slot.to_dict() for slot in slots]
            except APIException as e:
                logger.warning(f"Could not suggest alternatives for appointment {appointment.id}: {e.message}")

        overlapping = ConflictDetector.overlapping_appointments(
            proposal,
            self.store.get_appointments([proposal.staff_id], proposal.start, proposal.end),
            exclude_appointment_id=appointment.id,
        )
        conflicting_id = overlapping[0].appointment_id if overlapping else None

        conflict_ids = []
        with transaction.atomic():
            for kind in sorted(kinds, key=lambda k: k.value):
                conflict = BookingConflict.objects.create(
                    appointment=appointment,
                    conflict_type=kind.value,
                    conflicting_appointment_id=conflicting_id if kind == ConflictKind.DOUBLE_BOOKING else None,
                    status=ConflictStatus.PENDING,
                    suggested_alternatives=alternatives,
                )
                conflict_ids.append(str(conflict.id))

        logger.info(
            f"Recorded {len(conflict_ids)} conflicts for appointment {appointment.id}: "
            f"{sorted(kind.value for kind in kinds)}"
        )

        self.notification_bus.publish_on_commit(
            BOOKING_CONFLICT_DETECTED,
            {
                "appointment_id": str(appointment.id),
                "conflict_ids": conflict_ids,
                "conflicts": sorted(kind.value for kind in kinds),
            },
        )
        return conflict_ids

    @property
    def booking_service(self):
        if self._booking_service is None:
            # BookingService depends on this module
            from apps.bookingapp.services.booking_service import BookingService

            self._booking_service = BookingService(
                store=self.store, conflict_service=self, clock=self.clock, config=self.config
            )
        return self._booking_service

    def generate_resolution_suggestions(self, conflict: BookingConflict) -> List[ResolutionSuggestion]:
        """
        Ways to resolve a recorded conflict, highest confidence first.

        Another free staff member at the same time scores 0.9, a nearby slot
        the same day for the same staff 0.8. Moving the customer to the
        waitlist is always offered at 0.5.
        """
        appointment = conflict.appointment
        service_ids = [str(service_id) for service_id in appointment.services.values_list("id", flat=True)]
        proposal = BookingProposal(
            staff_id=appointment.staff_id,
            start=appointment.start_time,
            end=appointment.end_time,
            location_id=appointment.location_id,
            exclude_appointment_id=appointment.id,
        )

        suggestions = []
        if service_ids and conflict.conflict_type != ConflictKind.BRANCH_CLOSED.value:
            alternatives = AlternativeService(store=self.store, clock=self.clock, config=self.config)
            try:
                staff = alternatives.find_alternative_staff(proposal, service_ids)
                if staff:
                    suggestions.append(
                        ResolutionSuggestion(
                            ResolutionStrategy.FIND_ALTERNATIVE_STAFF,
                            0.9,
                            f"Switch to {staff[0]['name']}",
                            staff_id=staff[0]["staff_id"],
                        )
                    )

                if conflict.conflict_type == ConflictKind.DOUBLE_BOOKING.value:
                    nearby = alternatives.find_nearby_slots(proposal, service_ids)
                    if nearby:
                        tz = self.store.resolve_timezone(appointment.location)
                        suggestions.append(
                            ResolutionSuggestion(
                                ResolutionStrategy.RESCHEDULE_NEARBY,
                                0.8,
                                f"Reschedule to {nearby[0].start.astimezone(tz):%H:%M}",
                                start_time=nearby[0].start,
                            )
                        )
            except APIException as e:
                logger.warning(f"Could not build resolutions for conflict {conflict.id}: {e.message}")

        suggestions.append(
            ResolutionSuggestion(
                ResolutionStrategy.WAITLIST, 0.5, "Add customer to waitlist for preferred time"
            )
        )
        return sorted(suggestions, key=lambda suggestion: suggestion.confidence, reverse=True)

    def attempt_auto_resolution(self, conflict_id) -> BookingConflict:
        """
        Try to resolve a pending conflict without a human.

        Every call counts as one attempt. Suggestions at or above
        ``AUTO_RESOLUTION_MIN_CONFIDENCE`` are executed in order through the
        locked commit protocol; the first that commits marks the conflict
        AUTO_RESOLVED. When none does and ``AUTO_RESOLUTION_MAX_ATTEMPTS``
        is reached, the conflict is ESCALATED for manual handling.

        Returns:
            The updated BookingConflict

        Raises:
            ResourceNotFoundException: Unknown conflict
            InvalidOperationException: The conflict is no longer pending
        """
        conflict = self.store.get_conflict(conflict_id)
        if conflict.status != ConflictStatus.PENDING:
            raise InvalidOperationException(
                _("Only pending conflicts can be auto-resolved."),
                errors={"status": conflict.status},
            )

        BookingConflict.objects.filter(id=conflict.id).update(
            auto_resolution_attempts=F("auto_resolution_attempts") + 1
        )
        attempts = conflict.auto_resolution_attempts + 1

        for suggestion in self.generate_resolution_suggestions(conflict):
            if suggestion.confidence < self.config["AUTO_RESOLUTION_MIN_CONFIDENCE"]:
                continue
            if self._execute_resolution(conflict, suggestion):
                return self._finish(
                    conflict,
                    ConflictStatus.AUTO_RESOLVED,
                    f"Auto-resolved using {suggestion.strategy.value}: {suggestion.description}",
                    BOOKING_CONFLICT_RESOLVED,
                )

        if attempts >= self.config["AUTO_RESOLUTION_MAX_ATTEMPTS"]:
            logger.warning(f"Escalating conflict {conflict.id} after {attempts} auto-resolution attempts")
            return self._finish(conflict, ConflictStatus.ESCALATED, ESCALATION_NOTE, BOOKING_CONFLICT_ESCALATED)

        logger.info(f"Auto-resolution attempt {attempts} for conflict {conflict.id} failed")
        conflict.refresh_from_db()
        return conflict

    def _execute_resolution(self, conflict: BookingConflict, suggestion: ResolutionSuggestion) -> bool:
        try:
            if suggestion.strategy == ResolutionStrategy.FIND_ALTERNATIVE_STAFF:
                result = self.booking_service.reassign_booking(conflict.appointment_id, suggestion.staff_id)
            elif suggestion.strategy == ResolutionStrategy.RESCHEDULE_NEARBY:
                result = self.booking_service.reschedule_booking(conflict.appointment_id, suggestion.start_time)
            else:
                return False
        except APIException as e:
            logger.warning(f"Resolution {suggestion.strategy.value} failed for conflict {conflict.id}: {e.message}")
            return False

        if not result.committed:
            logger.info(
                f"Resolution {suggestion.strategy.value} for conflict {conflict.id} rejected: "
                f"{sorted(kind.value for kind in result.conflicts)}"
            )
        return result.committed

    def _finish(self, conflict: BookingConflict, status, notes: str, event: str) -> BookingConflict:
        conflict.refresh_from_db()
        conflict.status = status
        conflict.resolution_notes = notes
        if status == ConflictStatus.AUTO_RESOLVED:
            conflict.resolved_at = self.clock()
        conflict.save(update_fields=["status", "resolution_notes", "resolved_at"])

        logger.info(f"Conflict {conflict.id} is now {status}: {notes}")
        self.notification_bus.publish_on_commit(
            event,
            {
                "conflict_id": str(conflict.id),
                "appointment_id": str(conflict.appointment_id),
                "status": conflict.status,
                "attempts": conflict.auto_resolution_attempts,
                "notes": notes,
            },
        )
        return conflict
