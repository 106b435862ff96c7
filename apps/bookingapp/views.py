"""
Booking engine views
Thin HTTP adapters over the availability, conflict and booking services
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from algorithms.availability.conflict_detector import BookingProposal
from apps.bookingapp.models import BookingConflict
from apps.bookingapp.serializers import (
    AlternativesRequestSerializer,
    AppointmentCancelSerializer,
    AppointmentCreateSerializer,
    AppointmentRescheduleSerializer,
    AppointmentSerializer,
    AvailabilityQuerySerializer,
    BookingConflictSerializer,
    LoadBalanceQuerySerializer,
    ProposalSerializer,
    TimeSlotSerializer,
)
from apps.bookingapp.services.alternative_service import AlternativeService
from apps.bookingapp.services.availability_service import AvailabilityService
from apps.bookingapp.services.booking_service import BookingService
from apps.bookingapp.services.conflict_service import ConflictService
from apps.bookingapp.services.load_balance_service import LoadBalanceService
from core.exceptions.custom_exceptions import SchedulingConflictException


def _proposal_from(validated_data) -> BookingProposal:
    """Build a proposal, deriving the end time from the services when absent"""
    if validated_data.get("end_time") is None:
        proposal = BookingService().build_proposal(
            validated_data["staff_id"],
            validated_data["location_id"],
            validated_data["start_time"],
            validated_data["service_ids"],
        )
    else:
        proposal = BookingProposal(
            validated_data["staff_id"],
            validated_data["start_time"],
            validated_data["end_time"],
            validated_data["location_id"],
        )
    if validated_data.get("exclude_appointment_id"):
        proposal.exclude_appointment_id = str(validated_data["exclude_appointment_id"])
    return proposal


class AvailabilityView(APIView):
    """Available slots for services at a location on a date"""

    permission_classes = [permissions.AllowAny]

    def get(self, request):
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        slots = AvailabilityService().get_available_slots(
            location_id=data["location_id"],
            service_ids=data["service_ids"],
            target_date=data["date"],
            staff_id=data.get("staff_id"),
            customer_id=data.get("customer_id"),
            timezone_name=data.get("timezone"),
        )
        return Response({"slots": TimeSlotSerializer(slots, many=True).data, "count": len(slots)})


class ConflictCheckView(APIView):
    """Classify the conflicts of a concrete proposal"""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = ProposalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        conflicts = ConflictService().detect_conflicts(_proposal_from(serializer.validated_data))
        return Response(
            {
                "conflicts": sorted(kind.value for kind in conflicts),
                "has_conflict": bool(conflicts),
            }
        )


class AlternativesView(APIView):
    """Suggest replacement slots, and optionally nearby slots and other staff"""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = AlternativesRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        proposal = _proposal_from(data)
        service = AlternativeService()
        response = {
            "alternatives": TimeSlotSerializer(
                service.suggest_alternatives(proposal, data["service_ids"], data.get("count")),
                many=True,
            ).data
        }

        if data.get("include_nearby"):
            response["nearby"] = TimeSlotSerializer(
                service.find_nearby_slots(proposal, data["service_ids"]), many=True
            ).data
        if data.get("include_staff"):
            response["staff"] = service.find_alternative_staff(proposal, data["service_ids"])

        return Response(response)


class LoadBalanceView(APIView):
    """Per-staff load scores for a location and date"""

    permission_classes = [permissions.AllowAny]

    def get(self, request):
        serializer = LoadBalanceQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        scores = LoadBalanceService().calculate_staff_load_balance(data["location_id"], data["date"])
        return Response(
            {
                "location_id": str(data["location_id"]),
                "date": data["date"].isoformat(),
                "scores": scores,
            }
        )


class AppointmentCreateView(APIView):
    """Create a new appointment through the locked commit protocol"""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking_service = BookingService()
        proposal = booking_service.build_proposal(
            data["staff_id"], data["location_id"], data["start_time"], data["service_ids"]
        )
        result = booking_service.commit_booking(
            proposal,
            data["service_ids"],
            customer_id=data.get("customer_id"),
            notes=data.get("notes", ""),
        )

        if not result.committed:
            raise SchedulingConflictException(
                _("This time slot is no longer available. Please select another."),
                conflicts=result.conflicts,
            )

        return Response(AppointmentSerializer(result.appointment).data, status=status.HTTP_201_CREATED)


class AppointmentRescheduleView(APIView):
    """Move an appointment to a new start time"""

    permission_classes = [permissions.AllowAny]

    def post(self, request, appointment_id):
        serializer = AppointmentRescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = BookingService().reschedule_booking(appointment_id, serializer.validated_data["start_time"])
        if not result.committed:
            raise SchedulingConflictException(
                _("The new time is not available."),
                conflicts=result.conflicts,
            )

        return Response(AppointmentSerializer(result.appointment).data)


class AppointmentCancelView(APIView):
    """Cancel an appointment"""

    permission_classes = [permissions.AllowAny]

    def post(self, request, appointment_id):
        serializer = AppointmentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = BookingService().cancel_booking(appointment_id, serializer.validated_data.get("reason", ""))
        return Response(AppointmentSerializer(appointment).data)


class AppointmentConflictsView(APIView):
    """List or record the conflicts of a stored appointment"""

    permission_classes = [permissions.AllowAny]

    def get(self, request, appointment_id):
        conflict_service = ConflictService()
        appointment = conflict_service.store.get_appointment(appointment_id)
        return Response(BookingConflictSerializer(appointment.conflicts.all(), many=True).data)

    def post(self, request, appointment_id):
        conflict_ids = ConflictService().detect_and_record_conflicts(appointment_id)
        conflicts = BookingConflict.objects.filter(id__in=conflict_ids).order_by("conflict_type")
        return Response(BookingConflictSerializer(conflicts, many=True).data, status=status.HTTP_201_CREATED)


class ConflictResolveView(APIView):
    """Make one auto-resolution attempt for a recorded conflict"""

    permission_classes = [permissions.AllowAny]

    def post(self, request, conflict_id):
        conflict = ConflictService().attempt_auto_resolution(conflict_id)
        return Response(BookingConflictSerializer(conflict).data)
