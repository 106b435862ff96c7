# apps/bookingapp/serializers.py
import pytz
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from apps.bookingapp.models import Appointment, BookingConflict


class ServiceIdListField(serializers.ListField):
    """Accepts a JSON list of ids, a comma-separated string, or repeated query keys"""

    child = serializers.UUIDField()

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [data]
        if isinstance(data, (list, tuple)):
            data = [
                item.strip()
                for value in data
                for item in (value.split(",") if isinstance(value, str) else [value])
                if not isinstance(item, str) or item.strip()
            ]
        return super().to_internal_value(data)


class AvailabilityQuerySerializer(serializers.Serializer):
    """Query parameters for the availability endpoint"""

    location_id = serializers.UUIDField()
    service_ids = ServiceIdListField(allow_empty=False)
    date = serializers.DateField()
    staff_id = serializers.UUIDField(required=False, allow_null=True)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    timezone = serializers.CharField(required=False, allow_blank=True)

    def validate_timezone(self, value):
        if value and value not in pytz.all_timezones_set:
            raise serializers.ValidationError(_("Unknown timezone."))
        return value or None


class ProposalSerializer(serializers.Serializer):
    """A concrete staff/time/location combination"""

    staff_id = serializers.UUIDField()
    location_id = serializers.UUIDField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField(required=False)
    service_ids = ServiceIdListField(required=False, allow_empty=False)
    exclude_appointment_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if "end_time" not in attrs and not attrs.get("service_ids"):
            raise serializers.ValidationError(_("Either end_time or service_ids is required."))
        if "end_time" in attrs and attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError({"end_time": _("End time must be after start time.")})
        return attrs


class AlternativesRequestSerializer(ProposalSerializer):
    """Proposal plus search options for alternative suggestions"""

    service_ids = ServiceIdListField(allow_empty=False)
    count = serializers.IntegerField(required=False, min_value=1, max_value=20)
    include_nearby = serializers.BooleanField(required=False, default=False)
    include_staff = serializers.BooleanField(required=False, default=False)


class LoadBalanceQuerySerializer(serializers.Serializer):
    location_id = serializers.UUIDField()
    date = serializers.DateField()


class AppointmentCreateSerializer(serializers.Serializer):
    """Input for committing a new appointment"""

    staff_id = serializers.UUIDField()
    location_id = serializers.UUIDField()
    start_time = serializers.DateTimeField()
    service_ids = ServiceIdListField(allow_empty=False)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AppointmentRescheduleSerializer(serializers.Serializer):
    start_time = serializers.DateTimeField()


class AppointmentCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class TimeSlotSerializer(serializers.Serializer):
    """Serializer for computed slots"""

    staff_id = serializers.CharField()
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    is_available = serializers.BooleanField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    is_peak = serializers.BooleanField(allow_null=True)


class AppointmentSerializer(serializers.ModelSerializer):
    """Serializer for appointments"""

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    service_ids = serializers.PrimaryKeyRelatedField(source="services", many=True, read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "location",
            "staff",
            "customer",
            "service_ids",
            "start_time",
            "end_time",
            "status",
            "status_display",
            "total_price",
            "is_peak",
            "notes",
            "cancellation_reason",
            "cancelled_at",
            "created_at",
        ]
        read_only_fields = fields


class BookingConflictSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingConflict
        fields = [
            "id",
            "appointment",
            "conflict_type",
            "conflicting_appointment",
            "status",
            "suggested_alternatives",
            "auto_resolution_attempts",
            "resolution_notes",
            "detected_at",
            "resolved_at",
        ]
        read_only_fields = fields
