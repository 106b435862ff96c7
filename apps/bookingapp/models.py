import uuid
from enum import Enum

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from model_utils import FieldTracker

from apps.customersapp.models import Customer
from apps.locationapp.models import Location
from apps.serviceapp.models import Service
from apps.staffapp.models import Staff


class AppointmentStatus(str, Enum):
    """Enum for appointment status values"""

    PENDING = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Appointments in these states no longer occupy the staff member's time
INACTIVE_APPOINTMENT_STATUSES = (
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.NO_SHOW.value,
)


class Appointment(models.Model):
    """Committed booking of one staff member for an absolute time interval"""

    STATUS_CHOICES = (
        ("scheduled", _("Scheduled")),
        ("confirmed", _("Confirmed")),
        ("in_progress", _("In Progress")),
        ("completed", _("Completed")),
        ("cancelled", _("Cancelled")),
        ("no_show", _("No Show")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name="appointments",
        verbose_name=_("Location"),
    )
    staff = models.ForeignKey(
        Staff,
        on_delete=models.CASCADE,
        related_name="appointments",
        verbose_name=_("Staff"),
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        related_name="appointments",
        verbose_name=_("Customer"),
        null=True,
        blank=True,
    )
    services = models.ManyToManyField(
        Service,
        related_name="appointments",
        verbose_name=_("Services"),
        blank=True,
    )
    start_time = models.DateTimeField(_("Start Time"), db_index=True)
    end_time = models.DateTimeField(_("End Time"), db_index=True)
    status = models.CharField(
        _("Status"),
        max_length=20,
        choices=STATUS_CHOICES,
        default="scheduled",
        db_index=True,
    )
    notes = models.TextField(_("Notes"), blank=True)
    cancellation_reason = models.TextField(_("Cancellation Reason"), blank=True)
    cancelled_at = models.DateTimeField(_("Cancelled At"), null=True, blank=True)
    total_price = models.DecimalField(
        _("Total Price"), max_digits=10, decimal_places=2, default=0
    )
    is_peak = models.BooleanField(_("Peak Pricing Applied"), default=False)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    # Track field changes for signals
    tracker = FieldTracker(fields=["status", "start_time", "end_time", "staff_id"])

    class Meta:
        verbose_name = _("Appointment")
        verbose_name_plural = _("Appointments")
        ordering = ["-start_time"]
        indexes = [
            models.Index(fields=["start_time", "end_time"]),
            models.Index(fields=["status"]),
            models.Index(fields=["location", "start_time", "status"]),
            models.Index(fields=["staff", "start_time", "status"]),
        ]

    def __str__(self):
        return f"{self.staff.name} - {self.start_time.strftime('%Y-%m-%d %H:%M')} ({self.status})"

    @property
    def is_active(self):
        return self.status not in INACTIVE_APPOINTMENT_STATUSES

    @property
    def duration_minutes(self):
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def clean(self):
        """Validate appointment time constraints"""
        if self.end_time <= self.start_time:
            raise ValidationError(_("End time must be after start time"))

        if self.staff.location_id != self.location_id:
            raise ValidationError(_("Staff does not belong to the selected location"))

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    def mark_confirmed(self):
        """Mark appointment as confirmed"""
        self.status = AppointmentStatus.CONFIRMED.value
        self.save(update_fields=["status", "updated_at"])

    def mark_cancelled(self, reason=""):
        """Mark appointment as cancelled with a reason"""
        self.status = AppointmentStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = timezone.now()
        self.save(
            update_fields=[
                "status",
                "cancellation_reason",
                "cancelled_at",
                "updated_at",
            ]
        )

    def mark_no_show(self):
        """Mark appointment as no-show"""
        self.status = AppointmentStatus.NO_SHOW.value
        self.save(update_fields=["status", "updated_at"])


class AvailabilityOverride(models.Model):
    """
    Explicit allow/deny interval for one staff member or, when staff is
    empty, for the whole location
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name="availability_overrides",
        verbose_name=_("Location"),
    )
    staff = models.ForeignKey(
        Staff,
        on_delete=models.CASCADE,
        related_name="availability_overrides",
        verbose_name=_("Staff"),
        null=True,
        blank=True,
    )
    start_datetime = models.DateTimeField(_("Start"))
    end_datetime = models.DateTimeField(_("End"))
    is_available = models.BooleanField(
        _("Available"),
        default=False,
        help_text=_("Unchecked closes the interval, checked marks a special opening"),
    )
    reason = models.CharField(_("Reason"), max_length=255, blank=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)

    class Meta:
        verbose_name = _("Availability Override")
        verbose_name_plural = _("Availability Overrides")
        ordering = ["start_datetime"]
        indexes = [
            models.Index(fields=["location", "start_datetime", "end_datetime"]),
        ]

    def __str__(self):
        scope = self.staff.name if self.staff_id else self.location.name
        state = _("open") if self.is_available else _("closed")
        return f"{scope}: {state} {self.start_datetime:%Y-%m-%d %H:%M} - {self.end_datetime:%Y-%m-%d %H:%M}"

    def clean(self):
        if self.end_datetime <= self.start_datetime:
            raise ValidationError(_("End must be after start"))


class BookingRuleType(models.TextChoices):
    """Kinds of configurable booking constraint"""

    MIN_ADVANCE_TIME = "MIN_ADVANCE_TIME", _("Minimum Advance Time")
    MAX_ADVANCE_TIME = "MAX_ADVANCE_TIME", _("Maximum Advance Time")
    BLACKOUT_DATE = "BLACKOUT_DATE", _("Blackout Dates")
    PEAK_PRICING = "PEAK_PRICING", _("Peak Pricing")


class BookingRule(models.Model):
    """
    Configurable booking constraint.

    Scope is global when both location and staff are empty, location-wide
    when only location is set, and staff-specific when staff is set. Priority
    only orders evaluation; every applicable rule must pass.
    """

    REQUIRED_FIELDS = {
        BookingRuleType.MIN_ADVANCE_TIME: ("min_advance_hours",),
        BookingRuleType.MAX_ADVANCE_TIME: ("max_advance_days",),
        BookingRuleType.BLACKOUT_DATE: ("start_date", "end_date"),
        BookingRuleType.PEAK_PRICING: ("start_time", "end_time", "price_multiplier"),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(_("Name"), max_length=255, blank=True)
    rule_type = models.CharField(
        _("Rule Type"), max_length=20, choices=BookingRuleType.choices
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name="booking_rules",
        verbose_name=_("Location"),
        null=True,
        blank=True,
    )
    staff = models.ForeignKey(
        Staff,
        on_delete=models.CASCADE,
        related_name="booking_rules",
        verbose_name=_("Staff"),
        null=True,
        blank=True,
    )
    priority = models.IntegerField(_("Priority"), default=0)
    is_active = models.BooleanField(_("Active"), default=True)
    min_advance_hours = models.PositiveIntegerField(
        _("Minimum Advance (hours)"), null=True, blank=True
    )
    max_advance_days = models.PositiveIntegerField(
        _("Maximum Advance (days)"), null=True, blank=True
    )
    start_date = models.DateField(_("Start Date"), null=True, blank=True)
    end_date = models.DateField(_("End Date"), null=True, blank=True)
    start_time = models.TimeField(_("Start Time"), null=True, blank=True)
    end_time = models.TimeField(_("End Time"), null=True, blank=True)
    price_multiplier = models.DecimalField(
        _("Price Multiplier"),
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    class Meta:
        verbose_name = _("Booking Rule")
        verbose_name_plural = _("Booking Rules")
        ordering = ["-priority", "created_at"]
        indexes = [
            models.Index(fields=["is_active", "rule_type"]),
            models.Index(fields=["location", "is_active"]),
        ]

    def __str__(self):
        return self.name or self.get_rule_type_display()

    def clean(self):
        missing = [
            field
            for field in self.REQUIRED_FIELDS.get(self.rule_type, ())
            if getattr(self, field) is None
        ]
        if missing:
            raise ValidationError(
                {field: _("Required for this rule type") for field in missing}
            )
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError(_("End date must not be before start date"))
        if (
            self.rule_type == BookingRuleType.PEAK_PRICING
            and self.end_time <= self.start_time
        ):
            raise ValidationError(_("Peak window end must be after its start"))
        if self.staff_id and self.location_id and self.staff.location_id != self.location_id:
            raise ValidationError(_("Staff does not belong to the selected location"))


class ConflictStatus(models.TextChoices):
    PENDING = "PENDING", _("Pending")
    RESOLVED = "RESOLVED", _("Resolved")
    AUTO_RESOLVED = "AUTO_RESOLVED", _("Auto Resolved")
    ESCALATED = "ESCALATED", _("Escalated")
    IGNORED = "IGNORED", _("Ignored")


class BookingConflict(models.Model):
    """Recorded conflict for a stored appointment, with suggested alternatives"""

    CONFLICT_TYPE_CHOICES = (
        ("DOUBLE_BOOKING", _("Double Booking")),
        ("STAFF_UNAVAILABLE", _("Staff Unavailable")),
        ("BRANCH_CLOSED", _("Branch Closed")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment = models.ForeignKey(
        Appointment,
        on_delete=models.CASCADE,
        related_name="conflicts",
        verbose_name=_("Appointment"),
    )
    conflict_type = models.CharField(
        _("Conflict Type"), max_length=20, choices=CONFLICT_TYPE_CHOICES
    )
    conflicting_appointment = models.ForeignKey(
        Appointment,
        on_delete=models.SET_NULL,
        related_name="caused_conflicts",
        verbose_name=_("Conflicting Appointment"),
        null=True,
        blank=True,
    )
    status = models.CharField(
        _("Status"),
        max_length=20,
        choices=ConflictStatus.choices,
        default=ConflictStatus.PENDING,
        db_index=True,
    )
    suggested_alternatives = models.JSONField(
        _("Suggested Alternatives"), default=list, blank=True
    )
    auto_resolution_attempts = models.PositiveIntegerField(
        _("Auto Resolution Attempts"), default=0
    )
    resolution_notes = models.TextField(_("Resolution Notes"), blank=True)
    detected_at = models.DateTimeField(_("Detected At"), auto_now_add=True)
    resolved_at = models.DateTimeField(_("Resolved At"), null=True, blank=True)

    class Meta:
        verbose_name = _("Booking Conflict")
        verbose_name_plural = _("Booking Conflicts")
        ordering = ["-detected_at"]

    def __str__(self):
        return f"{self.get_conflict_type_display()} - {self.appointment_id}"

    def mark_resolved(self):
        self.status = ConflictStatus.RESOLVED
        self.resolved_at = timezone.now()
        self.save(update_fields=["status", "resolved_at"])
