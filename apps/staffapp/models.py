import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.locationapp.models import Location
from apps.serviceapp.models import Service

from .enums import AbsenceStatus, StaffStatus


class Staff(models.Model):
    """Staff member who performs services at one location"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name="staff",
        verbose_name=_("Location"),
    )
    name = models.CharField(_("Name"), max_length=255)
    status = models.CharField(
        _("Status"),
        max_length=10,
        choices=StaffStatus.choices,
        default=StaffStatus.ACTIVE,
        db_index=True,
    )
    booking_enabled = models.BooleanField(_("Booking Enabled"), default=True)
    services = models.ManyToManyField(
        Service,
        through="StaffService",
        related_name="staff",
        verbose_name=_("Services"),
    )
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    class Meta:
        verbose_name = _("Staff")
        verbose_name_plural = _("Staff")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["location", "status", "booking_enabled"]),
        ]

    def __str__(self):
        return self.name

    @property
    def is_active(self):
        return self.status == StaffStatus.ACTIVE

    @property
    def is_bookable(self):
        return self.is_active and self.booking_enabled


class StaffService(models.Model):
    """Association between staff members and the services they can perform"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff = models.ForeignKey(
        Staff,
        on_delete=models.CASCADE,
        related_name="staff_services",
        verbose_name=_("Staff"),
    )
    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name="staff_services",
        verbose_name=_("Service"),
    )
    is_available = models.BooleanField(_("Available"), default=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)

    class Meta:
        verbose_name = _("Staff Service")
        verbose_name_plural = _("Staff Services")
        unique_together = ("staff", "service")

    def __str__(self):
        return f"{self.staff.name} - {self.service.name}"


class StaffAbsence(models.Model):
    """Time-off request; only approved absences block availability"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff = models.ForeignKey(
        Staff,
        on_delete=models.CASCADE,
        related_name="absences",
        verbose_name=_("Staff"),
    )
    start_date = models.DateField(_("Start Date"))
    end_date = models.DateField(_("End Date"))
    status = models.CharField(
        _("Status"),
        max_length=10,
        choices=AbsenceStatus.choices,
        default=AbsenceStatus.PENDING,
    )
    reason = models.TextField(_("Reason"), blank=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)

    class Meta:
        verbose_name = _("Staff Absence")
        verbose_name_plural = _("Staff Absences")
        ordering = ["-start_date"]
        indexes = [
            models.Index(fields=["staff", "status", "start_date", "end_date"]),
        ]

    def __str__(self):
        return f"{self.staff.name}: {self.start_date} - {self.end_date} ({self.get_status_display()})"

    def clean(self):
        if self.end_date < self.start_date:
            raise ValidationError(_("End date must not be before start date"))


class Schedule(models.Model):
    """Working day of one staff member, in the location's local time"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff = models.ForeignKey(
        Staff,
        on_delete=models.CASCADE,
        related_name="schedules",
        verbose_name=_("Staff"),
    )
    date = models.DateField(_("Date"), db_index=True)
    start_time = models.TimeField(_("Start Time"))
    end_time = models.TimeField(_("End Time"))
    break_start = models.TimeField(_("Break Start"), null=True, blank=True)
    break_end = models.TimeField(_("Break End"), null=True, blank=True)
    is_available = models.BooleanField(_("Available"), default=True)

    class Meta:
        verbose_name = _("Schedule")
        verbose_name_plural = _("Schedules")
        unique_together = ("staff", "date")
        ordering = ["date", "start_time"]

    def __str__(self):
        return f"{self.staff.name} - {self.date}: {self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    @property
    def has_break(self):
        return self.break_start is not None and self.break_end is not None

    def clean(self):
        if self.end_time <= self.start_time:
            raise ValidationError(_("End time must be after start time"))
        if (self.break_start is None) != (self.break_end is None):
            raise ValidationError(_("Break start and end must be set together"))
        if self.has_break and self.break_end <= self.break_start:
            raise ValidationError(_("Break end must be after break start"))


class ScheduleTimeSlot(models.Model):
    """Pre-carved bookable slot inside a schedule"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    schedule = models.ForeignKey(
        Schedule,
        on_delete=models.CASCADE,
        related_name="time_slots",
        verbose_name=_("Schedule"),
    )
    start_time = models.TimeField(_("Start Time"))
    end_time = models.TimeField(_("End Time"))
    is_available = models.BooleanField(_("Available"), default=True)
    appointment = models.ForeignKey(
        "bookingapp.Appointment",
        on_delete=models.SET_NULL,
        related_name="schedule_slots",
        verbose_name=_("Appointment"),
        null=True,
        blank=True,
    )

    class Meta:
        verbose_name = _("Schedule Time Slot")
        verbose_name_plural = _("Schedule Time Slots")
        ordering = ["start_time"]

    def __str__(self):
        return f"{self.schedule} [{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}]"

    @property
    def is_booked(self):
        return not self.is_available or self.appointment_id is not None
