import uuid

import pytz
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from .enums import Weekday


def validate_timezone_name(value):
    if value not in pytz.all_timezones_set:
        raise ValidationError(_("Unknown timezone: %(value)s"), params={"value": value})


class Location(models.Model):
    """Physical branch where staff work and appointments take place"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(_("Name"), max_length=255)
    address = models.CharField(_("Address"), max_length=255, blank=True)
    timezone = models.CharField(
        _("Timezone"),
        max_length=64,
        default="UTC",
        validators=[validate_timezone_name],
        help_text=_("IANA timezone name used to interpret schedule times"),
    )
    is_active = models.BooleanField(_("Active"), default=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    class Meta:
        verbose_name = _("Location")
        verbose_name_plural = _("Locations")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"]),
        ]

    def __str__(self):
        return self.name

    @property
    def tzinfo(self):
        return pytz.timezone(self.timezone)

    def is_open_on(self, date):
        """Check whether an open working-hours record exists for the date's weekday"""
        return self.hours.filter(weekday=date.weekday(), is_closed=False).exists()


class LocationHours(models.Model):
    """Working hours for a location on one weekday"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name="hours",
        verbose_name=_("Location"),
    )
    weekday = models.IntegerField(_("Weekday"), choices=Weekday.choices)
    open_time = models.TimeField(_("Open Time"))
    close_time = models.TimeField(_("Close Time"))
    is_closed = models.BooleanField(_("Is Closed"), default=False)

    class Meta:
        verbose_name = _("Location Hours")
        verbose_name_plural = _("Location Hours")
        unique_together = ("location", "weekday")
        ordering = ["weekday"]

    def __str__(self):
        return f"{self.location.name} - {self.get_weekday_display()}: {self.open_time.strftime('%H:%M')} - {self.close_time.strftime('%H:%M')}"

    def clean(self):
        if not self.is_closed and self.close_time <= self.open_time:
            raise ValidationError(_("Close time must be after open time"))
