import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Service(models.Model):
    """Catalog entry for a bookable service"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(_("Name"), max_length=255)
    description = models.TextField(_("Description"), blank=True)
    price = models.DecimalField(_("Price"), max_digits=10, decimal_places=2)
    duration = models.PositiveIntegerField(
        _("Duration (minutes)"),
        validators=[MinValueValidator(1), MaxValueValidator(1440)],  # Max 24 hours
    )
    buffer_time = models.PositiveIntegerField(
        _("Buffer Time (minutes)"),
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(120)],
        help_text=_("Appended to the duration when fitting slots; not billed"),
    )
    is_active = models.BooleanField(_("Active"), default=True)
    order = models.PositiveIntegerField(
        _("Order"), default=0, help_text=_("Display order")
    )
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    class Meta:
        verbose_name = _("Service")
        verbose_name_plural = _("Services")
        ordering = ["order", "name"]
        indexes = [
            models.Index(fields=["is_active"]),
        ]

    def __str__(self):
        return self.name

    @property
    def total_duration(self):
        """Total duration including buffer"""
        return self.duration + self.buffer_time
