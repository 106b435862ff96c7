import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _


class Customer(models.Model):
    """
    Customer profile used for booking attribution and VIP ordering
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(_("Name"), max_length=255, blank=True)
    phone_number = models.CharField(_("Phone Number"), max_length=20, blank=True)
    email = models.EmailField(_("Email"), blank=True)
    is_vip = models.BooleanField(
        _("VIP"),
        default=False,
        help_text=_("VIP customers see prime-time slots first"),
    )
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    class Meta:
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        indexes = [
            models.Index(fields=["is_vip"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        return f"{self.phone_number or self.email} - {self.name or 'Unnamed'}"
