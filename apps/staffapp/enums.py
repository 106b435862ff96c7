from django.db import models
from django.utils.translation import gettext_lazy as _


class StaffStatus(models.TextChoices):
    """Employment status"""

    ACTIVE = "active", _("Active")
    INACTIVE = "inactive", _("Inactive")


class AbsenceStatus(models.TextChoices):
    """Time-off request status"""

    PENDING = "pending", _("Pending")
    APPROVED = "approved", _("Approved")
    REJECTED = "rejected", _("Rejected")
