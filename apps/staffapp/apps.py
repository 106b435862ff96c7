from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class StaffAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.staffapp"
    verbose_name = _("Staff Management")
