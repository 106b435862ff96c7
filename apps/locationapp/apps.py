from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class LocationAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.locationapp"
    verbose_name = _("Locations")
