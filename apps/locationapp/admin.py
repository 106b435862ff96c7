from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Location, LocationHours


class LocationHoursInline(admin.TabularInline):
    model = LocationHours
    extra = 7  # Show all days of the week
    max_num = 7


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("name", "timezone", "is_active", "created_at")
    list_filter = ("is_active", "timezone")
    search_fields = ("name", "address")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [LocationHoursInline]
    fieldsets = (
        (None, {"fields": ("id", "name", "address")}),
        (_("Scheduling"), {"fields": ("timezone", "is_active")}),
        (_("Metadata"), {"fields": ("created_at", "updated_at")}),
    )
