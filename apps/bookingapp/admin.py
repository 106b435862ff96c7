# apps/bookingapp/admin.py
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from apps.bookingapp.models import Appointment, AvailabilityOverride, BookingConflict, BookingRule


class BookingConflictInline(admin.TabularInline):
    """Inline admin for conflicts recorded against an appointment"""

    model = BookingConflict
    fk_name = "appointment"
    extra = 0
    readonly_fields = ["conflict_type", "conflicting_appointment", "detected_at"]


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    """Admin configuration for appointments"""

    list_display = [
        "id",
        "staff_name",
        "location",
        "start_time",
        "end_time",
        "status",
        "total_price",
        "is_peak",
    ]
    list_filter = ["status", "is_peak", "location", "start_time"]
    search_fields = ["staff__name", "customer__name", "customer__phone_number"]
    date_hierarchy = "start_time"
    readonly_fields = ["created_at", "updated_at", "cancelled_at"]
    filter_horizontal = ["services"]
    inlines = [BookingConflictInline]

    fieldsets = (
        (None, {"fields": ("location", "staff", "customer", "services")}),
        (_("Schedule"), {"fields": ("start_time", "end_time", "status")}),
        (_("Pricing"), {"fields": ("total_price", "is_peak")}),
        (_("Cancellation"), {"fields": ("cancellation_reason", "cancelled_at")}),
        (_("Additional Information"), {"fields": ("notes", "created_at", "updated_at")}),
    )

    def staff_name(self, obj):
        return obj.staff.name

    staff_name.short_description = _("Staff")
    staff_name.admin_order_field = "staff__name"


@admin.register(AvailabilityOverride)
class AvailabilityOverrideAdmin(admin.ModelAdmin):
    list_display = ["location", "staff", "start_datetime", "end_datetime", "is_available", "reason"]
    list_filter = ["is_available", "location"]
    search_fields = ["reason", "staff__name"]


@admin.register(BookingRule)
class BookingRuleAdmin(admin.ModelAdmin):
    list_display = ["name", "rule_type", "location", "staff", "priority", "is_active"]
    list_filter = ["rule_type", "is_active"]
    search_fields = ["name"]
    ordering = ["-priority"]


@admin.register(BookingConflict)
class BookingConflictAdmin(admin.ModelAdmin):
    list_display = [
        "appointment",
        "conflict_type",
        "status",
        "auto_resolution_attempts",
        "detected_at",
        "resolved_at",
    ]
    list_filter = ["conflict_type", "status"]
    readonly_fields = ["detected_at", "suggested_alternatives", "auto_resolution_attempts"]
