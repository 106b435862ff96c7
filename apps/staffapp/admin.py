from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Schedule, ScheduleTimeSlot, Staff, StaffAbsence, StaffService


class StaffServiceInline(admin.TabularInline):
    model = StaffService
    extra = 1


class ScheduleTimeSlotInline(admin.TabularInline):
    model = ScheduleTimeSlot
    extra = 0


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("name", "location", "status", "booking_enabled", "created_at")
    list_filter = ("status", "booking_enabled", "location")
    search_fields = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [StaffServiceInline]
    fieldsets = (
        (None, {"fields": ("id", "name", "location")}),
        (_("Status"), {"fields": ("status", "booking_enabled")}),
        (_("Metadata"), {"fields": ("created_at", "updated_at")}),
    )


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ("staff", "date", "start_time", "end_time", "break_start", "break_end", "is_available")
    list_filter = ("is_available", "date")
    search_fields = ("staff__name",)
    date_hierarchy = "date"
    inlines = [ScheduleTimeSlotInline]


@admin.register(StaffAbsence)
class StaffAbsenceAdmin(admin.ModelAdmin):
    list_display = ("staff", "start_date", "end_date", "status")
    list_filter = ("status",)
    search_fields = ("staff__name", "reason")
    actions = ["approve", "reject"]

    def approve(self, request, queryset):
        queryset.update(status="approved")

    approve.short_description = _("Approve selected absences")

    def reject(self, request, queryset):
        queryset.update(status="rejected")

    reject.short_description = _("Reject selected absences")
