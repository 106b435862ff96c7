from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "duration", "buffer_time", "is_active", "order")
    list_filter = ("is_active",)
    search_fields = ("name", "description")
    readonly_fields = ("id", "created_at", "updated_at")
    fieldsets = (
        (None, {"fields": ("id", "name", "description", "order")}),
        (_("Pricing & Timing"), {"fields": ("price", "duration", "buffer_time")}),
        (_("Status"), {"fields": ("is_active",)}),
        (_("Metadata"), {"fields": ("created_at", "updated_at")}),
    )
    actions = ["activate", "deactivate"]

    def activate(self, request, queryset):
        queryset.update(is_active=True)

    activate.short_description = _("Activate selected services")

    def deactivate(self, request, queryset):
        queryset.update(is_active=False)

    deactivate.short_description = _("Deactivate selected services")
